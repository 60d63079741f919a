class RewardPointsError(Exception):
    """Base class for every business failure raised by the services.

    ``details`` is merged into the HTTP error body by the exception handler
    registered in ``reward_points.main``.
    """

    code = "ERROR"
    status_code = 400
    retryable = False

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.code, "detail": self.message}
        body.update({k: v for k, v in self.details.items() if v is not None})
        if self.retryable:
            body["retryable"] = True
        return body


class NotFoundError(RewardPointsError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id):
        super().__init__(f"{resource} {resource_id} not found", resource=resource, id=str(resource_id))


class InvalidInputError(RewardPointsError):
    code = "INVALID_INPUT"
    status_code = 400


class InsufficientBalanceError(RewardPointsError):
    code = "INSUFFICIENT_BALANCE"
    status_code = 400

    def __init__(self, user_id, required: int, available: int):
        super().__init__(
            f"Insufficient balance. Required: {required}, Available: {available}",
            user_id=str(user_id),
            required=required,
            available=available,
        )


class OutOfStockError(RewardPointsError):
    code = "OUT_OF_STOCK"
    status_code = 409

    def __init__(self, product_id, requested: int, available: int):
        super().__init__(
            f"Product {product_id} is out of stock. Requested: {requested}, Available: {available}",
            product_id=str(product_id),
            requested=requested,
            available=available,
        )


class PoolExhaustedError(RewardPointsError):
    code = "POOL_EXHAUSTED"
    status_code = 409

    def __init__(self, event_id, requested: int, remaining: int):
        super().__init__(
            f"Not enough points remaining in pool. Requested: {requested}, Remaining: {remaining}",
            event_id=str(event_id),
            requested=requested,
            remaining=remaining,
        )


class BudgetExceededError(RewardPointsError):
    code = "BUDGET_EXCEEDED"
    status_code = 409

    def __init__(self, admin_id, points: int, limit: int, remaining: int):
        super().__init__(
            f"Cannot award {points} points. Would exceed hard budget limit of {limit}. Remaining: {remaining}",
            admin_id=str(admin_id),
            points=points,
            limit=limit,
            remaining=remaining,
        )


class InvalidStateError(RewardPointsError):
    code = "INVALID_STATE"
    status_code = 409


class AlreadyAwardedError(InvalidStateError):
    def __init__(self, event_id, user_id):
        super().__init__(
            f"Points already awarded to user {user_id} for event {event_id}",
            event_id=str(event_id),
            user_id=str(user_id),
        )


class InactiveAccountError(InvalidStateError):
    def __init__(self, user_id):
        super().__init__(f"User {user_id} is not active", user_id=str(user_id))


class NotParticipantError(InvalidStateError):
    def __init__(self, event_id, user_id):
        super().__init__(
            f"User {user_id} did not participate in event {event_id}",
            event_id=str(event_id),
            user_id=str(user_id),
        )


class ConflictError(RewardPointsError):
    """A concurrent mutation held the resource; nothing was written, retry is safe."""

    code = "CONFLICT"
    status_code = 409
    retryable = True
