"""Redemption lifecycle.

    PENDING ──approve──▶ APPROVED ──deliver──▶ DELIVERED
       │                    │
       └──────cancel────────┴──────────────▶ CANCELLED

DELIVERED and CANCELLED are terminal. Creation reserves stock and debits the
account in a single transaction; cancellation releases and refunds in a single
transaction. Locks are always taken in the order account → product → redemption,
both the in-process keys and the ``FOR UPDATE`` row locks, which are taken up
front before any check runs.
"""

import logging

from sqlalchemy.orm import Session

from reward_points.models.point_transaction import OriginKind
from reward_points.models.redemption import Redemption, RedemptionStatus
from reward_points.services import inventory_service, points_ledger
from reward_points.services.errors import InvalidInputError, InvalidStateError, NotFoundError
from reward_points.services.locks import account_key, lock_row, product_key, redemption_key
from reward_points.services.points_ledger import LedgerOrigin
from reward_points.services.pricing_service import get_current_price, require_active_product
from reward_points.services.unit_of_work import atomic, retry_on_conflict
from reward_points.services.user_service import require_active_user
from reward_points.timeutil import utcnow


logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500

ALLOWED_TRANSITIONS = {
    RedemptionStatus.PENDING: {RedemptionStatus.APPROVED, RedemptionStatus.CANCELLED},
    RedemptionStatus.APPROVED: {RedemptionStatus.DELIVERED, RedemptionStatus.CANCELLED},
    RedemptionStatus.DELIVERED: set(),
    RedemptionStatus.CANCELLED: set(),
}


def _ensure_transition(redemption: Redemption, target: RedemptionStatus, action: str) -> None:
    current = RedemptionStatus(redemption.status)
    if target not in ALLOWED_TRANSITIONS[current]:
        logger.warning(
            "redemption transition rejected",
            extra={"redemption_id": str(redemption.id), "status": current.value, "action": action},
        )
        raise InvalidStateError(
            f"Cannot {action} redemption with status {current.value}",
            redemption_id=str(redemption.id),
            status=current.value,
        )


def get_redemption(db: Session, redemption_id) -> Redemption:
    redemption = db.query(Redemption).filter(Redemption.id == redemption_id).first()
    if not redemption:
        raise NotFoundError("Redemption", redemption_id)
    return redemption


def _lock_redemption(db: Session, redemption_id) -> Redemption:
    redemption = lock_row(db.query(Redemption).filter(Redemption.id == redemption_id)).first()
    if not redemption:
        raise NotFoundError("Redemption", redemption_id)
    return redemption


def list_redemptions(
    db: Session,
    *,
    user_id=None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[Redemption]:
    q = db.query(Redemption)
    if user_id:
        q = q.filter(Redemption.user_id == user_id)
    if status:
        q = q.filter(Redemption.status == status.upper())

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return q.order_by(Redemption.requested_at.desc()).offset(offset).limit(limit).all()


@retry_on_conflict
def create_redemption(db: Session, user_id, product_id, quantity: int = 1) -> Redemption:
    if quantity is None or int(quantity) < 1:
        raise InvalidInputError("Quantity must be at least 1", quantity=quantity)
    quantity = int(quantity)

    require_active_user(db, user_id)
    require_active_product(db, product_id)
    if not points_ledger.get_account(db, user_id):
        raise NotFoundError("Points account", user_id)

    price = get_current_price(db, product_id)
    unit_cost = int(price.points_cost)
    total_cost = unit_cost * quantity

    # A failed debit rolls back the reservation made just before it.
    with atomic(db, account_key(user_id), product_key(product_id)):
        points_ledger.lock_account(db, user_id)
        inventory_service.reserve(db, product_id, quantity)
        entry = points_ledger.debit(
            db,
            user_id,
            total_cost,
            LedgerOrigin(kind=OriginKind.REDEMPTION, description="Product redemption"),
        )

        redemption = Redemption(
            user_id=user_id,
            product_id=product_id,
            unit_cost=unit_cost,
            quantity=quantity,
            total_cost=total_cost,
            status=RedemptionStatus.PENDING.value,
            requested_at=utcnow(),
        )
        db.add(redemption)
        db.flush()

        entry.origin_id = redemption.id
        entry.description = f"Product redemption - Redemption ID: {redemption.id}"
        db.flush()

    logger.info(
        "redemption created",
        extra={
            "redemption_id": str(redemption.id),
            "user_id": str(user_id),
            "product_id": str(product_id),
            "quantity": quantity,
            "total_cost": total_cost,
        },
    )
    return redemption


@retry_on_conflict
def approve_redemption(db: Session, redemption_id, approver_id) -> Redemption:
    with atomic(db, redemption_key(redemption_id)):
        redemption = _lock_redemption(db, redemption_id)
        _ensure_transition(redemption, RedemptionStatus.APPROVED, "approve")

        redemption.status = RedemptionStatus.APPROVED.value
        redemption.decided_at = utcnow()
        redemption.decided_by = approver_id

    logger.info("redemption approved", extra={"redemption_id": str(redemption_id), "approver_id": str(approver_id)})
    return redemption


@retry_on_conflict
def deliver_redemption(db: Session, redemption_id, processor_id) -> Redemption:
    ticket = get_redemption(db, redemption_id)

    with atomic(db, product_key(ticket.product_id), redemption_key(redemption_id)):
        inventory_service.lock_inventory(db, ticket.product_id)
        redemption = _lock_redemption(db, redemption_id)
        _ensure_transition(redemption, RedemptionStatus.DELIVERED, "deliver")

        inventory_service.confirm_fulfillment(db, redemption.product_id, redemption.quantity)

        redemption.status = RedemptionStatus.DELIVERED.value
        redemption.delivered_at = utcnow()
        redemption.delivered_by = processor_id

    logger.info("redemption delivered", extra={"redemption_id": str(redemption_id), "processor_id": str(processor_id)})
    return redemption


@retry_on_conflict
def cancel_redemption(db: Session, redemption_id, reason: str, actor_id=None) -> Redemption:
    reason = (reason or "").strip()
    if not reason:
        raise InvalidInputError("Cancellation reason is required")
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidInputError(f"Cancellation reason cannot exceed {MAX_REASON_LENGTH} characters")

    ticket = get_redemption(db, redemption_id)

    with atomic(
        db,
        account_key(ticket.user_id),
        product_key(ticket.product_id),
        redemption_key(redemption_id),
    ):
        points_ledger.lock_account(db, ticket.user_id)
        inventory_service.lock_inventory(db, ticket.product_id)
        redemption = _lock_redemption(db, redemption_id)
        _ensure_transition(redemption, RedemptionStatus.CANCELLED, "cancel")

        inventory_service.release(db, redemption.product_id, redemption.quantity)
        points_ledger.refund(
            db,
            redemption.user_id,
            redemption.total_cost,
            LedgerOrigin(
                kind=OriginKind.REDEMPTION,
                id=redemption.id,
                description=f"Redemption cancellation refund - Redemption ID: {redemption.id}",
            ),
        )

        redemption.status = RedemptionStatus.CANCELLED.value
        redemption.cancelled_at = utcnow()
        redemption.cancelled_by = actor_id
        redemption.cancel_reason = reason

    logger.info(
        "redemption cancelled",
        extra={"redemption_id": str(redemption_id), "reason": reason, "refunded": redemption.total_cost},
    )
    return redemption
