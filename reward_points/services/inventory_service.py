import logging

from sqlalchemy.orm import Session

from reward_points.models.inventory_item import InventoryItem
from reward_points.services.errors import InvalidInputError, NotFoundError, OutOfStockError
from reward_points.services.locks import lock_row, product_key, resource_locks
from reward_points.timeutil import utcnow


logger = logging.getLogger(__name__)


def _validate_quantity(quantity: int) -> int:
    if quantity is None or int(quantity) <= 0:
        raise InvalidInputError("Quantity must be greater than zero", quantity=quantity)
    return int(quantity)


def get_inventory(db: Session, product_id):
    return db.query(InventoryItem).filter(InventoryItem.product_id == product_id).first()


def lock_inventory(db: Session, product_id) -> InventoryItem:
    item = lock_row(db.query(InventoryItem).filter(InventoryItem.product_id == product_id)).first()
    if not item:
        raise NotFoundError("Inventory for product", product_id)
    return item


def reserve(db: Session, product_id, quantity: int) -> InventoryItem:
    """Move ``quantity`` units from available to reserved.

    Fails with OutOfStock when fewer units are available; the last unit can
    only be reserved once since the check runs under the product lock.
    """
    quantity = _validate_quantity(quantity)

    with resource_locks.hold(product_key(product_id)):
        item = lock_inventory(db, product_id)
        if item.available < quantity:
            logger.warning(
                "reservation rejected: out of stock",
                extra={"product_id": str(product_id), "requested": quantity, "available": item.available},
            )
            raise OutOfStockError(product_id, requested=quantity, available=item.available)

        item.available -= quantity
        item.reserved += quantity
        item.last_updated_at = utcnow()
        db.flush()

    logger.info(
        "stock reserved",
        extra={"product_id": str(product_id), "quantity": quantity, "available": item.available, "reserved": item.reserved},
    )
    return item


def release(db: Session, product_id, quantity: int) -> InventoryItem:
    quantity = _validate_quantity(quantity)

    with resource_locks.hold(product_key(product_id)):
        item = lock_inventory(db, product_id)
        item.available = max(0, item.available + quantity)
        item.reserved = max(0, item.reserved - quantity)
        item.last_updated_at = utcnow()
        db.flush()

    logger.info(
        "reservation released",
        extra={"product_id": str(product_id), "quantity": quantity, "available": item.available, "reserved": item.reserved},
    )
    return item


def confirm_fulfillment(db: Session, product_id, quantity: int) -> InventoryItem:
    """Turn a reservation into permanent consumption (available was already reduced)."""
    quantity = _validate_quantity(quantity)

    with resource_locks.hold(product_key(product_id)):
        item = lock_inventory(db, product_id)
        item.reserved = max(0, item.reserved - quantity)
        item.last_updated_at = utcnow()
        db.flush()

    logger.info(
        "fulfillment confirmed",
        extra={"product_id": str(product_id), "quantity": quantity, "reserved": item.reserved},
    )
    return item


def adjust(db: Session, product_id, delta: int, actor_id=None) -> InventoryItem:
    """Administrative correction of available stock, outside any reservation."""
    delta = int(delta)
    if delta == 0:
        raise InvalidInputError("Adjustment must not be zero")

    with resource_locks.hold(product_key(product_id)):
        item = lock_inventory(db, product_id)
        new_available = item.available + delta
        if new_available < 0:
            raise InvalidInputError(
                f"Adjustment would result in negative quantity: {new_available}",
                product_id=str(product_id),
                available=item.available,
                delta=delta,
            )

        item.available = new_available
        item.last_updated_at = utcnow()
        item.updated_by = actor_id
        db.flush()

    logger.info(
        "stock adjusted",
        extra={"product_id": str(product_id), "delta": delta, "available": item.available, "actor_id": str(actor_id)},
    )
    return item


def restock(db: Session, product_id, quantity: int, actor_id=None) -> InventoryItem:
    quantity = _validate_quantity(quantity)

    with resource_locks.hold(product_key(product_id)):
        item = adjust(db, product_id, quantity, actor_id=actor_id)
        item.last_restocked_at = item.last_updated_at
        db.flush()

    return item


def list_low_stock(db: Session, limit: int = 50, offset: int = 0):
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    return (
        db.query(InventoryItem)
        .filter(InventoryItem.available <= InventoryItem.reorder_level)
        .order_by(InventoryItem.available.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
