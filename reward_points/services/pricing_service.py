import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from reward_points.models.product import Product, ProductPrice
from reward_points.services.errors import InvalidInputError, NotFoundError
from reward_points.timeutil import utcnow


logger = logging.getLogger(__name__)


def get_product(db: Session, product_id):
    return db.query(Product).filter(Product.id == product_id).first()


def require_active_product(db: Session, product_id) -> Product:
    product = get_product(db, product_id)
    if not product or not product.is_active:
        raise NotFoundError("Product", product_id)
    return product


def get_current_price(db: Session, product_id, at: datetime | None = None) -> ProductPrice:
    """Most recent active price record whose window contains ``at`` (default: now)."""
    if at is None:
        at = utcnow()

    price = (
        db.query(ProductPrice)
        .filter(ProductPrice.product_id == product_id)
        .filter(ProductPrice.is_active.is_(True))
        .filter(ProductPrice.effective_from <= at)
        .filter(or_(ProductPrice.effective_to.is_(None), ProductPrice.effective_to > at))
        .order_by(ProductPrice.effective_from.desc())
        .first()
    )
    if not price:
        raise NotFoundError("Active pricing for product", product_id)
    return price


def set_price(db: Session, product_id, points_cost: int, effective_from: datetime | None = None) -> ProductPrice:
    """Append a new price record, closing the open ones just before it starts."""
    if points_cost is None or int(points_cost) <= 0:
        raise InvalidInputError("Points cost must be positive", points_cost=points_cost)
    if effective_from is None:
        effective_from = utcnow()
    elif effective_from.tzinfo is not None:
        effective_from = effective_from.astimezone(timezone.utc).replace(tzinfo=None)

    require_active_product(db, product_id)

    open_prices = (
        db.query(ProductPrice)
        .filter(ProductPrice.product_id == product_id)
        .filter(ProductPrice.is_active.is_(True))
        .filter(or_(ProductPrice.effective_to.is_(None), ProductPrice.effective_to > effective_from))
        .filter(ProductPrice.effective_from <= effective_from)
        .all()
    )
    for p in open_prices:
        p.effective_to = effective_from - timedelta(microseconds=1)

    price = ProductPrice(
        product_id=product_id,
        points_cost=int(points_cost),
        effective_from=effective_from,
        is_active=True,
    )
    db.add(price)
    db.flush()

    logger.info(
        "product price set",
        extra={"product_id": str(product_id), "points_cost": price.points_cost, "effective_from": effective_from.isoformat()},
    )
    return price


def get_price_history(db: Session, product_id) -> list[ProductPrice]:
    return (
        db.query(ProductPrice)
        .filter(ProductPrice.product_id == product_id)
        .order_by(ProductPrice.effective_from.desc())
        .all()
    )
