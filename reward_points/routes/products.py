from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reward_points.db import get_db
from reward_points.deps.actor import get_actor_id
from reward_points.schemas.inventory import PriceSet, ProductPriceOut
from reward_points.services import pricing_service
from reward_points.services.locks import product_key
from reward_points.services.unit_of_work import atomic


router = APIRouter(prefix="/products", tags=["products"])


@router.get("/{product_id}/price", response_model=ProductPriceOut)
def read_current_price(product_id: UUID, db: Session = Depends(get_db)):
    return pricing_service.get_current_price(db, product_id)


@router.put("/{product_id}/price", response_model=ProductPriceOut)
def set_price(
    product_id: UUID,
    payload: PriceSet,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    with atomic(db, product_key(product_id)):
        price = pricing_service.set_price(db, product_id, payload.points_cost, payload.effective_from)
    return price


@router.get("/{product_id}/price-history", response_model=list[ProductPriceOut])
def read_price_history(product_id: UUID, db: Session = Depends(get_db)):
    return pricing_service.get_price_history(db, product_id)
