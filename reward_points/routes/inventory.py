from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from reward_points.db import get_db
from reward_points.deps.actor import get_actor_id
from reward_points.schemas.inventory import InventoryAdjust, InventoryOut, InventoryRestock
from reward_points.services import inventory_service
from reward_points.services.locks import product_key
from reward_points.services.unit_of_work import atomic


router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/{product_id}", response_model=InventoryOut)
def read_inventory(product_id: UUID, db: Session = Depends(get_db)):
    item = inventory_service.get_inventory(db, product_id)
    if not item:
        raise HTTPException(status_code=404, detail="Inventory not found")
    return item


@router.post("/{product_id}/adjust", response_model=InventoryOut)
def adjust_inventory(
    product_id: UUID,
    payload: InventoryAdjust,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    with atomic(db, product_key(product_id)):
        item = inventory_service.adjust(db, product_id, payload.delta, actor_id=actor_id)
    return item


@router.post("/{product_id}/restock", response_model=InventoryOut)
def restock_inventory(
    product_id: UUID,
    payload: InventoryRestock,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    with atomic(db, product_key(product_id)):
        item = inventory_service.restock(db, product_id, payload.quantity, actor_id=actor_id)
    return item
