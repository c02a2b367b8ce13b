"""
Inventory placement endpoints.

Every inventory mutation moves quantity in or out of its location in the
same transaction, so ``current_qty`` and ``status`` never drift from the
inventory placed there.
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from coldchain_wms.api.locations import LocationResponse
from coldchain_wms.api.products import LotResponse, ProductResponse
from coldchain_wms.api.warehouses import ZoneResponse
from coldchain_wms.database import Transaction, get_db
from coldchain_wms.errors import ConflictError
from coldchain_wms.models import Inventory, Location, Lot
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger
from coldchain_wms.utils.validators import require_reference, validate_location_capacity

logger = get_logger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class InventoryResponse(BaseModel):
    id: str
    lot_id: str
    location_id: str
    qty: float
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class InventoryDetail(InventoryResponse):
    lot: Optional[LotResponse] = None
    product: Optional[ProductResponse] = None
    location: Optional[LocationResponse] = None
    zone: Optional[ZoneResponse] = None


class InventoryCreate(BaseModel):
    id: Optional[str] = None
    lot_id: str
    location_id: str
    qty: float = Field(..., gt=0)

    class Config:
        extra = "forbid"


class InventoryUpdate(BaseModel):
    lot_id: Optional[str] = None
    location_id: Optional[str] = None
    qty: Optional[float] = Field(None, gt=0)

    class Config:
        extra = "forbid"


# --- Location side effects ---

def add_to_location(location: Location, qty: float) -> None:
    """Place ``qty`` into ``location``, rejecting overfill"""
    new_qty = location.current_qty + qty
    validate_location_capacity(new_qty, location.max_qty, location.id)
    location.apply_qty(new_qty)


def take_from_location(location: Location, qty: float) -> None:
    """Remove ``qty`` from ``location``, clamped at zero"""
    location.apply_qty(max(0.0, location.current_qty - qty))


def _detail(inv: Inventory) -> InventoryDetail:
    item = InventoryDetail.model_validate(inv)
    lot = inv.lot
    location = inv.location
    if lot is not None:
        item.lot = LotResponse.model_validate(lot)
        if lot.product is not None:
            item.product = ProductResponse.model_validate(lot.product)
    if location is not None:
        item.location = LocationResponse.model_validate(location)
        if location.zone is not None:
            item.zone = ZoneResponse.model_validate(location.zone)
    return item


# --- Endpoints ---

@router.get("", response_model=List[InventoryDetail])
async def list_inventory(tx: Transaction = Depends(get_db)):
    """List inventory joined with lot, product, location and zone"""
    rows = await tx.where(Inventory, order_by=Inventory.id)
    return [_detail(inv) for inv in rows]


@router.get("/{inventory_id}", response_model=InventoryDetail)
async def get_inventory(inventory_id: str, tx: Transaction = Depends(get_db)):
    return _detail(await tx.require(Inventory, inventory_id))


@router.post("", response_model=InventoryResponse)
async def create_inventory(data: InventoryCreate, tx: Transaction = Depends(get_db)):
    await require_reference(tx, Lot, data.lot_id, "lot_id")
    location = await require_reference(tx, Location, data.location_id, "location_id")
    if data.id and await tx.find(Inventory, data.id):
        raise ConflictError(f"Inventory '{data.id}' already exists", code="inventory.duplicate")

    add_to_location(location, data.qty)
    inv = await tx.insert(Inventory, data.model_dump(exclude_none=True))
    logger.info(f"Placed {data.qty} of {data.lot_id} in {location.id} (now {location.current_qty})")
    return inv


@router.put("/{inventory_id}", response_model=InventoryResponse)
async def update_inventory(inventory_id: str, data: InventoryUpdate, tx: Transaction = Depends(get_db)):
    """Patch an inventory row, moving quantity between locations as needed"""
    inv = await tx.require(Inventory, inventory_id)
    updates = data.model_dump(exclude_none=True)

    if "lot_id" in updates:
        await require_reference(tx, Lot, updates["lot_id"], "lot_id")

    old_location = await tx.find(Location, inv.location_id)
    new_location_id = updates.get("location_id", inv.location_id)
    new_qty = updates.get("qty", inv.qty)

    if new_location_id != inv.location_id:
        new_location = await require_reference(tx, Location, new_location_id, "location_id")
        add_to_location(new_location, new_qty)
        if old_location is not None:
            take_from_location(old_location, inv.qty)
    elif old_location is not None and new_qty != inv.qty:
        delta = new_qty - inv.qty
        if delta > 0:
            add_to_location(old_location, delta)
        else:
            take_from_location(old_location, -delta)

    updates["updated_at"] = utcnow()
    return await tx.update(Inventory, inventory_id, updates)


@router.delete("/{inventory_id}")
async def delete_inventory(inventory_id: str, tx: Transaction = Depends(get_db)):
    """Remove an inventory row and release its quantity from the location"""
    inv = await tx.require(Inventory, inventory_id)
    location = await tx.find(Location, inv.location_id)
    if location is not None:
        take_from_location(location, inv.qty)
    await tx.remove(Inventory, inventory_id)
    return {"success": True, "id": inventory_id}
