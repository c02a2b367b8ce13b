"""
Storage location endpoints - status always follows the fill level
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
from pydantic import BaseModel, Field

from coldchain_wms.database import Transaction, get_db
from coldchain_wms.errors import ConflictError
from coldchain_wms.models import Zone, Location, LocationStatus, Inventory, derive_location_status
from coldchain_wms.utils.logger import get_logger
from coldchain_wms.utils.validators import validate_location_capacity, require_reference

logger = get_logger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class LocationResponse(BaseModel):
    id: str
    zone_id: str
    code: str
    rack: Optional[str]
    level: Optional[str]
    slot: Optional[str]
    max_qty: float
    current_qty: float
    cubic: Optional[float]
    status: LocationStatus

    class Config:
        from_attributes = True


class LocationListItem(LocationResponse):
    zone_name: Optional[str] = None


class LocationCreate(BaseModel):
    id: Optional[str] = None
    zone_id: str
    code: str = Field(..., min_length=1)
    rack: Optional[str] = None
    level: Optional[str] = None
    slot: Optional[str] = None
    max_qty: float = Field(..., gt=0)
    current_qty: float = Field(0, ge=0)
    cubic: Optional[float] = Field(None, ge=0)
    status: Optional[LocationStatus] = None

    class Config:
        extra = "forbid"


class LocationUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1)
    rack: Optional[str] = None
    level: Optional[str] = None
    slot: Optional[str] = None
    max_qty: Optional[float] = Field(None, gt=0)
    current_qty: Optional[float] = Field(None, ge=0)
    cubic: Optional[float] = Field(None, ge=0)
    status: Optional[LocationStatus] = None

    class Config:
        extra = "forbid"


# --- Endpoints ---

@router.get("", response_model=List[LocationListItem])
async def list_locations(tx: Transaction = Depends(get_db)):
    """List locations with their zone name"""
    locations = await tx.where(Location, order_by=Location.code)
    items = []
    for location in locations:
        item = LocationListItem.model_validate(location)
        item.zone_name = location.zone.name if location.zone else None
        items.append(item)
    return items


@router.get("/{location_id}", response_model=LocationResponse)
async def get_location(location_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Location, location_id)


@router.post("", response_model=LocationResponse)
async def create_location(data: LocationCreate, tx: Transaction = Depends(get_db)):
    await require_reference(tx, Zone, data.zone_id, "zone_id")
    validate_location_capacity(data.current_qty, data.max_qty)
    if data.id and await tx.find(Location, data.id):
        raise ConflictError(f"Location '{data.id}' already exists", code="location.duplicate")

    values = data.model_dump(exclude_none=True)
    values["status"] = derive_location_status(data.current_qty, data.max_qty, data.status)
    return await tx.insert(Location, values)


@router.put("/{location_id}", response_model=LocationResponse)
async def update_location(location_id: str, data: LocationUpdate, tx: Transaction = Depends(get_db)):
    """Patch a location; status is re-derived from the resulting fill level"""
    location = await tx.require(Location, location_id)
    updates = data.model_dump(exclude_none=True)

    current_qty = updates.get("current_qty", location.current_qty)
    max_qty = updates.get("max_qty", location.max_qty)
    validate_location_capacity(current_qty, max_qty, location_id)

    requested = updates.pop("status", location.status)
    updates["status"] = derive_location_status(current_qty, max_qty, requested)
    if "status" in data.model_fields_set and updates["status"] != requested:
        logger.info(
            f"Location {location_id}: requested status {requested.value} "
            f"overridden to {updates['status'].value} by fill level"
        )
    return await tx.update(Location, location_id, updates)


@router.delete("/{location_id}")
async def delete_location(location_id: str, tx: Transaction = Depends(get_db)):
    """Delete a location that holds no inventory"""
    await tx.require(Location, location_id)
    if await tx.first(Inventory, Inventory.location_id == location_id) is not None:
        raise ConflictError(f"Location '{location_id}' still holds inventory", code="location.in_use")
    await tx.remove(Location, location_id)
    return {"success": True, "id": location_id}
