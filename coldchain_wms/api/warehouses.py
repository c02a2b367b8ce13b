"""
Warehouse and zone endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from typing import List, Optional
from pydantic import BaseModel, Field

from coldchain_wms.database import Transaction, get_db
from coldchain_wms.errors import ConflictError
from coldchain_wms.models import Warehouse, Zone, ZoneType, Location, Sensor, SensorType
from coldchain_wms.services.sensor_simulator import apply_reading
from coldchain_wms.utils.validators import validate_temperature_band, require_reference

router = APIRouter()
zones_router = APIRouter()


# --- Pydantic Schemas ---

class WarehouseResponse(BaseModel):
    id: str
    name: str
    name_vi: Optional[str]
    code: str
    address: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    total_capacity: float
    used_capacity: float

    class Config:
        from_attributes = True


class ZoneResponse(BaseModel):
    id: str
    warehouse_id: str
    name: str
    name_vi: Optional[str]
    type: ZoneType
    temp_min: float
    temp_max: float
    temp_target: float
    capacity: float
    used: float

    class Config:
        from_attributes = True


class ZoneListItem(ZoneResponse):
    warehouse_name: Optional[str] = None
    location_count: int = 0


class ZoneCreate(BaseModel):
    id: Optional[str] = None
    warehouse_id: str
    name: str = Field(..., min_length=1)
    name_vi: Optional[str] = None
    type: ZoneType
    temp_min: float
    temp_max: float
    temp_target: float
    capacity: float = Field(0, ge=0)
    used: float = Field(0, ge=0)

    class Config:
        extra = "forbid"


class ZoneUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    name_vi: Optional[str] = None
    type: Optional[ZoneType] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    temp_target: Optional[float] = None
    capacity: Optional[float] = Field(None, ge=0)
    used: Optional[float] = Field(None, ge=0)

    class Config:
        extra = "forbid"


# --- Warehouse endpoints ---

@router.get("", response_model=List[WarehouseResponse])
async def list_warehouses(tx: Transaction = Depends(get_db)):
    return await tx.where(Warehouse, order_by=Warehouse.id)


@router.get("/{warehouse_id}", response_model=WarehouseResponse)
async def get_warehouse(warehouse_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Warehouse, warehouse_id)


# --- Zone endpoints ---

@zones_router.get("", response_model=List[ZoneListItem])
async def list_zones(tx: Transaction = Depends(get_db)):
    """List zones with their warehouse name and location count"""
    zones = await tx.where(Zone, order_by=Zone.id)
    counts_result = await tx.session.execute(
        select(Location.zone_id, func.count(Location.id)).group_by(Location.zone_id)
    )
    counts = dict(counts_result.all())

    items = []
    for zone in zones:
        item = ZoneListItem.model_validate(zone)
        item.warehouse_name = zone.warehouse.name if zone.warehouse else None
        item.location_count = counts.get(zone.id, 0)
        items.append(item)
    return items


@zones_router.get("/{zone_id}", response_model=ZoneResponse)
async def get_zone(zone_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Zone, zone_id)


@zones_router.post("", response_model=ZoneResponse)
async def create_zone(data: ZoneCreate, tx: Transaction = Depends(get_db)):
    await require_reference(tx, Warehouse, data.warehouse_id, "warehouse_id")
    validate_temperature_band(data.temp_min, data.temp_target, data.temp_max)
    if data.id and await tx.find(Zone, data.id):
        raise ConflictError(f"Zone '{data.id}' already exists", code="zone.duplicate")
    return await tx.insert(Zone, data.model_dump(exclude_none=True))


@zones_router.put("/{zone_id}", response_model=ZoneResponse)
async def update_zone(zone_id: str, data: ZoneUpdate, tx: Transaction = Depends(get_db)):
    zone = await tx.require(Zone, zone_id)
    updates = data.model_dump(exclude_none=True)
    validate_temperature_band(
        updates.get("temp_min", zone.temp_min),
        updates.get("temp_target", zone.temp_target),
        updates.get("temp_max", zone.temp_max),
    )
    band_changed = (
        updates.get("temp_min", zone.temp_min) != zone.temp_min
        or updates.get("temp_max", zone.temp_max) != zone.temp_max
    )
    zone = await tx.update(Zone, zone_id, updates)

    if band_changed:
        # Re-check the last reading of every sensor against the new band
        sensors = await tx.where(Sensor, Sensor.zone_id == zone_id, Sensor.type == SensorType.TEMPERATURE)
        for sensor in sensors:
            if sensor.current_value is not None:
                await apply_reading(tx, sensor, zone, sensor.current_value)
    return zone


@zones_router.delete("/{zone_id}")
async def delete_zone(zone_id: str, tx: Transaction = Depends(get_db)):
    """Delete a zone that no longer owns locations or sensors"""
    await tx.require(Zone, zone_id)
    if await tx.first(Location, Location.zone_id == zone_id) is not None:
        raise ConflictError(f"Zone '{zone_id}' still has locations", code="zone.in_use")
    if await tx.first(Sensor, Sensor.zone_id == zone_id) is not None:
        raise ConflictError(f"Zone '{zone_id}' still has sensors", code="zone.in_use")
    await tx.remove(Zone, zone_id)
    return {"success": True, "id": zone_id}
