"""
Sensor readings and alert endpoints
"""
from fastapi import APIRouter, Depends, Request
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from coldchain_wms.api.warehouses import ZoneResponse
from coldchain_wms.database import Transaction, get_db
from coldchain_wms.models import (
    Sensor, SensorType, SensorStatus,
    Alert, AlertType, AlertSeverity, AlertStatus,
)
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)

sensors_router = APIRouter()
alerts_router = APIRouter()
simulator_router = APIRouter()


# --- Pydantic Schemas ---

class SensorResponse(BaseModel):
    id: str
    zone_id: str
    name: str
    name_vi: Optional[str]
    type: SensorType
    location: Optional[str]
    current_value: Optional[float]
    unit: str
    status: SensorStatus
    last_updated: Optional[datetime]
    battery_level: Optional[int]
    zone: Optional[ZoneResponse] = None

    class Config:
        from_attributes = True


class AlertResponse(BaseModel):
    id: str
    type: AlertType
    severity: AlertSeverity
    title: str
    title_vi: Optional[str]
    message: str
    message_vi: Optional[str]
    warehouse_id: Optional[str]
    zone_id: Optional[str]
    sensor_id: Optional[str]
    lot_id: Optional[str]
    status: AlertStatus
    created_at: Optional[datetime]
    resolved_at: Optional[datetime]
    resolved_by: Optional[str]
    zone: Optional[ZoneResponse] = None

    class Config:
        from_attributes = True


class AlertResolve(BaseModel):
    resolved_by: Optional[str] = None


# --- Sensor endpoints ---

@sensors_router.get("", response_model=List[SensorResponse])
async def list_sensors(tx: Transaction = Depends(get_db)):
    return await tx.where(Sensor, order_by=Sensor.id)


@sensors_router.get("/{sensor_id}", response_model=SensorResponse)
async def get_sensor(sensor_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Sensor, sensor_id)


# --- Alert endpoints ---

@alerts_router.get("", response_model=List[AlertResponse])
async def list_alerts(status: Optional[AlertStatus] = None, tx: Transaction = Depends(get_db)):
    """List alerts newest first, optionally filtered by status"""
    criteria = [Alert.status == status] if status is not None else []
    return await tx.where(Alert, *criteria, order_by=Alert.created_at.desc())


@alerts_router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(alert_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Alert, alert_id)


@alerts_router.post("/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: str,
    data: Optional[AlertResolve] = None,
    tx: Transaction = Depends(get_db),
):
    """Mark an alert RESOLVED; resolving again keeps the first resolution"""
    alert = await tx.require(Alert, alert_id)
    if alert.status == AlertStatus.RESOLVED:
        return alert

    resolved_by = data.resolved_by if data else None
    alert = await tx.update(Alert, alert_id, {
        "status": AlertStatus.RESOLVED,
        "resolved_at": utcnow(),
        "resolved_by": resolved_by,
    })
    logger.info(f"Alert {alert_id} resolved by {resolved_by or 'unknown'}")
    return alert


# --- Simulator status ---

@simulator_router.get("")
async def get_simulator_status(request: Request):
    simulator = getattr(request.app.state, "simulator", None)
    if simulator is None:
        return {"running": False, "interval_seconds": None, "tick_count": 0, "last_tick_at": None}
    return simulator.status()
