"""
Dashboard API - headline KPIs and inventory distribution per zone
"""
from fastapi import APIRouter, Depends
from sqlalchemy import select, func
from datetime import datetime, timedelta
from typing import List, Optional
from pydantic import BaseModel

from coldchain_wms.database import Transaction, get_db
from coldchain_wms.models import (
    InboundOrder, OutboundOrder, Inventory, Lot, Product, TempClass,
    Zone, Location, Alert, AlertStatus,
)
from coldchain_wms.utils.helpers import utcnow

router = APIRouter()

# Dock performance is not tracked by the mock backend
DOCK_ON_TIME_PERCENT = 95


class KpiResponse(BaseModel):
    inbound_today: int
    outbound_today: int
    on_hand_by_temp_class: dict[str, float]
    on_hand_chill: float
    on_hand_frozen: float
    open_alerts: int
    dock_on_time_percent: float


class ZoneDistribution(BaseModel):
    zone_id: str
    zone_name: str
    zone_type: str
    qty: float
    capacity: float
    utilization_percent: float


def _day_bounds(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    start = (now or utcnow()).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


async def on_hand_by_temp_class(tx: Transaction) -> dict[str, float]:
    """Inventory qty summed through Inventory -> Lot -> Product.temp_class"""
    result = await tx.session.execute(
        select(Product.temp_class, func.sum(Inventory.qty))
        .join(Lot, Inventory.lot_id == Lot.id)
        .join(Product, Lot.product_id == Product.id)
        .group_by(Product.temp_class)
    )
    totals = {temp_class.value: 0.0 for temp_class in TempClass}
    for temp_class, qty in result.all():
        totals[temp_class.value] = float(qty or 0)
    return totals


@router.get("", response_model=KpiResponse)
async def get_kpis(tx: Transaction = Depends(get_db)):
    start, end = _day_bounds()

    inbound_today = await tx.session.execute(
        select(func.count(InboundOrder.id)).where(InboundOrder.eta >= start, InboundOrder.eta < end)
    )
    outbound_today = await tx.session.execute(
        select(func.count(OutboundOrder.id)).where(OutboundOrder.etd >= start, OutboundOrder.etd < end)
    )
    open_alerts = await tx.session.execute(
        select(func.count(Alert.id)).where(Alert.status == AlertStatus.OPEN)
    )
    on_hand = await on_hand_by_temp_class(tx)

    return KpiResponse(
        inbound_today=inbound_today.scalar() or 0,
        outbound_today=outbound_today.scalar() or 0,
        on_hand_by_temp_class=on_hand,
        on_hand_chill=on_hand[TempClass.CHILL.value],
        on_hand_frozen=on_hand[TempClass.FROZEN.value],
        open_alerts=open_alerts.scalar() or 0,
        dock_on_time_percent=DOCK_ON_TIME_PERCENT,
    )


@router.get("/inventory-distribution", response_model=List[ZoneDistribution])
async def get_inventory_distribution(tx: Transaction = Depends(get_db)):
    """Per zone fill level, summed over its locations"""
    result = await tx.session.execute(
        select(
            Zone.id,
            Zone.name,
            Zone.type,
            func.coalesce(func.sum(Location.current_qty), 0),
            func.coalesce(func.sum(Location.max_qty), 0),
        )
        .outerjoin(Location, Location.zone_id == Zone.id)
        .group_by(Zone.id, Zone.name, Zone.type)
        .order_by(Zone.id)
    )

    items = []
    for zone_id, zone_name, zone_type, qty, capacity in result.all():
        utilization = (qty / capacity * 100) if capacity else 0.0
        items.append(ZoneDistribution(
            zone_id=zone_id,
            zone_name=zone_name,
            zone_type=zone_type.value,
            qty=float(qty),
            capacity=float(capacity),
            utilization_percent=round(utilization, 1),
        ))
    return items
