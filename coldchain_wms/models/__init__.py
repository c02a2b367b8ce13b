from coldchain_wms.models.user import User, UserRole, UserStatus
from coldchain_wms.models.warehouse import (
    Warehouse, Zone, ZoneType, Location, LocationStatus, HOLD_STATUSES, derive_location_status,
)
from coldchain_wms.models.product import Product, TempClass, Lot, LotStatus, Inventory
from coldchain_wms.models.sensor import (
    Sensor, SensorType, SensorStatus, Alert, AlertType, AlertSeverity, AlertStatus,
)
from coldchain_wms.models.order import (
    InboundOrder, InboundLine, InboundStatus,
    OutboundOrder, OutboundLine, OutboundStatus,
    Priority, PickStrategy, INBOUND_FLOW, OUTBOUND_FLOW, can_transition, is_terminal,
)

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "Warehouse",
    "Zone",
    "ZoneType",
    "Location",
    "LocationStatus",
    "HOLD_STATUSES",
    "derive_location_status",
    "Product",
    "TempClass",
    "Lot",
    "LotStatus",
    "Inventory",
    "Sensor",
    "SensorType",
    "SensorStatus",
    "Alert",
    "AlertType",
    "AlertSeverity",
    "AlertStatus",
    "InboundOrder",
    "InboundLine",
    "InboundStatus",
    "OutboundOrder",
    "OutboundLine",
    "OutboundStatus",
    "Priority",
    "PickStrategy",
    "INBOUND_FLOW",
    "OUTBOUND_FLOW",
    "can_transition",
    "is_terminal",
]
