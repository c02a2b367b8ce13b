"""
Warehouse, zone and storage location models
"""
from sqlalchemy import Column, Integer, String, Float, ForeignKey, Enum
from sqlalchemy.orm import relationship
from coldchain_wms.database import Base
import enum
from typing import Optional


class ZoneType(str, enum.Enum):
    CHILL = "CHILL"
    FROZEN = "FROZEN"
    DRY = "DRY"
    STAGING = "STAGING"


class LocationStatus(str, enum.Enum):
    EMPTY = "EMPTY"
    OCCUPIED = "OCCUPIED"
    FULL = "FULL"
    RESERVED = "RESERVED"
    BLOCKED = "BLOCKED"


HOLD_STATUSES = (LocationStatus.RESERVED, LocationStatus.BLOCKED)


def derive_location_status(
    current_qty: float,
    max_qty: float,
    requested: Optional[LocationStatus] = None,
) -> LocationStatus:
    """
    Status as a function of fill level.

    Empty and full slots are always EMPTY/FULL. A partially filled slot
    keeps a RESERVED or BLOCKED hold when one is requested, otherwise it
    is OCCUPIED.
    """
    if current_qty <= 0:
        return LocationStatus.EMPTY
    if current_qty >= max_qty:
        return LocationStatus.FULL
    if requested in HOLD_STATUSES:
        return LocationStatus(requested)
    return LocationStatus.OCCUPIED


class Warehouse(Base):
    __tablename__ = "warehouses"
    id_prefix = "wh"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    name_vi = Column(String, nullable=True)
    code = Column(String, nullable=False, unique=True)
    address = Column(String, nullable=True)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    total_capacity = Column(Float, nullable=False, default=0)
    used_capacity = Column(Float, nullable=False, default=0)


class Zone(Base):
    __tablename__ = "zones"
    id_prefix = "zone"

    id = Column(String, primary_key=True, index=True)
    warehouse_id = Column(String, ForeignKey("warehouses.id"), nullable=False)
    name = Column(String, nullable=False)
    name_vi = Column(String, nullable=True)
    type = Column(Enum(ZoneType, native_enum=False), nullable=False)
    temp_min = Column(Float, nullable=False)
    temp_max = Column(Float, nullable=False)
    temp_target = Column(Float, nullable=False)
    capacity = Column(Float, nullable=False, default=0)
    used = Column(Float, nullable=False, default=0)

    # Relationships
    warehouse = relationship("Warehouse", lazy="selectin")


class Location(Base):
    __tablename__ = "locations"
    id_prefix = "loc"

    id = Column(String, primary_key=True, index=True)
    zone_id = Column(String, ForeignKey("zones.id"), nullable=False, index=True)
    code = Column(String, nullable=False)
    rack = Column(String, nullable=True)
    level = Column(String, nullable=True)
    slot = Column(String, nullable=True)
    max_qty = Column(Float, nullable=False)
    current_qty = Column(Float, nullable=False, default=0)
    cubic = Column(Float, nullable=True)
    status = Column(Enum(LocationStatus, native_enum=False), nullable=False, default=LocationStatus.EMPTY)

    # Relationships
    zone = relationship("Zone", lazy="selectin")

    def apply_qty(self, new_qty: float) -> None:
        """Set the fill level and re-derive status, keeping any hold"""
        self.current_qty = new_qty
        self.status = derive_location_status(new_qty, self.max_qty, self.status)
