"""
Product catalog, lots and inventory placement models
"""
from sqlalchemy import Column, Integer, String, Float, Text, Date, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from coldchain_wms.database import Base
from coldchain_wms.utils.helpers import utcnow
import enum


class TempClass(str, enum.Enum):
    CHILL = "CHILL"
    FROZEN = "FROZEN"
    DRY = "DRY"
    AMBIENT = "AMBIENT"


class LotStatus(str, enum.Enum):
    QUARANTINE = "QUARANTINE"
    AVAILABLE = "AVAILABLE"
    ALLOCATED = "ALLOCATED"
    EXPIRED = "EXPIRED"
    HOLD = "HOLD"


class Product(Base):
    __tablename__ = "products"
    id_prefix = "prod"

    id = Column(String, primary_key=True, index=True)
    sku = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    name_vi = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    unit = Column(String, nullable=False, default="KG")
    temp_class = Column(Enum(TempClass, native_enum=False), nullable=False)
    shelf_life_days = Column(Integer, nullable=False)
    weight = Column(Float, nullable=True)
    cubic = Column(Float, nullable=True)
    category = Column(String, nullable=True)


class Lot(Base):
    __tablename__ = "lots"
    id_prefix = "lot"

    id = Column(String, primary_key=True, index=True)
    product_id = Column(String, ForeignKey("products.id"), nullable=False, index=True)
    lot_no = Column(String, nullable=False)
    mfg_date = Column(Date, nullable=True)
    exp_date = Column(Date, nullable=False)
    origin_country = Column(String, nullable=True)
    supplier = Column(String, nullable=True)
    total_qty = Column(Float, nullable=False, default=0)
    available_qty = Column(Float, nullable=False, default=0)
    allocated_qty = Column(Float, nullable=False, default=0)
    status = Column(Enum(LotStatus, native_enum=False), nullable=False, default=LotStatus.AVAILABLE)

    # Relationships
    product = relationship("Product", lazy="selectin")


class Inventory(Base):
    """Quantity of a lot placed in a location"""
    __tablename__ = "inventory"
    id_prefix = "inv"

    id = Column(String, primary_key=True, index=True)
    lot_id = Column(String, ForeignKey("lots.id"), nullable=False, index=True)
    location_id = Column(String, ForeignKey("locations.id"), nullable=False, index=True)
    qty = Column(Float, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    lot = relationship("Lot", lazy="selectin")
    location = relationship("Location", lazy="selectin")
