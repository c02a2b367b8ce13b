"""
Inbound (receiving) and outbound (shipping) order models
"""
from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from coldchain_wms.database import Base
from coldchain_wms.utils.helpers import utcnow
from enum import Enum


class InboundStatus(str, Enum):
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    RECEIVING = "RECEIVING"
    QC = "QC"
    PUTAWAY = "PUTAWAY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class OutboundStatus(str, Enum):
    PENDING = "PENDING"
    RELEASED = "RELEASED"
    PICKING = "PICKING"
    PICKED = "PICKED"
    PACKING = "PACKING"
    LOADED = "LOADED"
    SHIPPED = "SHIPPED"
    CANCELLED = "CANCELLED"


class Priority(str, Enum):
    LOW = "LOW"
    NORMAL = "NORMAL"
    HIGH = "HIGH"
    URGENT = "URGENT"


class PickStrategy(str, Enum):
    FEFO = "FEFO"
    FIFO = "FIFO"
    LIFO = "LIFO"
    LOT_SPECIFIC = "LOT_SPECIFIC"


# Forward order of each lifecycle; CANCELLED sits outside it
INBOUND_FLOW = [
    InboundStatus.PENDING,
    InboundStatus.SCHEDULED,
    InboundStatus.RECEIVING,
    InboundStatus.QC,
    InboundStatus.PUTAWAY,
    InboundStatus.COMPLETED,
]

OUTBOUND_FLOW = [
    OutboundStatus.PENDING,
    OutboundStatus.RELEASED,
    OutboundStatus.PICKING,
    OutboundStatus.PICKED,
    OutboundStatus.PACKING,
    OutboundStatus.LOADED,
    OutboundStatus.SHIPPED,
]


def is_terminal(flow: list, status: Enum) -> bool:
    return status == flow[-1] or status.value == "CANCELLED"


def can_transition(flow: list, current: Enum, target: Enum) -> bool:
    """Forward moves along ``flow``, or cancellation from any open state"""
    if current == target:
        return True
    if is_terminal(flow, current):
        return False
    if target.value == "CANCELLED":
        return True
    return flow.index(target) > flow.index(current)


class InboundOrder(Base):
    __tablename__ = "inbound_orders"
    id_prefix = "inb"
    entity_name = "Inbound order"

    id = Column(String, primary_key=True, index=True)
    order_no = Column(String, nullable=False, unique=True)
    warehouse_id = Column(String, ForeignKey("warehouses.id"), nullable=False)
    supplier = Column(String, nullable=False)
    carrier = Column(String, nullable=True)
    trailer_no = Column(String, nullable=True)
    eta = Column(DateTime, nullable=False)
    arrival_time = Column(DateTime, nullable=True)
    status = Column(SQLEnum(InboundStatus, native_enum=False), nullable=False, default=InboundStatus.PENDING)
    total_qty = Column(Float, nullable=False, default=0)
    received_qty = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    created_by = Column(String, nullable=True)

    # Relationships
    lines = relationship(
        "InboundLine",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InboundLine.id",
    )


class InboundLine(Base):
    __tablename__ = "inbound_lines"
    id_prefix = "line"
    entity_name = "Inbound line"

    id = Column(String, primary_key=True, index=True)
    order_id = Column(String, ForeignKey("inbound_orders.id"), nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id"), nullable=False)
    expected_qty = Column(Float, nullable=False)
    received_qty = Column(Float, nullable=False, default=0)

    # Relationships
    order = relationship("InboundOrder", back_populates="lines")
    product = relationship("Product", lazy="selectin")


class OutboundOrder(Base):
    __tablename__ = "outbound_orders"
    id_prefix = "out"
    entity_name = "Outbound order"

    id = Column(String, primary_key=True, index=True)
    order_no = Column(String, nullable=False, unique=True)
    warehouse_id = Column(String, ForeignKey("warehouses.id"), nullable=False)
    customer = Column(String, nullable=False)
    customer_address = Column(String, nullable=True)
    carrier = Column(String, nullable=True)
    trailer_no = Column(String, nullable=True)
    etd = Column(DateTime, nullable=False)
    departure_time = Column(DateTime, nullable=True)
    status = Column(SQLEnum(OutboundStatus, native_enum=False), nullable=False, default=OutboundStatus.PENDING)
    priority = Column(SQLEnum(Priority, native_enum=False), nullable=False, default=Priority.NORMAL)
    pick_strategy = Column(SQLEnum(PickStrategy, native_enum=False), nullable=False, default=PickStrategy.FEFO)
    total_qty = Column(Float, nullable=False, default=0)
    picked_qty = Column(Float, nullable=False, default=0)
    shipped_qty = Column(Float, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    created_by = Column(String, nullable=True)

    # Relationships
    lines = relationship(
        "OutboundLine",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OutboundLine.id",
    )


class OutboundLine(Base):
    __tablename__ = "outbound_lines"
    id_prefix = "out-line"
    entity_name = "Outbound line"

    id = Column(String, primary_key=True, index=True)
    order_id = Column(String, ForeignKey("outbound_orders.id"), nullable=False, index=True)
    product_id = Column(String, ForeignKey("products.id"), nullable=False)
    requested_qty = Column(Float, nullable=False)
    picked_qty = Column(Float, nullable=False, default=0)
    shipped_qty = Column(Float, nullable=False, default=0)

    # Relationships
    order = relationship("OutboundOrder", back_populates="lines")
    product = relationship("Product", lazy="selectin")
