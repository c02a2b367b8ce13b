"""
Telemetry sensor and alert models
"""
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from coldchain_wms.database import Base
from coldchain_wms.utils.helpers import utcnow
from enum import Enum


class SensorType(str, Enum):
    TEMPERATURE = "TEMPERATURE"
    HUMIDITY = "HUMIDITY"
    DOOR = "DOOR"


class SensorStatus(str, Enum):
    ONLINE = "ONLINE"
    WARNING = "WARNING"
    OFFLINE = "OFFLINE"
    ERROR = "ERROR"


class AlertType(str, Enum):
    TEMP_HIGH = "TEMP_HIGH"
    TEMP_LOW = "TEMP_LOW"
    HUMIDITY = "HUMIDITY"
    DOOR_OPEN = "DOOR_OPEN"
    EXPIRY_WARNING = "EXPIRY_WARNING"
    EXPIRY_CRITICAL = "EXPIRY_CRITICAL"
    INVENTORY_LOW = "INVENTORY_LOW"
    DOCK_DELAY = "DOCK_DELAY"
    SYSTEM = "SYSTEM"


class AlertSeverity(str, Enum):
    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class AlertStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


class Sensor(Base):
    __tablename__ = "sensors"
    id_prefix = "sensor"

    id = Column(String, primary_key=True, index=True)
    zone_id = Column(String, ForeignKey("zones.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    name_vi = Column(String, nullable=True)
    type = Column(SQLEnum(SensorType, native_enum=False), nullable=False)
    location = Column(String, nullable=True)  # e.g. "Corner A, level 1"
    current_value = Column(Float, nullable=True)
    unit = Column(String, nullable=False, default="°C")
    status = Column(SQLEnum(SensorStatus, native_enum=False), nullable=False, default=SensorStatus.ONLINE)
    last_updated = Column(DateTime, default=utcnow)
    battery_level = Column(Integer, nullable=True)

    # Relationships
    zone = relationship("Zone", lazy="selectin")


class Alert(Base):
    """Anomaly raised by the simulator or seeded; resolved, never deleted"""
    __tablename__ = "alerts"
    id_prefix = "alert"

    id = Column(String, primary_key=True, index=True)
    type = Column(SQLEnum(AlertType, native_enum=False), nullable=False)
    severity = Column(SQLEnum(AlertSeverity, native_enum=False), nullable=False)
    title = Column(String, nullable=False)
    title_vi = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    message_vi = Column(Text, nullable=True)

    warehouse_id = Column(String, ForeignKey("warehouses.id"), nullable=True)
    zone_id = Column(String, ForeignKey("zones.id"), nullable=True)
    sensor_id = Column(String, ForeignKey("sensors.id"), nullable=True, index=True)
    lot_id = Column(String, ForeignKey("lots.id"), nullable=True)

    status = Column(SQLEnum(AlertStatus, native_enum=False), nullable=False, default=AlertStatus.OPEN, index=True)
    created_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String, nullable=True)

    # Relationships
    zone = relationship("Zone", lazy="selectin")
