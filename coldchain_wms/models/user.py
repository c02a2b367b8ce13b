"""
Dashboard user model
"""
from sqlalchemy import Column, String, DateTime, JSON, Enum
from coldchain_wms.database import Base
from coldchain_wms.utils.helpers import utcnow
import enum


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    SUPERVISOR = "SUPERVISOR"
    OPERATOR = "OPERATOR"
    VIEWER = "VIEWER"


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class User(Base):
    __tablename__ = "users"
    id_prefix = "user"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    name_vi = Column(String, nullable=True)
    role = Column(Enum(UserRole, native_enum=False), nullable=False, default=UserRole.VIEWER)
    warehouse_ids = Column(JSON, nullable=False, default=list)
    status = Column(Enum(UserStatus, native_enum=False), nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime, default=utcnow)
    last_login = Column(DateTime, nullable=True)
