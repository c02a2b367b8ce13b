"""
Authentication endpoints - email login issuing a bearer token
"""
from datetime import datetime, timedelta
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pydantic import BaseModel, Field
from sqlalchemy import func

from coldchain_wms.config import Settings
from coldchain_wms.database import Transaction, get_db
from coldchain_wms.errors import AuthError
from coldchain_wms.models import User, UserRole, UserStatus
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# --- Pydantic Schemas ---

class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: Optional[str] = None  # accepted from the login form, not checked


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    name_vi: Optional[str]
    role: UserRole
    warehouse_ids: List[str]
    status: UserStatus
    last_login: Optional[datetime]

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


# --- Token helpers ---

def create_access_token(
    data: dict[str, Any],
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    tx: Transaction = Depends(get_db),
) -> User:
    if not token:
        raise AuthError("Not authenticated", code="auth.missing_token")

    settings: Settings = request.app.state.settings
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise AuthError("Invalid token", code="auth.invalid_token") from exc

    user_id = payload.get("sub")
    user = await tx.find(User, user_id) if user_id else None
    if user is None or user.status != UserStatus.ACTIVE:
        raise AuthError("Invalid token", code="auth.invalid_token")
    return user


# --- Endpoints ---

@router.post("/login", response_model=LoginResponse)
async def login(data: LoginRequest, request: Request, tx: Transaction = Depends(get_db)):
    """Validate the email against known users and issue a token"""
    email = data.email.strip().lower()
    user = await tx.first(User, func.lower(User.email) == email)
    if user is None or user.status != UserStatus.ACTIVE:
        logger.info(f"Rejected login for {email}")
        raise AuthError("Invalid credentials")

    user.last_login = utcnow()
    await tx.session.flush()

    token = create_access_token(
        data={"sub": user.id, "role": user.role.value},
        settings=request.app.state.settings,
    )
    return LoginResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
