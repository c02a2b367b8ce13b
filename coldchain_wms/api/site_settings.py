"""
Site settings document - validated and echoed back, never persisted
"""
from fastapi import APIRouter
from typing import List
from pydantic import BaseModel, Field, model_validator

router = APIRouter()


class WarehouseSettings(BaseModel):
    id: str
    name: str = Field(..., min_length=1)
    temp_min: float
    temp_max: float
    alert_threshold: float = Field(..., ge=0)
    auto_alert_enabled: bool = True

    @model_validator(mode="after")
    def check_band(self):
        if self.temp_min > self.temp_max:
            raise ValueError("temp_min cannot exceed temp_max")
        return self


class AlertRules(BaseModel):
    temp_excursion_minutes: int = Field(..., gt=0)
    low_stock_percentage: float = Field(..., ge=0, le=100)
    expiry_warning_days: int = Field(..., ge=0)


class NotificationSettings(BaseModel):
    email_enabled: bool = True
    sms_enabled: bool = True
    push_enabled: bool = True


class SiteSettings(BaseModel):
    warehouses: List[WarehouseSettings]
    alert_rules: AlertRules
    notifications: NotificationSettings

    class Config:
        extra = "forbid"


def default_site_settings() -> SiteSettings:
    return SiteSettings(
        warehouses=[
            WarehouseSettings(
                id="wh-1",
                name="Cold Storage Facility 1",
                temp_min=-25,
                temp_max=8,
                alert_threshold=2.0,
                auto_alert_enabled=True,
            ),
        ],
        alert_rules=AlertRules(
            temp_excursion_minutes=15,
            low_stock_percentage=20,
            expiry_warning_days=7,
        ),
        notifications=NotificationSettings(),
    )


@router.get("", response_model=SiteSettings)
async def get_site_settings():
    return default_site_settings()


@router.put("")
async def update_site_settings(data: SiteSettings):
    return {"success": True, "data": data}
