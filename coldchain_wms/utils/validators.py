"""
Input validation utilities shared by the routers
"""
from typing import Any, Optional

from coldchain_wms.database import Transaction
from coldchain_wms.errors import BadRequestError, CapacityExceeded


def validate_temperature_band(temp_min: float, temp_target: float, temp_max: float) -> None:
    """Zone bounds must satisfy min <= target <= max"""
    if not (temp_min <= temp_target <= temp_max):
        raise BadRequestError(
            f"Temperature band must satisfy temp_min <= temp_target <= temp_max "
            f"(got {temp_min} / {temp_target} / {temp_max})",
            code="zone.invalid_temperature_band",
        )


def validate_location_capacity(current_qty: float, max_qty: float, location_id: Optional[str] = None) -> None:
    label = f"Location '{location_id}'" if location_id else "Location"
    if max_qty <= 0:
        raise BadRequestError(f"{label} max_qty must be positive", code="location.invalid_capacity")
    if current_qty < 0:
        raise BadRequestError(f"{label} current_qty cannot be negative", code="location.invalid_quantity")
    if current_qty > max_qty:
        raise CapacityExceeded(f"{label} would hold {current_qty} of max {max_qty}")


async def require_reference(tx: Transaction, model: type, record_id: Any, field: str) -> Any:
    """Resolve an id referenced from a request body, as a 400 rather than a 404"""
    record = await tx.find(model, record_id)
    if record is None:
        raise BadRequestError(f"Unknown {field} '{record_id}'", code=f"invalid_reference.{field}")
    return record
