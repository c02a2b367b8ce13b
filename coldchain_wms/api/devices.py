"""
Remote device control endpoints.

The device list is rebuilt from the zones on every call; control commands
are acknowledged but never persisted.
"""
from fastapi import APIRouter, Depends
from typing import Any, Optional
from pydantic import BaseModel

from coldchain_wms.database import DomainStore, Transaction, get_db, get_store
from coldchain_wms.errors import BadRequestError, NotFoundError
from coldchain_wms.models import Zone
from coldchain_wms.services.devices import DEVICE_ACTIONS, build_devices, device_ids
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


class DeviceCommand(BaseModel):
    action: str
    value: Optional[Any] = None


@router.get("")
async def list_devices(
    tx: Transaction = Depends(get_db),
    store: DomainStore = Depends(get_store),
):
    zones = await tx.where(Zone, order_by=Zone.id)
    return build_devices(zones, store.rng, utcnow())


@router.post("/{device_id}/control")
async def control_device(device_id: str, command: DeviceCommand, tx: Transaction = Depends(get_db)):
    zones = await tx.where(Zone, order_by=Zone.id)
    if device_id not in device_ids(zones):
        raise NotFoundError("Device", device_id)
    if command.action not in DEVICE_ACTIONS:
        raise BadRequestError(
            f"Unknown action '{command.action}'; expected one of {', '.join(DEVICE_ACTIONS)}",
            code="device.invalid_action",
        )

    logger.info(f"Device {device_id}: {command.action} {command.value!r}")
    return {
        "success": True,
        "device_id": device_id,
        "action": command.action,
        "value": command.value,
        "timestamp": utcnow(),
    }
