"""
Synthetic remote-controllable devices derived from the zone list
"""
import random
from datetime import datetime
from typing import Any, Iterable

from coldchain_wms.models import Zone

DEVICE_ACTIONS = ("toggle", "setSpeed", "setMode", "setTemperature", "setBrightness", "reset")

OFFICE_HEATER_ID = "heater-1"


def _device(device_id: str, name: str, device_type: str, zone: Zone, status: str, power: float,
            now: datetime, **extra: Any) -> dict[str, Any]:
    return {
        "id": device_id,
        "name": name,
        "type": device_type,
        "zone": zone.name_vi or zone.name,
        "zone_id": zone.id,
        "status": status,
        "power": round(power, 2),
        "last_updated": now,
        **extra,
    }


def build_devices(zones: Iterable[Zone], rng: random.Random, now: datetime) -> list[dict[str, Any]]:
    """Compressor, fan and door per zone, a light on every other zone, plus the office heater"""
    devices: list[dict[str, Any]] = []
    for index, zone in enumerate(zones):
        label = zone.name_vi or zone.name
        devices.append(_device(
            f"comp-{zone.id}", f"Compressor {label}", "COMPRESSOR", zone, "ON",
            15 + rng.uniform(0, 5), now, temperature=zone.temp_target,
        ))
        devices.append(_device(
            f"fan-{zone.id}", f"Fan {label}", "FAN", zone, "ON",
            2 + rng.uniform(0, 1), now, speed=75,
        ))
        if index % 2 == 0:
            devices.append(_device(
                f"light-{zone.id}", f"Light {label}", "LIGHT", zone, "OFF",
                0, now, brightness=0,
            ))
        devices.append(_device(
            f"door-{zone.id}", f"Door {label}", "DOOR", zone, "OFF", 0.5, now,
        ))

    devices.append({
        "id": OFFICE_HEATER_ID,
        "name": "Office work-area heater",
        "type": "HEATER",
        "zone": "Office",
        "zone_id": "office-1",
        "status": "OFF",
        "power": 0,
        "temperature": 22,
        "last_updated": now,
    })
    return devices


def device_ids(zones: Iterable[Zone]) -> set[str]:
    """Ids ``build_devices`` would produce for ``zones``"""
    ids = {OFFICE_HEATER_ID}
    for index, zone in enumerate(zones):
        ids.update({f"comp-{zone.id}", f"fan-{zone.id}", f"door-{zone.id}"})
        if index % 2 == 0:
            ids.add(f"light-{zone.id}")
    return ids
