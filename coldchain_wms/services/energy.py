"""
Synthetic solar / battery / grid snapshot driven by time of day
"""
import random
from datetime import datetime
from typing import Any

from coldchain_wms.utils.helpers import round1

PEAK_HOUR = 12.5
PANELS = [
    ("panel-1", "Panel A1", "Roof, zone A", 0.25, 94),
    ("panel-2", "Panel A2", "Roof, zone A", 0.24, 92),
    ("panel-3", "Panel B1", "Roof, zone B", 0.26, 95),
    ("panel-4", "Panel B2", "Roof, zone B", 0.25, 93),
]
FAULT_PROBABILITY = 0.1


def solar_generation(hour: int, rng: random.Random) -> float:
    """kW output; zero outside daylight hours, peaking around 12:30"""
    if 6 <= hour <= 18:
        distance = abs(hour - PEAK_HOUR)
        return round1(max(0.0, 45 - distance * 3) + rng.uniform(0, 5))
    return 0.0


def _battery_status(charge: float) -> str:
    if charge > 80:
        return "CHARGING"
    if charge > 20:
        return "NORMAL"
    return "LOW"


def _panel(panel: tuple, generation: float, rng: random.Random) -> dict[str, Any]:
    panel_id, name, location, share, base_efficiency = panel
    active = "ACTIVE" if generation > 0 else "STANDBY"
    # Panel B2 is the flaky one on site
    if panel_id == "panel-4" and rng.random() < FAULT_PROBABILITY:
        return {
            "id": panel_id,
            "name": name,
            "location": location,
            "status": "FAULT",
            "efficiency": 0.0,
            "current_output": 0.0,
            "max_output": 12,
        }
    return {
        "id": panel_id,
        "name": name,
        "location": location,
        "status": active,
        "efficiency": round1(base_efficiency + rng.uniform(0, 5)),
        "current_output": round1(generation * share),
        "max_output": 12,
    }


def solar_snapshot(now: datetime, rng: random.Random) -> dict[str, Any]:
    generation = solar_generation(now.hour, rng)
    battery_charge = 65 + rng.uniform(0, 10)
    grid_power = max(0.0, 80 - generation + rng.uniform(0, 10))

    return {
        "timestamp": now,
        "solar": {
            "current_generation": generation,
            "today_generation": round1(generation * 10 + 120),
            "month_generation": round1(3450 + rng.uniform(0, 500)),
            "status": "GENERATING" if generation > 0 else "STANDBY",
        },
        "battery": {
            "charge": round1(battery_charge),
            "capacity": 100,
            "status": _battery_status(battery_charge),
            "time_to_full": "0.5h" if battery_charge > 80 else "2.5h",
        },
        "grid": {
            "current_usage": round1(grid_power),
            "today_usage": round1(450 + rng.uniform(0, 50)),
            "cost": round(1250 + rng.uniform(0, 100), 2),
        },
        "savings": {
            "today_savings": round(generation * 0.15 + 18, 2),
            "month_savings": round(425 + rng.uniform(0, 50), 2),
            "co2_reduced": round(2.5 + rng.uniform(0, 0.5), 2),
        },
        "panels": [_panel(panel, generation, rng) for panel in PANELS],
    }
