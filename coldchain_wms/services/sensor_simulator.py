"""
Background sensor simulator.

Every interval it nudges each TEMPERATURE sensor around its zone's target,
occasionally injects a large excursion, re-derives the sensor status and
raises a HIGH severity alert when a sensor leaves its zone's band and has
no OPEN alert yet.

The loop is an explicit asyncio task: ``start()`` schedules it, ``stop()``
cancels it. Ticks run to completion inside one store transaction, so they
never overlap each other or a request handler.
"""
import asyncio
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from coldchain_wms.database import DomainStore, Transaction
from coldchain_wms.models import (
    Sensor, SensorType, SensorStatus, Zone,
    Alert, AlertType, AlertSeverity, AlertStatus,
)
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class TickResult:
    updated: int = 0
    skipped: int = 0
    alerts_raised: int = 0


def sensor_status_for(value: float, zone: Zone) -> SensorStatus:
    if value < zone.temp_min or value > zone.temp_max:
        return SensorStatus.WARNING
    return SensorStatus.ONLINE


async def apply_reading(
    tx: Transaction,
    sensor: Sensor,
    zone: Zone,
    value: float,
    now: Optional[datetime] = None,
) -> Optional[Alert]:
    """
    Persist one reading and raise an alert if needed.

    Returns the newly created alert, or None when the reading is in range
    or the sensor already has an OPEN alert.
    """
    now = now or utcnow()
    status = sensor_status_for(value, zone)
    sensor.current_value = value
    sensor.status = status
    sensor.last_updated = now

    if status != SensorStatus.WARNING:
        return None

    existing = await tx.first(Alert, Alert.sensor_id == sensor.id, Alert.status == AlertStatus.OPEN)
    if existing is not None:
        return None

    alert_type = AlertType.TEMP_HIGH if value > zone.temp_max else AlertType.TEMP_LOW
    alert = await tx.insert(Alert, {
        "type": alert_type,
        "severity": AlertSeverity.HIGH,
        "title": "Temperature Excursion",
        "title_vi": "Vượt ngưỡng nhiệt độ",
        "message": f"{zone.name} temperature is {value:.1f}°C",
        "message_vi": f"Nhiệt độ {zone.name_vi or zone.name} là {value:.1f}°C",
        "warehouse_id": zone.warehouse_id,
        "zone_id": zone.id,
        "sensor_id": sensor.id,
        "created_at": now,
        "status": AlertStatus.OPEN,
    })
    logger.warning(f"Raised {alert_type.value} alert {alert.id} for sensor {sensor.id}: {value:.1f}°C")
    return alert


class SensorSimulator:
    """Cancellable periodic telemetry generator bound to a DomainStore"""

    def __init__(
        self,
        store: DomainStore,
        interval_seconds: float = 5.0,
        rng: Optional[random.Random] = None,
        excursion_probability: float = 0.05,
        excursion_delta: float = 5.0,
        jitter: float = 1.0,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.rng = rng or store.rng
        self.excursion_probability = excursion_probability
        self.excursion_delta = excursion_delta
        self.jitter = jitter

        self.tick_count = 0
        self.last_tick_at: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_value(self, zone: Zone) -> float:
        value = zone.temp_target + self.rng.uniform(-self.jitter, self.jitter)
        if self.rng.random() < self.excursion_probability:
            direction = 1 if self.rng.random() < 0.5 else -1
            value = zone.temp_target + direction * self.excursion_delta
        return round(value, 1)

    async def tick(self, now: Optional[datetime] = None) -> TickResult:
        """Run a single simulation pass over all temperature sensors"""
        now = now or utcnow()
        result = TickResult()

        async with self.store.transaction() as tx:
            sensors = await tx.where(Sensor, Sensor.type == SensorType.TEMPERATURE, order_by=Sensor.id)
            for sensor in sensors:
                zone = await tx.find(Zone, sensor.zone_id)
                if zone is None:
                    result.skipped += 1
                    continue
                alert = await apply_reading(tx, sensor, zone, self.next_value(zone), now)
                result.updated += 1
                if alert is not None:
                    result.alerts_raised += 1

        self.tick_count += 1
        self.last_tick_at = now
        logger.debug(f"Simulator tick {self.tick_count}: {result}")
        return result

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Sensor simulator tick failed: {e}")

            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="sensor-simulator")
        logger.info(f"Sensor simulator started: ticking every {self.interval_seconds}s")

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Sensor simulator stopped after {self.tick_count} ticks")

    def status(self) -> dict:
        return {
            "running": self.running,
            "interval_seconds": self.interval_seconds,
            "tick_count": self.tick_count,
            "last_tick_at": self.last_tick_at,
        }
