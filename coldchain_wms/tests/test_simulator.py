"""
Sensor simulator tests - readings, alert deduplication and the task lifecycle.
"""
import asyncio
import random

from coldchain_wms.models import Sensor, SensorStatus, Zone, Alert, AlertType, AlertStatus
from coldchain_wms.services.sensor_simulator import SensorSimulator, apply_reading, sensor_status_for


def _fixed_reading(values: dict):
    """next_value replacement returning a fixed value per zone id"""
    def next_value(zone):
        return values.get(zone.id, zone.temp_target)
    return next_value


async def _open_alerts(store, sensor_id: str) -> list:
    async with store.transaction() as tx:
        return list(await tx.where(Alert, Alert.sensor_id == sensor_id, Alert.status == AlertStatus.OPEN))


# ===================== READINGS =====================


async def test_status_for_reading(store):
    async with store.transaction() as tx:
        zone = await tx.find(Zone, "zone-1")
    assert sensor_status_for(5.0, zone) == SensorStatus.ONLINE
    assert sensor_status_for(2.0, zone) == SensorStatus.ONLINE
    assert sensor_status_for(8.0, zone) == SensorStatus.ONLINE
    assert sensor_status_for(9.1, zone) == SensorStatus.WARNING
    assert sensor_status_for(1.9, zone) == SensorStatus.WARNING


async def test_excursion_raises_single_temp_high_alert(store):
    simulator = SensorSimulator(store, rng=random.Random(1))
    simulator.next_value = _fixed_reading({"zone-1": 9.1})

    result = await simulator.tick()
    assert result.updated == 4

    async with store.transaction() as tx:
        sensor = await tx.find(Sensor, "sensor-1")
        assert sensor.current_value == 9.1
        assert sensor.status == SensorStatus.WARNING

    alerts = await _open_alerts(store, "sensor-1")
    assert len(alerts) == 1
    assert alerts[0].type == AlertType.TEMP_HIGH
    assert alerts[0].zone_id == "zone-1"


async def test_second_tick_does_not_duplicate_open_alert(store):
    simulator = SensorSimulator(store, rng=random.Random(1))
    simulator.next_value = _fixed_reading({"zone-1": 9.1})

    await simulator.tick()
    second = await simulator.tick()

    assert second.alerts_raised == 0
    assert len(await _open_alerts(store, "sensor-1")) == 1
    assert simulator.tick_count == 2


async def test_low_excursion_raises_temp_low(store):
    async with store.transaction() as tx:
        sensor = await tx.find(Sensor, "sensor-2")
        zone = await tx.find(Zone, "zone-1")
        alert = await apply_reading(tx, sensor, zone, 0.5)
    assert alert.type == AlertType.TEMP_LOW
    assert alert.sensor_id == "sensor-2"


async def test_seeded_open_alert_suppresses_new_one(store):
    """sensor-4 starts with an OPEN TEMP_HIGH alert"""
    async with store.transaction() as tx:
        sensor = await tx.find(Sensor, "sensor-4")
        zone = await tx.find(Zone, "zone-2")
        assert await apply_reading(tx, sensor, zone, -10.0) is None
    assert [a.id for a in await _open_alerts(store, "sensor-4")] == ["alert-1"]


async def test_resolved_alert_allows_new_alert(store):
    async with store.transaction() as tx:
        await tx.update(Alert, "alert-1", {"status": AlertStatus.RESOLVED})
        sensor = await tx.find(Sensor, "sensor-4")
        zone = await tx.find(Zone, "zone-2")
        alert = await apply_reading(tx, sensor, zone, -12.0)
    assert alert is not None
    assert len(await _open_alerts(store, "sensor-4")) == 1


async def test_in_range_reading_clears_warning(store):
    async with store.transaction() as tx:
        sensor = await tx.find(Sensor, "sensor-4")
        zone = await tx.find(Zone, "zone-2")
        assert await apply_reading(tx, sensor, zone, -22.0) is None
        assert sensor.status == SensorStatus.ONLINE


async def test_random_ticks_keep_status_and_alert_invariants(store):
    simulator = SensorSimulator(store, rng=random.Random(42), excursion_probability=0.5)
    for _ in range(20):
        await simulator.tick()

        async with store.transaction() as tx:
            sensors = await tx.where(Sensor)
            for sensor in sensors:
                zone = await tx.find(Zone, sensor.zone_id)
                out_of_band = not (zone.temp_min <= sensor.current_value <= zone.temp_max)
                assert (sensor.status == SensorStatus.WARNING) == out_of_band

            open_alerts = await tx.where(Alert, Alert.status == AlertStatus.OPEN, Alert.sensor_id.isnot(None))
            sensor_ids = [alert.sensor_id for alert in open_alerts]
            assert len(sensor_ids) == len(set(sensor_ids))


async def test_next_value_stays_near_target_without_excursions(store):
    simulator = SensorSimulator(store, rng=random.Random(3), excursion_probability=0.0, jitter=1.0)
    zone = Zone(id="zone-x", temp_min=2, temp_max=8, temp_target=5)
    for _ in range(100):
        value = simulator.next_value(zone)
        assert 4.0 <= value <= 6.0
        assert value == round(value, 1)


# ===================== LIFECYCLE =====================


async def test_start_and_stop(store):
    simulator = SensorSimulator(store, interval_seconds=0.01, rng=random.Random(5))
    simulator.start()
    assert simulator.running

    await asyncio.sleep(0.05)
    await simulator.stop()

    assert not simulator.running
    assert simulator.tick_count >= 1
    assert simulator.status()["last_tick_at"] is not None

    # stopping twice is a no-op
    await simulator.stop()


async def test_shutdown_stops_attached_simulator(settings):
    from coldchain_wms.database import DomainStore

    store = DomainStore(settings)
    await store.init()
    store.simulator = SensorSimulator(store, interval_seconds=0.01)
    store.simulator.start()
    await asyncio.sleep(0.02)

    await store.shutdown()
    assert not store.simulator.running
