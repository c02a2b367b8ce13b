"""
Demo dataset for the cold-chain warehouse.

Runs once against an empty store. All randomness comes from the injected
``random.Random`` so a given seed always yields the same dataset.
"""
import random
from datetime import timedelta
from typing import Any

from coldchain_wms.database import Transaction
from coldchain_wms.models import (
    User, UserRole, UserStatus,
    Warehouse, Zone, ZoneType, Location, LocationStatus, derive_location_status,
    Product, TempClass, Lot, LotStatus, Inventory,
    Sensor, SensorType, SensorStatus, Alert, AlertType, AlertSeverity, AlertStatus,
    InboundOrder, InboundLine, InboundStatus,
    OutboundOrder, OutboundLine, OutboundStatus, Priority,
)
from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.utils.logger import get_logger

logger = get_logger(__name__)

LOCATION_STATUS_WEIGHTS = [
    (LocationStatus.EMPTY, 0.15),
    (LocationStatus.OCCUPIED, 0.45),
    (LocationStatus.FULL, 0.25),
    (LocationStatus.RESERVED, 0.10),
    (LocationStatus.BLOCKED, 0.05),
]

# Fill ratio range per partially filled status
FILL_RANGES = {
    LocationStatus.OCCUPIED: (0.10, 0.95),
    LocationStatus.RESERVED: (0.20, 0.50),
    LocationStatus.BLOCKED: (0.10, 0.50),
}

ADMIN_EMAIL = "admin@wms.com"


def pick_location_status(rng: random.Random) -> LocationStatus:
    roll = rng.random()
    cumulative = 0.0
    for status, weight in LOCATION_STATUS_WEIGHTS:
        cumulative += weight
        if roll < cumulative:
            return status
    return LocationStatus.OCCUPIED


def initial_qty(status: LocationStatus, max_qty: int, rng: random.Random) -> int:
    """Fill level consistent with ``status`` (EMPTY is 0, FULL is max)"""
    if status == LocationStatus.EMPTY:
        return 0
    if status == LocationStatus.FULL:
        return max_qty
    low, high = FILL_RANGES[status]
    qty = int(max_qty * rng.uniform(low, high))
    return min(max(qty, 1), max_qty - 1)


async def _seed_users(tx: Transaction) -> None:
    users = [
        ("user-1", ADMIN_EMAIL, "Đình Phương", "Đình Phương", UserRole.ADMIN, ["wh-1", "wh-2"]),
        ("user-2", "supervisor@wms.com", "Supervisor User", "Giám sát viên", UserRole.SUPERVISOR, ["wh-1"]),
        ("user-3", "operator@wms.com", "Operator User", "Nhân viên kho", UserRole.OPERATOR, ["wh-1"]),
    ]
    for user_id, email, name, name_vi, role, warehouse_ids in users:
        await tx.insert(User, {
            "id": user_id,
            "email": email,
            "name": name,
            "name_vi": name_vi,
            "role": role,
            "warehouse_ids": warehouse_ids,
            "status": UserStatus.ACTIVE,
        })


async def _seed_locations(tx: Transaction, rng: random.Random) -> list[Location]:
    locations = []
    for i in range(1, 21):
        level = str((i + 4) // 5).zfill(2)
        slot = str(i % 5 or 5).zfill(2)
        max_qty = 800 + rng.randrange(400)
        status = pick_location_status(rng)
        location = await tx.insert(Location, {
            "id": f"loc-{i}",
            "zone_id": "zone-1" if i <= 10 else "zone-2",
            "code": f"A-{level}-{slot}",
            "rack": "A",
            "level": level,
            "slot": slot,
            "max_qty": max_qty,
            "current_qty": initial_qty(status, max_qty, rng),
            "cubic": round(rng.uniform(8, 12), 2),
            "status": status,
        })
        locations.append(location)
    return locations


async def _seed_catalog(tx: Transaction, rng: random.Random, locations: list[Location]) -> int:
    today = utcnow().date()
    products = [
        {
            "id": "prod-1", "sku": "SKU-001", "name": "Frozen Salmon", "name_vi": "Cá hồi đông lạnh",
            "unit": "KG", "temp_class": TempClass.FROZEN, "shelf_life_days": 90,
            "weight": 1, "cubic": 0.01, "category": "SEAFOOD",
        },
        {
            "id": "prod-2", "sku": "SKU-002", "name": "Fresh Beef", "name_vi": "Thịt bò tươi",
            "unit": "KG", "temp_class": TempClass.CHILL, "shelf_life_days": 30,
            "weight": 1, "cubic": 0.008, "category": "MEAT",
        },
        {
            "id": "prod-3", "sku": "SKU-003", "name": "Frozen Shrimp", "name_vi": "Tôm đông lạnh",
            "unit": "KG", "temp_class": TempClass.FROZEN, "shelf_life_days": 120,
            "weight": 1, "cubic": 0.012, "category": "SEAFOOD",
        },
    ]
    # Chill stock goes to zone-1 slots, frozen stock to zone-2 slots
    placement = {"prod-1": [11, 12, 13], "prod-2": [1, 2, 3], "prod-3": [14, 15, 16]}
    by_number = {int(loc.id.split("-")[1]): loc for loc in locations}

    inventory_count = 0
    for idx, data in enumerate(products, start=1):
        product = await tx.insert(Product, data)
        mfg_date = today - timedelta(days=18)
        lot = await tx.insert(Lot, {
            "id": f"lot-{idx}",
            "product_id": product.id,
            "lot_no": f"LOT-{mfg_date:%Y%m%d}-{idx:03d}",
            "mfg_date": mfg_date,
            "exp_date": mfg_date + timedelta(days=product.shelf_life_days),
            "origin_country": "VN",
            "supplier": "Supplier ABC",
            "total_qty": 5000,
            "available_qty": 5000,
            "allocated_qty": 0,
            "status": LotStatus.AVAILABLE,
        })

        for number in placement[product.id]:
            location = by_number[number]
            qty = min(rng.randint(100, 599), location.max_qty)
            inventory_count += 1
            await tx.insert(Inventory, {
                "id": f"inv-{inventory_count}",
                "lot_id": lot.id,
                "location_id": location.id,
                "qty": qty,
            })
            if location.current_qty < qty:
                location.current_qty = qty
            location.status = derive_location_status(location.current_qty, location.max_qty, location.status)
    return inventory_count


async def _seed_telemetry(tx: Transaction) -> None:
    now = utcnow()
    sensors = [
        ("sensor-1", "zone-1", "CHILL-TEMP-01", "Cảm biến nhiệt độ KHU MÁT 01", "Corner A, level 1", 5.2, SensorStatus.ONLINE, 95),
        ("sensor-2", "zone-1", "CHILL-TEMP-02", "Cảm biến nhiệt độ KHU MÁT 02", "Corner B, level 2", 4.8, SensorStatus.ONLINE, 88),
        ("sensor-3", "zone-2", "FROZEN-TEMP-01", "Cảm biến nhiệt độ KHU ĐÔNG 01", "Corner A, level 1", -21.5, SensorStatus.ONLINE, 92),
        # Above the frozen zone's -18 °C ceiling, paired with alert-1
        ("sensor-4", "zone-2", "FROZEN-TEMP-02", "Cảm biến nhiệt độ KHU ĐÔNG 02", "Corner B, level 2", -17.4, SensorStatus.WARNING, 78),
    ]
    for sensor_id, zone_id, name, name_vi, location, value, status, battery in sensors:
        await tx.insert(Sensor, {
            "id": sensor_id,
            "zone_id": zone_id,
            "name": name,
            "name_vi": name_vi,
            "type": SensorType.TEMPERATURE,
            "location": location,
            "current_value": value,
            "unit": "°C",
            "status": status,
            "last_updated": now,
            "battery_level": battery,
        })

    await tx.insert(Alert, {
        "id": "alert-1",
        "type": AlertType.TEMP_HIGH,
        "severity": AlertSeverity.HIGH,
        "title": "Temperature Excursion",
        "title_vi": "Vượt ngưỡng nhiệt độ",
        "message": "FROZEN ZONE B temperature is above threshold",
        "message_vi": "Nhiệt độ KHU ĐÔNG B vượt ngưỡng cho phép",
        "warehouse_id": "wh-1",
        "zone_id": "zone-2",
        "sensor_id": "sensor-4",
        "created_at": now - timedelta(hours=1),
        "status": AlertStatus.OPEN,
    })
    await tx.insert(Alert, {
        "id": "alert-2",
        "type": AlertType.EXPIRY_WARNING,
        "severity": AlertSeverity.MEDIUM,
        "title": "Products Expiring Soon",
        "title_vi": "Sản phẩm sắp hết hạn",
        "message": "3 lots expiring within 7 days",
        "message_vi": "3 lô hàng sẽ hết hạn trong vòng 7 ngày",
        "warehouse_id": "wh-1",
        "lot_id": "lot-1",
        "created_at": now - timedelta(hours=2),
        "status": AlertStatus.OPEN,
    })


async def _seed_orders(tx: Transaction) -> int:
    now = utcnow()
    inbound = [
        # id, order_no, supplier, carrier, trailer, eta offset (h), status, product, expected, received
        ("inb-1", "IB-20251102-001", "Fresh Seafood Co.", "DHL Cold Chain", "TRL-1234", 24, InboundStatus.PENDING, "prod-1", 500, 0),
        ("inb-2", "IB-20251102-002", "Wagyu Beef Ltd", "FedEx Frozen", "TRL-5678", 48, InboundStatus.SCHEDULED, "prod-2", 300, 0),
        ("inb-3", "IB-20251101-015", "Frozen Veg Corp", "Local Transport", "TRL-9999", -1, InboundStatus.COMPLETED, "prod-3", 800, 800),
        ("inb-4", "IB-20251102-003", "Ocean Fresh Ltd.", "Cold Chain Express", "TRL-4444", -0.5, InboundStatus.RECEIVING, "prod-1", 450, 280),
        ("inb-5", "IB-20251102-004", "Premium Meat Suppliers", "Frozen Logistics", "TRL-5555", 6, InboundStatus.SCHEDULED, "prod-2", 380, 0),
    ]
    for n, (order_id, order_no, supplier, carrier, trailer, eta_h, status, product_id, expected, received) in enumerate(inbound, start=1):
        eta = now + timedelta(hours=eta_h)
        order = InboundOrder(
            id=order_id,
            order_no=order_no,
            warehouse_id="wh-1",
            supplier=supplier,
            carrier=carrier,
            trailer_no=trailer,
            eta=eta,
            arrival_time=eta if status in (InboundStatus.RECEIVING, InboundStatus.COMPLETED) else None,
            status=status,
            total_qty=expected,
            received_qty=received,
            created_by=ADMIN_EMAIL,
            lines=[InboundLine(id=f"line-{n}", product_id=product_id, expected_qty=expected, received_qty=received)],
        )
        await tx.insert(InboundOrder, order)

    outbound = [
        # id, order_no, customer, address, carrier, trailer, etd offset (h), status, priority, product, requested, picked, shipped
        ("out-1", "OB-20251102-001", "Seafood Restaurant Chain", "123 Restaurant St., District 1, HCMC", "Express Cold Logistics", "TRL-2001", 12, OutboundStatus.RELEASED, Priority.HIGH, "prod-1", 250, 0, 0),
        ("out-2", "OB-20251102-002", "Premium Steakhouse", "456 Food Court, District 3, HCMC", "Premium Transport", "TRL-2002", 24, OutboundStatus.PICKING, Priority.URGENT, "prod-2", 150, 75, 0),
        ("out-3", "OB-20251101-025", "Hotel Food Services", "789 Hotel Blvd., District 7, HCMC", "Local Delivery", "TRL-2003", -2, OutboundStatus.SHIPPED, Priority.NORMAL, "prod-3", 500, 500, 500),
        ("out-4", "OB-20251102-003", "Supermarket Chain", "321 Market St., District 5, HCMC", "Fast Delivery", "TRL-2004", 4, OutboundStatus.PICKED, Priority.HIGH, "prod-1", 180, 180, 0),
        ("out-5", "OB-20251102-004", "Restaurant Group", "555 Food Plaza, District 2, HCMC", "Quick Transport", "TRL-2005", 8, OutboundStatus.LOADED, Priority.NORMAL, "prod-2", 220, 220, 0),
    ]
    for n, (order_id, order_no, customer, address, carrier, trailer, etd_h, status, priority, product_id, requested, picked, shipped) in enumerate(outbound, start=1):
        etd = now + timedelta(hours=etd_h)
        order = OutboundOrder(
            id=order_id,
            order_no=order_no,
            warehouse_id="wh-1",
            customer=customer,
            customer_address=address,
            carrier=carrier,
            trailer_no=trailer,
            etd=etd,
            departure_time=etd if status == OutboundStatus.SHIPPED else None,
            status=status,
            priority=priority,
            total_qty=requested,
            picked_qty=picked,
            shipped_qty=shipped,
            created_by=ADMIN_EMAIL,
            lines=[OutboundLine(
                id=f"out-line-{n}", product_id=product_id,
                requested_qty=requested, picked_qty=picked, shipped_qty=shipped,
            )],
        )
        await tx.insert(OutboundOrder, order)

    return len(inbound) + len(outbound)


async def seed_database(tx: Transaction, rng: random.Random) -> dict[str, Any]:
    """Populate an empty store; returns a count per seeded collection."""
    if await tx.first(Warehouse) is not None:
        logger.info("Store already seeded, skipping")
        return {}

    await _seed_users(tx)

    await tx.insert(Warehouse, {
        "id": "wh-1",
        "name": "HCM Cold Storage",
        "name_vi": "Kho Lạnh TP.HCM",
        "code": "HCM-01",
        "address": "123 Đường D1, Khu Công Nghệ Cao, TP.HCM",
        "lat": 10.8231,
        "lng": 106.6297,
        "total_capacity": 50000,
        "used_capacity": 35000,
    })
    await tx.insert(Warehouse, {
        "id": "wh-2",
        "name": "Long An Distribution Center",
        "name_vi": "Trung Tâm Phân Phối Long An",
        "code": "LA-01",
        "address": "456 Quốc Lộ 1A, Long An",
        "lat": 10.5356,
        "lng": 106.4056,
        "total_capacity": 30000,
        "used_capacity": 20000,
    })

    await tx.insert(Zone, {
        "id": "zone-1",
        "warehouse_id": "wh-1",
        "name": "CHILL ZONE A",
        "name_vi": "KHU MÁT A",
        "type": ZoneType.CHILL,
        "temp_min": 2,
        "temp_max": 8,
        "temp_target": 5,
        "capacity": 25000,
        "used": 18000,
    })
    await tx.insert(Zone, {
        "id": "zone-2",
        "warehouse_id": "wh-1",
        "name": "FROZEN ZONE B",
        "name_vi": "KHU ĐÔNG B",
        "type": ZoneType.FROZEN,
        "temp_min": -25,
        "temp_max": -18,
        "temp_target": -22,
        "capacity": 25000,
        "used": 17000,
    })

    locations = await _seed_locations(tx, rng)
    inventory_count = await _seed_catalog(tx, rng, locations)
    await _seed_telemetry(tx)
    order_count = await _seed_orders(tx)
    await tx.session.flush()

    return {
        "users": 3,
        "warehouses": 2,
        "zones": 2,
        "locations": len(locations),
        "products": 3,
        "lots": 3,
        "inventory": inventory_count,
        "sensors": 4,
        "alerts": 2,
        "orders": order_count,
    }
