"""
API endpoint tests for the warehouse, catalog, inventory and telemetry routes.
Each test runs against a freshly seeded in-memory store.
"""


async def _new_location(client, max_qty=1000, **extra):
    payload = {"zone_id": "zone-1", "code": "T-01-01", "max_qty": max_qty, **extra}
    r = await client.post("/api/locations", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


async def _location(client, location_id):
    r = await client.get(f"/api/locations/{location_id}")
    assert r.status_code == 200
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== WAREHOUSES / ZONES =====================


async def test_list_warehouses(client):
    r = await client.get("/api/warehouses")
    assert r.status_code == 200
    assert [w["id"] for w in r.json()] == ["wh-1", "wh-2"]


async def test_get_unknown_warehouse(client):
    r = await client.get("/api/warehouses/wh-404")
    assert r.status_code == 404
    assert r.json()["code"] == "warehouse.not_found"


async def test_list_zones_with_counts(client):
    r = await client.get("/api/zones")
    assert r.status_code == 200
    zones = {z["id"]: z for z in r.json()}
    assert zones["zone-1"]["location_count"] == 10
    assert zones["zone-2"]["warehouse_name"] == "HCM Cold Storage"


async def test_create_zone_validates_band(client):
    r = await client.post("/api/zones", json={
        "warehouse_id": "wh-1", "name": "BAD", "type": "CHILL",
        "temp_min": 8, "temp_max": 2, "temp_target": 5,
    })
    assert r.status_code == 400
    assert r.json()["code"] == "zone.invalid_temperature_band"


async def test_create_zone_unknown_warehouse(client):
    r = await client.post("/api/zones", json={
        "warehouse_id": "wh-404", "name": "Z", "type": "DRY",
        "temp_min": 15, "temp_max": 25, "temp_target": 20,
    })
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference.warehouse_id"


async def test_create_update_delete_zone(client):
    r = await client.post("/api/zones", json={
        "warehouse_id": "wh-2", "name": "DRY ZONE C", "type": "DRY",
        "temp_min": 15, "temp_max": 25, "temp_target": 20,
    })
    assert r.status_code == 200
    zone_id = r.json()["id"]
    assert zone_id.startswith("zone-")

    r = await client.put(f"/api/zones/{zone_id}", json={"temp_target": 30})
    assert r.status_code == 400

    r = await client.put(f"/api/zones/{zone_id}", json={"temp_max": 35, "temp_target": 30})
    assert r.status_code == 200
    assert r.json()["temp_target"] == 30

    r = await client.delete(f"/api/zones/{zone_id}")
    assert r.status_code == 200
    r = await client.get(f"/api/zones/{zone_id}")
    assert r.status_code == 404


async def test_delete_zone_in_use(client):
    r = await client.delete("/api/zones/zone-1")
    assert r.status_code == 409
    assert r.json()["code"] == "zone.in_use"


async def test_narrowing_zone_band_rechecks_sensors(client):
    r = await client.put("/api/zones/zone-1", json={"temp_min": 0, "temp_target": 3, "temp_max": 4})
    assert r.status_code == 200

    sensors = {s["id"]: s for s in (await client.get("/api/sensors")).json()}
    assert sensors["sensor-1"]["status"] == "WARNING"
    assert sensors["sensor-2"]["status"] == "WARNING"
    assert sensors["sensor-3"]["status"] == "ONLINE"

    alerts = (await client.get("/api/alerts", params={"status": "OPEN"})).json()
    zone_1_alerts = [a for a in alerts if a["sensor_id"] in ("sensor-1", "sensor-2")]
    assert {a["sensor_id"] for a in zone_1_alerts} == {"sensor-1", "sensor-2"}
    assert all(a["type"] == "TEMP_HIGH" for a in zone_1_alerts)


async def test_widening_zone_band_clears_warning(client):
    r = await client.put("/api/zones/zone-2", json={"temp_max": -15})
    assert r.status_code == 200

    r = await client.get("/api/sensors/sensor-4")
    assert r.json()["status"] == "ONLINE"

    # the existing alert stays open until someone resolves it
    r = await client.get("/api/alerts/alert-1")
    assert r.json()["status"] == "OPEN"


async def test_renaming_zone_leaves_sensors_alone(client):
    before = (await client.get("/api/sensors/sensor-1")).json()
    r = await client.put("/api/zones/zone-1", json={"name": "CHILL ZONE A1"})
    assert r.status_code == 200
    after = (await client.get("/api/sensors/sensor-1")).json()
    assert after["last_updated"] == before["last_updated"]


# ===================== LOCATIONS =====================


async def test_list_locations(client):
    r = await client.get("/api/locations")
    assert r.status_code == 200
    data = r.json()
    assert len(data) == 20
    assert all(0 <= loc["current_qty"] <= loc["max_qty"] for loc in data)
    assert {loc["zone_name"] for loc in data} == {"CHILL ZONE A", "FROZEN ZONE B"}


async def test_create_location_derives_status(client):
    loc = await _new_location(client)
    assert loc["status"] == "EMPTY"

    loc = await _new_location(client, max_qty=100, current_qty=100, status="EMPTY")
    assert loc["status"] == "FULL"


async def test_create_location_over_capacity(client):
    r = await client.post("/api/locations", json={
        "zone_id": "zone-1", "code": "T-9", "max_qty": 100, "current_qty": 150,
    })
    assert r.status_code == 409
    assert r.json()["code"] == "location.capacity_exceeded"


async def test_update_location_status_follows_fill(client):
    loc = await _new_location(client, current_qty=300)
    assert loc["status"] == "OCCUPIED"

    r = await client.put(f"/api/locations/{loc['id']}", json={"status": "RESERVED"})
    assert r.json()["status"] == "RESERVED"

    # a hold survives qty changes while the slot is partially filled
    r = await client.put(f"/api/locations/{loc['id']}", json={"current_qty": 500})
    assert r.json()["status"] == "RESERVED"

    r = await client.put(f"/api/locations/{loc['id']}", json={"current_qty": 0})
    assert r.json()["status"] == "EMPTY"

    r = await client.put(f"/api/locations/{loc['id']}", json={"current_qty": 200, "status": "FULL"})
    assert r.json()["status"] == "OCCUPIED"


async def test_update_location_rejects_overfill(client):
    loc = await _new_location(client, max_qty=500)
    r = await client.put(f"/api/locations/{loc['id']}", json={"current_qty": 501})
    assert r.status_code == 409

    r = await client.put(f"/api/locations/{loc['id']}", json={"current_qty": -1})
    assert r.status_code == 422


async def test_delete_location_with_inventory(client):
    r = await client.delete("/api/locations/loc-11")
    assert r.status_code == 409
    assert r.json()["code"] == "location.in_use"


# ===================== PRODUCTS / LOTS =====================


async def test_product_crud(client):
    r = await client.post("/api/products", json={
        "sku": "SKU-100", "name": "Frozen Tuna", "temp_class": "FROZEN", "shelf_life_days": 180,
    })
    assert r.status_code == 200
    product_id = r.json()["id"]
    assert r.json()["unit"] == "KG"

    r = await client.put(f"/api/products/{product_id}", json={"name": "Frozen Tuna Loin"})
    assert r.json()["name"] == "Frozen Tuna Loin"

    r = await client.delete(f"/api/products/{product_id}")
    assert r.status_code == 200


async def test_duplicate_sku_rejected(client):
    r = await client.post("/api/products", json={
        "sku": "SKU-001", "name": "Dup", "temp_class": "CHILL", "shelf_life_days": 10,
    })
    assert r.status_code == 409
    assert r.json()["code"] == "product.duplicate_sku"


async def test_delete_product_with_lots(client):
    r = await client.delete("/api/products/prod-1")
    assert r.status_code == 409


async def test_list_lots_includes_product(client):
    r = await client.get("/api/lots")
    assert r.status_code == 200
    lots = {lot["id"]: lot for lot in r.json()}
    assert lots["lot-2"]["product"]["sku"] == "SKU-002"


async def test_create_lot_defaults_available_qty(client):
    r = await client.post("/api/lots", json={
        "product_id": "prod-2", "lot_no": "LOT-NEW", "exp_date": "2030-01-01", "total_qty": 750,
    })
    assert r.status_code == 200
    assert r.json()["available_qty"] == 750
    assert r.json()["status"] == "AVAILABLE"


async def test_create_lot_rejects_bad_quantities(client):
    r = await client.post("/api/lots", json={
        "product_id": "prod-2", "lot_no": "LOT-X", "exp_date": "2030-01-01",
        "total_qty": 100, "available_qty": 80, "allocated_qty": 40,
    })
    assert r.status_code == 400
    assert r.json()["code"] == "lot.invalid_quantities"


# ===================== INVENTORY =====================


async def test_list_inventory_joined(client):
    r = await client.get("/api/inventory")
    assert r.status_code == 200
    rows = r.json()
    assert len(rows) == 9
    row = next(inv for inv in rows if inv["id"] == "inv-1")
    assert row["lot"]["id"] == row["lot_id"]
    assert row["product"]["id"] == "prod-1"
    assert row["location"]["id"] == row["location_id"]
    assert row["zone"]["id"] == "zone-2"


async def test_inventory_fills_and_empties_location(client):
    loc = await _new_location(client, max_qty=1000)

    r = await client.post("/api/inventory", json={"lot_id": "lot-1", "location_id": loc["id"], "qty": 400})
    assert r.status_code == 200
    inv_id = r.json()["id"]
    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 400
    assert loc["status"] == "OCCUPIED"

    r = await client.put(f"/api/inventory/{inv_id}", json={"qty": 1000})
    assert r.status_code == 200
    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 1000
    assert loc["status"] == "FULL"

    r = await client.put(f"/api/inventory/{inv_id}", json={"qty": 400})
    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 400

    r = await client.delete(f"/api/inventory/{inv_id}")
    assert r.status_code == 200
    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 0
    assert loc["status"] == "EMPTY"


async def test_inventory_over_capacity_rejected(client):
    loc = await _new_location(client, max_qty=500, current_qty=200)

    r = await client.post("/api/inventory", json={"lot_id": "lot-1", "location_id": loc["id"], "qty": 301})
    assert r.status_code == 409
    assert r.json()["code"] == "location.capacity_exceeded"

    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 200

    r = await client.get("/api/inventory")
    assert len(r.json()) == 9


async def test_inventory_unknown_references(client):
    r = await client.post("/api/inventory", json={"lot_id": "lot-404", "location_id": "loc-1", "qty": 1})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference.lot_id"

    r = await client.post("/api/inventory", json={"lot_id": "lot-1", "location_id": "loc-404", "qty": 1})
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference.location_id"


async def test_inventory_move_adjusts_both_locations(client):
    source = await _new_location(client, max_qty=1000)
    target = await _new_location(client, max_qty=300, code="T-02-01")

    r = await client.post("/api/inventory", json={"lot_id": "lot-2", "location_id": source["id"], "qty": 250})
    inv_id = r.json()["id"]

    r = await client.put(f"/api/inventory/{inv_id}", json={"location_id": target["id"]})
    assert r.status_code == 200
    assert (await _location(client, source["id"]))["current_qty"] == 0
    assert (await _location(client, source["id"]))["status"] == "EMPTY"
    assert (await _location(client, target["id"]))["current_qty"] == 250

    # move plus growth past the target capacity
    r = await client.put(f"/api/inventory/{inv_id}", json={"location_id": source["id"], "qty": 1200})
    assert r.status_code == 409
    assert (await _location(client, target["id"]))["current_qty"] == 250


async def test_delete_inventory_clamps_at_zero(client, store):
    from coldchain_wms.models import Location

    loc = await _new_location(client, max_qty=1000)
    r = await client.post("/api/inventory", json={"lot_id": "lot-1", "location_id": loc["id"], "qty": 400})
    inv_id = r.json()["id"]

    # fill level edited by hand below the placed inventory
    async with store.transaction() as tx:
        await tx.update(Location, loc["id"], {"current_qty": 100})

    await client.delete(f"/api/inventory/{inv_id}")
    loc = await _location(client, loc["id"])
    assert loc["current_qty"] == 0
    assert loc["status"] == "EMPTY"


async def test_inventory_mutations_keep_all_locations_consistent(client):
    from coldchain_wms.models import derive_location_status, LocationStatus

    r = await client.get("/api/inventory")
    for inv in r.json()[:4]:
        await client.delete(f"/api/inventory/{inv['id']}")
    await client.post("/api/inventory", json={"lot_id": "lot-3", "location_id": "loc-20", "qty": 50})

    for loc in (await client.get("/api/locations")).json():
        assert 0 <= loc["current_qty"] <= loc["max_qty"]
        status = LocationStatus(loc["status"])
        assert derive_location_status(loc["current_qty"], loc["max_qty"], status) == status


# ===================== SENSORS / ALERTS =====================


async def test_list_sensors_with_zone(client):
    r = await client.get("/api/sensors")
    assert r.status_code == 200
    sensors = {s["id"]: s for s in r.json()}
    assert sensors["sensor-4"]["status"] == "WARNING"
    assert sensors["sensor-4"]["zone"]["id"] == "zone-2"


async def test_list_alerts_filtered(client):
    r = await client.get("/api/alerts", params={"status": "OPEN"})
    assert r.status_code == 200
    assert {a["id"] for a in r.json()} == {"alert-1", "alert-2"}

    r = await client.get("/api/alerts", params={"status": "RESOLVED"})
    assert r.json() == []

    r = await client.get("/api/alerts", params={"status": "BOGUS"})
    assert r.status_code == 422


async def test_resolve_alert_is_idempotent(client):
    r = await client.post("/api/alerts/alert-1/resolve", json={"resolved_by": "operator@wms.com"})
    assert r.status_code == 200
    first = r.json()
    assert first["status"] == "RESOLVED"
    assert first["resolved_by"] == "operator@wms.com"
    assert first["resolved_at"] is not None

    r = await client.post("/api/alerts/alert-1/resolve")
    assert r.status_code == 200
    assert r.json()["resolved_at"] == first["resolved_at"]
    assert r.json()["resolved_by"] == "operator@wms.com"


async def test_resolve_unknown_alert(client):
    r = await client.post("/api/alerts/alert-404/resolve")
    assert r.status_code == 404
    assert r.json() == {"detail": "Alert 'alert-404' not found", "code": "alert.not_found"}


async def test_simulator_status(client):
    r = await client.get("/api/simulator")
    assert r.status_code == 200
    assert r.json()["running"] is False
    assert r.json()["tick_count"] == 0
