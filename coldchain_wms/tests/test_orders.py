"""
Inbound / outbound order tests - creation totals, status flow and line progress.
"""
import re
from datetime import datetime, timedelta, timezone

from coldchain_wms.utils.helpers import utcnow
from coldchain_wms.models import (
    InboundStatus, OutboundStatus, INBOUND_FLOW, OUTBOUND_FLOW, can_transition, is_terminal,
)

ETA = (utcnow() + timedelta(days=1)).isoformat()


async def _create_inbound(client, quantities=(100, 250), **extra):
    payload = {
        "warehouse_id": "wh-1",
        "supplier": "Mekong Seafood",
        "eta": ETA,
        "lines": [{"product_id": "prod-1", "expected_qty": qty} for qty in quantities],
        **extra,
    }
    r = await client.post("/api/inbound", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


async def _create_outbound(client, quantities=(120,), **extra):
    payload = {
        "warehouse_id": "wh-1",
        "customer": "Saigon Grill",
        "etd": ETA,
        "lines": [{"product_id": "prod-2", "requested_qty": qty} for qty in quantities],
        **extra,
    }
    r = await client.post("/api/outbound", json=payload)
    assert r.status_code == 200, r.text
    return r.json()


# ===================== STATUS FLOW =====================


def test_forward_transitions_only():
    assert can_transition(INBOUND_FLOW, InboundStatus.PENDING, InboundStatus.RECEIVING)
    assert can_transition(INBOUND_FLOW, InboundStatus.QC, InboundStatus.QC)
    assert not can_transition(INBOUND_FLOW, InboundStatus.QC, InboundStatus.SCHEDULED)
    assert can_transition(OUTBOUND_FLOW, OutboundStatus.PICKING, OutboundStatus.CANCELLED)


def test_terminal_states():
    assert not can_transition(INBOUND_FLOW, InboundStatus.COMPLETED, InboundStatus.CANCELLED)
    assert not can_transition(OUTBOUND_FLOW, OutboundStatus.SHIPPED, OutboundStatus.CANCELLED)
    assert not can_transition(OUTBOUND_FLOW, OutboundStatus.CANCELLED, OutboundStatus.RELEASED)
    assert is_terminal(INBOUND_FLOW, InboundStatus.COMPLETED)
    assert is_terminal(INBOUND_FLOW, InboundStatus.CANCELLED)
    assert not is_terminal(OUTBOUND_FLOW, OutboundStatus.LOADED)


# ===================== INBOUND =====================


async def test_list_inbound(client):
    r = await client.get("/api/inbound")
    assert r.status_code == 200
    orders = {o["id"]: o for o in r.json()}
    assert len(orders) == 5
    assert orders["inb-4"]["lines"][0]["received_qty"] == 280


async def test_create_inbound_totals(client):
    order = await _create_inbound(client)
    assert order["total_qty"] == 350
    assert order["received_qty"] == 0
    assert order["status"] == "PENDING"
    assert len(order["lines"]) == 2
    assert all(line["id"].startswith("line-") for line in order["lines"])
    assert re.fullmatch(r"IB-\d{8}-\d{3}", order["order_no"])


async def test_generated_order_numbers_are_unique(client):
    first = await _create_inbound(client)
    second = await _create_inbound(client)
    assert first["order_no"] != second["order_no"]


async def test_create_inbound_rejects_duplicate_order_no(client):
    r = await client.post("/api/inbound", json={
        "order_no": "IB-20251102-001", "warehouse_id": "wh-1", "supplier": "X", "eta": ETA, "lines": [],
    })
    assert r.status_code == 409


async def test_create_inbound_rejects_late_status(client):
    r = await client.post("/api/inbound", json={
        "warehouse_id": "wh-1", "supplier": "X", "eta": ETA, "status": "COMPLETED", "lines": [],
    })
    assert r.status_code == 400
    assert r.json()["code"] == "order.invalid_status"


async def test_create_inbound_unknown_product(client):
    r = await client.post("/api/inbound", json={
        "warehouse_id": "wh-1", "supplier": "X", "eta": ETA,
        "lines": [{"product_id": "prod-404", "expected_qty": 5}],
    })
    assert r.status_code == 400
    assert r.json()["code"] == "invalid_reference.product_id"


async def test_receiving_progress(client):
    order = await _create_inbound(client)
    line_a, line_b = (line["id"] for line in order["lines"])

    r = await client.put(f"/api/inbound/{order['id']}", json={
        "status": "RECEIVING",
        "lines": [{"id": line_a, "received_qty": 60}],
    })
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "RECEIVING"
    assert data["received_qty"] == 60
    assert data["arrival_time"] is not None

    r = await client.put(f"/api/inbound/{order['id']}", json={
        "lines": [{"id": line_a, "received_qty": 100}, {"id": line_b, "received_qty": 250}],
    })
    assert r.json()["received_qty"] == 350
    assert r.json()["total_qty"] == 350


async def test_receiving_progress_is_monotonic_and_bounded(client):
    order = await _create_inbound(client)
    line_id = order["lines"][0]["id"]
    await client.put(f"/api/inbound/{order['id']}", json={"lines": [{"id": line_id, "received_qty": 50}]})

    r = await client.put(f"/api/inbound/{order['id']}", json={"lines": [{"id": line_id, "received_qty": 40}]})
    assert r.status_code == 422
    assert r.json()["code"] == "order.invalid_update"

    r = await client.put(f"/api/inbound/{order['id']}", json={"lines": [{"id": line_id, "received_qty": 101}]})
    assert r.status_code == 422

    r = await client.get(f"/api/inbound/{order['id']}")
    assert r.json()["received_qty"] == 50


async def test_inbound_status_cannot_go_back(client):
    r = await client.put("/api/inbound/inb-4", json={"status": "SCHEDULED"})
    assert r.status_code == 422
    assert r.json()["code"] == "order.invalid_transition"


async def test_inbound_unknown_line(client):
    r = await client.put("/api/inbound/inb-1", json={"lines": [{"id": "line-404", "received_qty": 1}]})
    assert r.status_code == 404
    assert r.json()["code"] == "inbound_line.not_found"


async def test_inbound_header_update(client):
    r = await client.put("/api/inbound/inb-1", json={"carrier": "Vina Cold", "notes": "dock 3"})
    assert r.status_code == 200
    assert r.json()["carrier"] == "Vina Cold"
    assert r.json()["total_qty"] == 500


async def test_completed_inbound_rejects_progress(client):
    order = await _create_inbound(client)
    line_a = order["lines"][0]["id"]

    r = await client.put(f"/api/inbound/{order['id']}", json={
        "status": "RECEIVING", "lines": [{"id": line_a, "received_qty": 40}],
    })
    assert r.status_code == 200
    r = await client.put(f"/api/inbound/{order['id']}", json={"status": "COMPLETED"})
    assert r.status_code == 200

    r = await client.put(f"/api/inbound/{order['id']}", json={"lines": [{"id": line_a, "received_qty": 50}]})
    assert r.status_code == 422
    assert r.json()["code"] == "order.invalid_update"

    r = await client.get(f"/api/inbound/{order['id']}")
    assert r.json()["received_qty"] == 40


async def test_eta_with_offset_is_stored_as_utc(client):
    order = await _create_inbound(client, eta="2025-11-03T09:00:00+07:00")
    assert datetime.fromisoformat(order["eta"]) == datetime(2025, 11, 3, 2, 0)

    r = await client.put(f"/api/inbound/{order['id']}", json={"eta": "2025-11-03T10:30:00-05:00"})
    assert r.status_code == 200
    assert datetime.fromisoformat(r.json()["eta"]) == datetime(2025, 11, 3, 15, 30)


async def test_eta_offset_counts_toward_the_utc_day(client):
    before = (await client.get("/api/kpis")).json()["inbound_today"]
    # local evening at +07:00 is still midday UTC
    midday_utc = utcnow().replace(hour=12, minute=0, second=0, microsecond=0).replace(tzinfo=timezone.utc)
    local_evening = midday_utc.astimezone(timezone(timedelta(hours=7))).isoformat()

    await _create_inbound(client, eta=local_evening)
    after = (await client.get("/api/kpis")).json()["inbound_today"]
    assert after == before + 1


# ===================== OUTBOUND =====================


async def test_list_outbound(client):
    r = await client.get("/api/outbound")
    assert r.status_code == 200
    assert len(r.json()) == 5


async def test_create_outbound_totals(client):
    order = await _create_outbound(client, quantities=(120, 80), priority="URGENT")
    assert order["total_qty"] == 200
    assert order["picked_qty"] == 0
    assert order["shipped_qty"] == 0
    assert order["priority"] == "URGENT"
    assert order["pick_strategy"] == "FEFO"
    assert re.fullmatch(r"OB-\d{8}-\d{3}", order["order_no"])


async def test_pick_and_ship_progress(client):
    order = await _create_outbound(client)
    line_id = order["lines"][0]["id"]

    r = await client.put(f"/api/outbound/{order['id']}", json={
        "status": "PICKING", "lines": [{"id": line_id, "picked_qty": 120}],
    })
    assert r.status_code == 200
    assert r.json()["picked_qty"] == 120

    r = await client.put(f"/api/outbound/{order['id']}", json={
        "status": "SHIPPED", "lines": [{"id": line_id, "shipped_qty": 120}],
    })
    assert r.status_code == 200
    assert r.json()["shipped_qty"] == 120
    assert r.json()["departure_time"] is not None


async def test_pick_and_ship_bounds(client):
    order = await _create_outbound(client)
    line_id = order["lines"][0]["id"]

    r = await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "picked_qty": 121}]})
    assert r.status_code == 422

    await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "picked_qty": 60}]})
    r = await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "shipped_qty": 61}]})
    assert r.status_code == 422

    r = await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "picked_qty": 30}]})
    assert r.status_code == 422


async def test_shipped_order_is_terminal(client):
    r = await client.put("/api/outbound/out-3", json={"status": "CANCELLED"})
    assert r.status_code == 422


async def test_cancelled_order_rejects_progress(client):
    r = await client.put("/api/outbound/out-1", json={"status": "CANCELLED"})
    assert r.status_code == 200
    r = await client.put("/api/outbound/out-1", json={"lines": [{"id": "out-line-1", "picked_qty": 10}]})
    assert r.status_code == 422


async def test_shipped_order_rejects_progress(client):
    order = await _create_outbound(client)
    line_id = order["lines"][0]["id"]

    r = await client.put(f"/api/outbound/{order['id']}", json={
        "status": "SHIPPED", "lines": [{"id": line_id, "picked_qty": 100, "shipped_qty": 90}],
    })
    assert r.status_code == 200

    r = await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "shipped_qty": 100}]})
    assert r.status_code == 422
    r = await client.put(f"/api/outbound/{order['id']}", json={"lines": [{"id": line_id, "picked_qty": 120}]})
    assert r.status_code == 422

    r = await client.get(f"/api/outbound/{order['id']}")
    assert r.json()["picked_qty"] == 100
    assert r.json()["shipped_qty"] == 90


async def test_etd_with_offset_is_stored_as_utc(client):
    order = await _create_outbound(client, etd="2025-11-03T09:00:00+07:00")
    assert datetime.fromisoformat(order["etd"]) == datetime(2025, 11, 3, 2, 0)
