"""
Inbound (receiving) and outbound (shipping) order endpoints.

Order totals are never taken from the client: they are recomputed from the
lines after every create or update. Line progress only moves forward and
stays within the quantities the line asks for.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator

from coldchain_wms.database import Transaction, get_db, generate_id
from coldchain_wms.errors import BadRequestError, ConflictError, InvalidOrderUpdate, NotFoundError
from coldchain_wms.models import (
    Warehouse, Product,
    InboundOrder, InboundLine, InboundStatus, INBOUND_FLOW,
    OutboundOrder, OutboundLine, OutboundStatus, OUTBOUND_FLOW,
    Priority, PickStrategy, can_transition, is_terminal,
)
from coldchain_wms.utils.helpers import to_naive_utc, utcnow
from coldchain_wms.utils.logger import get_logger
from coldchain_wms.utils.validators import require_reference

logger = get_logger(__name__)

inbound_router = APIRouter()
outbound_router = APIRouter()


# --- Pydantic Schemas ---

class InboundLineResponse(BaseModel):
    id: str
    product_id: str
    expected_qty: float
    received_qty: float

    class Config:
        from_attributes = True


class InboundResponse(BaseModel):
    id: str
    order_no: str
    warehouse_id: str
    supplier: str
    carrier: Optional[str]
    trailer_no: Optional[str]
    eta: datetime
    arrival_time: Optional[datetime]
    status: InboundStatus
    total_qty: float
    received_qty: float
    notes: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]
    lines: List[InboundLineResponse] = []

    class Config:
        from_attributes = True


class InboundLineCreate(BaseModel):
    id: Optional[str] = None
    product_id: str
    expected_qty: float = Field(..., gt=0)


class InboundCreate(BaseModel):
    id: Optional[str] = None
    order_no: Optional[str] = None
    warehouse_id: str
    supplier: str = Field(..., min_length=1)
    carrier: Optional[str] = None
    trailer_no: Optional[str] = None
    eta: datetime
    status: InboundStatus = InboundStatus.PENDING
    notes: Optional[str] = None
    created_by: Optional[str] = None
    lines: List[InboundLineCreate] = []

    @field_validator("eta")
    @classmethod
    def normalize_eta(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    class Config:
        extra = "forbid"


class InboundLineProgress(BaseModel):
    id: str
    received_qty: float = Field(..., ge=0)


class InboundUpdate(BaseModel):
    supplier: Optional[str] = Field(None, min_length=1)
    carrier: Optional[str] = None
    trailer_no: Optional[str] = None
    eta: Optional[datetime] = None
    notes: Optional[str] = None
    status: Optional[InboundStatus] = None
    lines: Optional[List[InboundLineProgress]] = None

    @field_validator("eta")
    @classmethod
    def normalize_eta(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    class Config:
        extra = "forbid"


class OutboundLineResponse(BaseModel):
    id: str
    product_id: str
    requested_qty: float
    picked_qty: float
    shipped_qty: float

    class Config:
        from_attributes = True


class OutboundResponse(BaseModel):
    id: str
    order_no: str
    warehouse_id: str
    customer: str
    customer_address: Optional[str]
    carrier: Optional[str]
    trailer_no: Optional[str]
    etd: datetime
    departure_time: Optional[datetime]
    status: OutboundStatus
    priority: Priority
    pick_strategy: PickStrategy
    total_qty: float
    picked_qty: float
    shipped_qty: float
    notes: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]
    lines: List[OutboundLineResponse] = []

    class Config:
        from_attributes = True


class OutboundLineCreate(BaseModel):
    id: Optional[str] = None
    product_id: str
    requested_qty: float = Field(..., gt=0)


class OutboundCreate(BaseModel):
    id: Optional[str] = None
    order_no: Optional[str] = None
    warehouse_id: str
    customer: str = Field(..., min_length=1)
    customer_address: Optional[str] = None
    carrier: Optional[str] = None
    trailer_no: Optional[str] = None
    etd: datetime
    priority: Priority = Priority.NORMAL
    pick_strategy: PickStrategy = PickStrategy.FEFO
    notes: Optional[str] = None
    created_by: Optional[str] = None
    lines: List[OutboundLineCreate] = []

    @field_validator("etd")
    @classmethod
    def normalize_etd(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    class Config:
        extra = "forbid"


class OutboundLineProgress(BaseModel):
    id: str
    picked_qty: Optional[float] = Field(None, ge=0)
    shipped_qty: Optional[float] = Field(None, ge=0)


class OutboundUpdate(BaseModel):
    customer: Optional[str] = Field(None, min_length=1)
    customer_address: Optional[str] = None
    carrier: Optional[str] = None
    trailer_no: Optional[str] = None
    etd: Optional[datetime] = None
    priority: Optional[Priority] = None
    pick_strategy: Optional[PickStrategy] = None
    notes: Optional[str] = None
    status: Optional[OutboundStatus] = None
    lines: Optional[List[OutboundLineProgress]] = None

    @field_validator("etd")
    @classmethod
    def normalize_etd(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)

    class Config:
        extra = "forbid"


# --- Helpers ---

async def next_order_no(tx: Transaction, model, prefix: str) -> str:
    """``<prefix>-YYYYMMDD-NNN``, numbered after today's existing orders"""
    stem = f"{prefix}-{utcnow():%Y%m%d}-"
    result = await tx.session.execute(
        select(func.count()).select_from(model).where(model.order_no.like(f"{stem}%"))
    )
    sequence = result.scalar_one() + 1
    while await tx.first(model, model.order_no == f"{stem}{sequence:03d}") is not None:
        sequence += 1
    return f"{stem}{sequence:03d}"


async def _prepare_header(tx: Transaction, model, data, prefix: str) -> str:
    await require_reference(tx, Warehouse, data.warehouse_id, "warehouse_id")
    if data.id and await tx.find(model, data.id):
        raise ConflictError(f"Order '{data.id}' already exists", code="order.duplicate")
    if data.order_no:
        if await tx.first(model, model.order_no == data.order_no) is not None:
            raise ConflictError(f"Order number '{data.order_no}' already exists", code="order.duplicate_order_no")
        return data.order_no
    return await next_order_no(tx, model, prefix)


async def _check_lines(tx: Transaction, line_model, lines) -> None:
    seen = set()
    for line in lines:
        await require_reference(tx, Product, line.product_id, "product_id")
        if line.id:
            if line.id in seen or await tx.find(line_model, line.id):
                raise ConflictError(f"Line '{line.id}' already exists", code="order.duplicate_line")
            seen.add(line.id)


def _check_transition(flow: list, current: Enum, target: Optional[Enum]) -> None:
    if target is not None and not can_transition(flow, current, target):
        raise InvalidOrderUpdate(
            f"Cannot move order from {current.value} to {target.value}",
            code="order.invalid_transition",
        )


def _check_progress(field: str, line_id: str, current: float, new: float, limit: float) -> None:
    if new < current:
        raise InvalidOrderUpdate(f"Line '{line_id}': {field} cannot decrease ({current} -> {new})")
    if new > limit:
        raise InvalidOrderUpdate(f"Line '{line_id}': {field} {new} exceeds {limit}")


def _line_index(order) -> dict:
    return {line.id: line for line in order.lines}


def _reached(flow: list, status: Enum, milestone: Enum) -> bool:
    return status in flow and flow.index(status) >= flow.index(milestone)


# --- Inbound endpoints ---

@inbound_router.get("", response_model=List[InboundResponse])
async def list_inbound(tx: Transaction = Depends(get_db)):
    return await tx.where(InboundOrder, order_by=InboundOrder.eta)


@inbound_router.get("/{order_id}", response_model=InboundResponse)
async def get_inbound(order_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(InboundOrder, order_id)


@inbound_router.post("", response_model=InboundResponse)
async def create_inbound(data: InboundCreate, tx: Transaction = Depends(get_db)):
    """Create a receiving order; totals come from the lines"""
    if data.status not in (InboundStatus.PENDING, InboundStatus.SCHEDULED):
        raise BadRequestError(
            f"New inbound orders start PENDING or SCHEDULED, not {data.status.value}",
            code="order.invalid_status",
        )
    order_no = await _prepare_header(tx, InboundOrder, data, "IB")
    await _check_lines(tx, InboundLine, data.lines)

    header = data.model_dump(exclude={"lines", "order_no"}, exclude_none=True)
    order = InboundOrder(
        **header,
        order_no=order_no,
        total_qty=sum(line.expected_qty for line in data.lines),
        received_qty=0,
        created_at=utcnow(),
        lines=[
            InboundLine(
                id=line.id or generate_id(InboundLine.id_prefix),
                product_id=line.product_id,
                expected_qty=line.expected_qty,
                received_qty=0,
            )
            for line in data.lines
        ],
    )
    order = await tx.insert(InboundOrder, order)
    logger.info(f"Created inbound order {order.order_no} with {len(order.lines)} lines")
    return order


@inbound_router.put("/{order_id}", response_model=InboundResponse)
async def update_inbound(order_id: str, data: InboundUpdate, tx: Transaction = Depends(get_db)):
    """Patch header fields, advance status and record receiving progress"""
    order = await tx.require(InboundOrder, order_id)
    updates = data.model_dump(exclude={"lines"}, exclude_none=True)
    _check_transition(INBOUND_FLOW, order.status, data.status)

    if data.lines:
        if is_terminal(INBOUND_FLOW, order.status):
            raise InvalidOrderUpdate(f"Inbound order '{order_id}' is {order.status.value}")
        lines = _line_index(order)
        for progress in data.lines:
            line = lines.get(progress.id)
            if line is None:
                raise NotFoundError("Inbound line", progress.id)
            _check_progress("received_qty", line.id, line.received_qty, progress.received_qty, line.expected_qty)
            line.received_qty = progress.received_qty

    updates["total_qty"] = sum(line.expected_qty for line in order.lines)
    updates["received_qty"] = sum(line.received_qty for line in order.lines)

    status = updates.get("status", order.status)
    if order.arrival_time is None and _reached(INBOUND_FLOW, status, InboundStatus.RECEIVING):
        updates["arrival_time"] = utcnow()
    if status != order.status:
        logger.info(f"Inbound order {order.order_no}: {order.status.value} -> {status.value}")
    return await tx.update(InboundOrder, order_id, updates)


# --- Outbound endpoints ---

@outbound_router.get("", response_model=List[OutboundResponse])
async def list_outbound(tx: Transaction = Depends(get_db)):
    return await tx.where(OutboundOrder, order_by=OutboundOrder.etd)


@outbound_router.get("/{order_id}", response_model=OutboundResponse)
async def get_outbound(order_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(OutboundOrder, order_id)


@outbound_router.post("", response_model=OutboundResponse)
async def create_outbound(data: OutboundCreate, tx: Transaction = Depends(get_db)):
    """Create a shipping order; totals come from the lines"""
    order_no = await _prepare_header(tx, OutboundOrder, data, "OB")
    await _check_lines(tx, OutboundLine, data.lines)

    header = data.model_dump(exclude={"lines", "order_no"}, exclude_none=True)
    order = OutboundOrder(
        **header,
        order_no=order_no,
        status=OutboundStatus.PENDING,
        total_qty=sum(line.requested_qty for line in data.lines),
        picked_qty=0,
        shipped_qty=0,
        created_at=utcnow(),
        lines=[
            OutboundLine(
                id=line.id or generate_id(OutboundLine.id_prefix),
                product_id=line.product_id,
                requested_qty=line.requested_qty,
                picked_qty=0,
                shipped_qty=0,
            )
            for line in data.lines
        ],
    )
    order = await tx.insert(OutboundOrder, order)
    logger.info(f"Created outbound order {order.order_no} with {len(order.lines)} lines")
    return order


@outbound_router.put("/{order_id}", response_model=OutboundResponse)
async def update_outbound(order_id: str, data: OutboundUpdate, tx: Transaction = Depends(get_db)):
    """Patch header fields, advance status and record pick / ship progress"""
    order = await tx.require(OutboundOrder, order_id)
    updates = data.model_dump(exclude={"lines"}, exclude_none=True)
    _check_transition(OUTBOUND_FLOW, order.status, data.status)

    if data.lines:
        if is_terminal(OUTBOUND_FLOW, order.status):
            raise InvalidOrderUpdate(f"Outbound order '{order_id}' is {order.status.value}")
        lines = _line_index(order)
        for progress in data.lines:
            line = lines.get(progress.id)
            if line is None:
                raise NotFoundError("Outbound line", progress.id)
            picked = progress.picked_qty if progress.picked_qty is not None else line.picked_qty
            shipped = progress.shipped_qty if progress.shipped_qty is not None else line.shipped_qty
            _check_progress("picked_qty", line.id, line.picked_qty, picked, line.requested_qty)
            _check_progress("shipped_qty", line.id, line.shipped_qty, shipped, picked)
            line.picked_qty = picked
            line.shipped_qty = shipped

    updates["total_qty"] = sum(line.requested_qty for line in order.lines)
    updates["picked_qty"] = sum(line.picked_qty for line in order.lines)
    updates["shipped_qty"] = sum(line.shipped_qty for line in order.lines)

    status = updates.get("status", order.status)
    if order.departure_time is None and status == OutboundStatus.SHIPPED:
        updates["departure_time"] = utcnow()
    if status != order.status:
        logger.info(f"Outbound order {order.order_no}: {order.status.value} -> {status.value}")
    return await tx.update(OutboundOrder, order_id, updates)
