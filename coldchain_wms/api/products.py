"""
Product catalog and lot endpoints
"""
from fastapi import APIRouter, Depends
from typing import List, Optional
from datetime import date
from pydantic import BaseModel, Field

from coldchain_wms.database import Transaction, get_db
from coldchain_wms.errors import BadRequestError, ConflictError
from coldchain_wms.models import Product, TempClass, Lot, LotStatus, Inventory
from coldchain_wms.utils.validators import require_reference

router = APIRouter()
lots_router = APIRouter()


# --- Pydantic Schemas ---

class ProductResponse(BaseModel):
    id: str
    sku: str
    name: str
    name_vi: Optional[str]
    description: Optional[str]
    unit: str
    temp_class: TempClass
    shelf_life_days: int
    weight: Optional[float]
    cubic: Optional[float]
    category: Optional[str]

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    id: Optional[str] = None
    sku: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    name_vi: Optional[str] = None
    description: Optional[str] = None
    unit: str = "KG"
    temp_class: TempClass
    shelf_life_days: int = Field(..., gt=0)
    weight: Optional[float] = Field(None, ge=0)
    cubic: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None

    class Config:
        extra = "forbid"


class ProductUpdate(BaseModel):
    sku: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    name_vi: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    temp_class: Optional[TempClass] = None
    shelf_life_days: Optional[int] = Field(None, gt=0)
    weight: Optional[float] = Field(None, ge=0)
    cubic: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None

    class Config:
        extra = "forbid"


class LotResponse(BaseModel):
    id: str
    product_id: str
    lot_no: str
    mfg_date: Optional[date]
    exp_date: date
    origin_country: Optional[str]
    supplier: Optional[str]
    total_qty: float
    available_qty: float
    allocated_qty: float
    status: LotStatus

    class Config:
        from_attributes = True


class LotListItem(LotResponse):
    product: Optional[ProductResponse] = None


class LotCreate(BaseModel):
    id: Optional[str] = None
    product_id: str
    lot_no: str = Field(..., min_length=1)
    mfg_date: Optional[date] = None
    exp_date: date
    origin_country: Optional[str] = None
    supplier: Optional[str] = None
    total_qty: float = Field(..., ge=0)
    available_qty: Optional[float] = Field(None, ge=0)
    allocated_qty: float = Field(0, ge=0)
    status: LotStatus = LotStatus.AVAILABLE

    class Config:
        extra = "forbid"


class LotUpdate(BaseModel):
    lot_no: Optional[str] = Field(None, min_length=1)
    mfg_date: Optional[date] = None
    exp_date: Optional[date] = None
    origin_country: Optional[str] = None
    supplier: Optional[str] = None
    total_qty: Optional[float] = Field(None, ge=0)
    available_qty: Optional[float] = Field(None, ge=0)
    allocated_qty: Optional[float] = Field(None, ge=0)
    status: Optional[LotStatus] = None

    class Config:
        extra = "forbid"


# --- Helpers ---

async def _ensure_unique_sku(tx: Transaction, sku: str, product_id: Optional[str] = None) -> None:
    existing = await tx.first(Product, Product.sku == sku)
    if existing is not None and existing.id != product_id:
        raise ConflictError(f"SKU '{sku}' already exists", code="product.duplicate_sku")


def _check_lot_quantities(total_qty: float, available_qty: float, allocated_qty: float) -> None:
    if available_qty + allocated_qty > total_qty:
        raise BadRequestError(
            "available_qty + allocated_qty cannot exceed total_qty",
            code="lot.invalid_quantities",
        )


def _check_lot_dates(mfg_date: Optional[date], exp_date: date) -> None:
    if mfg_date is not None and exp_date < mfg_date:
        raise BadRequestError("exp_date cannot precede mfg_date", code="lot.invalid_dates")


# --- Product endpoints ---

@router.get("", response_model=List[ProductResponse])
async def list_products(tx: Transaction = Depends(get_db)):
    return await tx.where(Product, order_by=Product.sku)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Product, product_id)


@router.post("", response_model=ProductResponse)
async def create_product(data: ProductCreate, tx: Transaction = Depends(get_db)):
    await _ensure_unique_sku(tx, data.sku)
    if data.id and await tx.find(Product, data.id):
        raise ConflictError(f"Product '{data.id}' already exists", code="product.duplicate")
    return await tx.insert(Product, data.model_dump(exclude_none=True))


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, data: ProductUpdate, tx: Transaction = Depends(get_db)):
    await tx.require(Product, product_id)
    updates = data.model_dump(exclude_none=True)
    if "sku" in updates:
        await _ensure_unique_sku(tx, updates["sku"], product_id)
    return await tx.update(Product, product_id, updates)


@router.delete("/{product_id}")
async def delete_product(product_id: str, tx: Transaction = Depends(get_db)):
    """Delete a product that has no lots"""
    await tx.require(Product, product_id)
    if await tx.first(Lot, Lot.product_id == product_id) is not None:
        raise ConflictError(f"Product '{product_id}' still has lots", code="product.in_use")
    await tx.remove(Product, product_id)
    return {"success": True, "id": product_id}


# --- Lot endpoints ---

@lots_router.get("", response_model=List[LotListItem])
async def list_lots(tx: Transaction = Depends(get_db)):
    """List lots with their product attached"""
    lots = await tx.where(Lot, order_by=Lot.exp_date)
    items = []
    for lot in lots:
        item = LotListItem.model_validate(lot)
        item.product = ProductResponse.model_validate(lot.product) if lot.product else None
        items.append(item)
    return items


@lots_router.get("/{lot_id}", response_model=LotResponse)
async def get_lot(lot_id: str, tx: Transaction = Depends(get_db)):
    return await tx.require(Lot, lot_id)


@lots_router.post("", response_model=LotResponse)
async def create_lot(data: LotCreate, tx: Transaction = Depends(get_db)):
    await require_reference(tx, Product, data.product_id, "product_id")
    if data.id and await tx.find(Lot, data.id):
        raise ConflictError(f"Lot '{data.id}' already exists", code="lot.duplicate")

    values = data.model_dump(exclude_none=True)
    values.setdefault("available_qty", max(0.0, data.total_qty - data.allocated_qty))
    _check_lot_quantities(values["total_qty"], values["available_qty"], values["allocated_qty"])
    _check_lot_dates(data.mfg_date, data.exp_date)
    return await tx.insert(Lot, values)


@lots_router.put("/{lot_id}", response_model=LotResponse)
async def update_lot(lot_id: str, data: LotUpdate, tx: Transaction = Depends(get_db)):
    lot = await tx.require(Lot, lot_id)
    updates = data.model_dump(exclude_none=True)
    _check_lot_quantities(
        updates.get("total_qty", lot.total_qty),
        updates.get("available_qty", lot.available_qty),
        updates.get("allocated_qty", lot.allocated_qty),
    )
    _check_lot_dates(updates.get("mfg_date", lot.mfg_date), updates.get("exp_date", lot.exp_date))
    return await tx.update(Lot, lot_id, updates)


@lots_router.delete("/{lot_id}")
async def delete_lot(lot_id: str, tx: Transaction = Depends(get_db)):
    """Delete a lot with no inventory placed"""
    await tx.require(Lot, lot_id)
    if await tx.first(Inventory, Inventory.lot_id == lot_id) is not None:
        raise ConflictError(f"Lot '{lot_id}' still has inventory", code="lot.in_use")
    await tx.remove(Lot, lot_id)
    return {"success": True, "id": lot_id}
