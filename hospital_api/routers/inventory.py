from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from hospital_api.core.access import require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.database import get_db
from hospital_api.models.inventory import InventoryCategory, InventoryItem
from hospital_api.models.user import Role, User
from hospital_api.schemas import InventoryResponse
from hospital_api.services.inventory import StockOperation, adjust_stock, low_stock_query

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

inventory_staff = require_roles(Role.ADMIN, Role.PHARMACIST)


class InventoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    category: InventoryCategory
    description: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    unit: str = Field(min_length=1, max_length=50)
    unit_price: float = Field(ge=0)
    cost: float = Field(ge=0)
    reorder_level: int = Field(default=10, ge=0)
    supplier: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    location: Optional[str] = None


class InventoryUpdate(BaseModel):
    """Stock quantity only changes through /stock and dispensing."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    category: Optional[InventoryCategory] = None
    description: Optional[str] = None
    unit: Optional[str] = Field(default=None, min_length=1, max_length=50)
    unit_price: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    reorder_level: Optional[int] = Field(default=None, ge=0)
    supplier: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    location: Optional[str] = None


class StockAdjustment(BaseModel):
    quantity: int = Field(gt=0)
    operation: StockOperation


def get_item_or_404(db: Session, item_id: int) -> InventoryItem:
    item = db.query(InventoryItem).filter(
        InventoryItem.id == item_id,
        InventoryItem.is_active.is_(True),
    ).first()
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


def list_inventory(db: Session, pages: PageParams, category=None, low_stock: bool = False):
    query = db.query(InventoryItem).filter(InventoryItem.is_active.is_(True))
    if category:
        query = query.filter(InventoryItem.category == category)
    if low_stock:
        query = query.filter(InventoryItem.is_low_stock)
    items, pagination = paginate(query.order_by(InventoryItem.name.asc()), pages)
    return {
        "success": True,
        "data": [InventoryResponse.model_validate(item) for item in items],
        "pagination": pagination,
    }


def create_item(db: Session, data: InventoryCreate) -> InventoryItem:
    item = InventoryItem(**data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, item: InventoryItem, data: InventoryUpdate) -> InventoryItem:
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(item, field, value)
    db.commit()
    db.refresh(item)
    return item


@router.get("")
async def get_inventory(
    category: Optional[InventoryCategory] = None,
    low_stock: bool = False,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    return list_inventory(db, pages, category, low_stock)


@router.get("/alerts")
async def get_low_stock_alerts(
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    items = low_stock_query(db).all()
    return {"success": True, "data": [InventoryResponse.model_validate(item) for item in items]}


@router.get("/{item_id}")
async def get_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    return {"success": True, "data": InventoryResponse.model_validate(get_item_or_404(db, item_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_inventory_item(
    data: InventoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    return {"success": True, "data": InventoryResponse.model_validate(create_item(db, data))}


@router.put("/{item_id}")
async def edit_inventory_item(
    item_id: int,
    data: InventoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    item = update_item(db, get_item_or_404(db, item_id), data)
    return {"success": True, "data": InventoryResponse.model_validate(item)}


@router.post("/{item_id}/stock")
async def update_stock(
    item_id: int,
    adjustment: StockAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(inventory_staff),
):
    item = get_item_or_404(db, item_id)
    adjust_stock(item, adjustment.quantity, adjustment.operation)
    db.commit()
    db.refresh(item)
    return {"success": True, "data": InventoryResponse.model_validate(item)}


@router.delete("/{item_id}")
async def delete_inventory_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN)),
):
    item = get_item_or_404(db, item_id)
    item.is_active = False
    db.commit()
    return {"success": True, "message": "Inventory item deleted successfully"}
