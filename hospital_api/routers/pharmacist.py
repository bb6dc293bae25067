from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hospital_api.core.access import require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams
from hospital_api.database import get_db
from hospital_api.models.inventory import InventoryCategory, InventoryItem
from hospital_api.models.prescription import Prescription, PrescriptionStatus
from hospital_api.models.user import Role, User
from hospital_api.routers.inventory import (
    InventoryCreate,
    InventoryUpdate,
    create_item,
    get_item_or_404,
    list_inventory,
    update_item,
)
from hospital_api.schemas import BillResponse, InventoryResponse, PrescriptionResponse
from hospital_api.services.dispensing import dispense_prescription
from hospital_api.services.inventory import low_stock_query

router = APIRouter(prefix="/api/pharmacist", tags=["pharmacist"])

pharmacist_only = require_roles(Role.PHARMACIST)


def pending_prescriptions(db: Session):
    return db.query(Prescription).filter(
        Prescription.status == PrescriptionStatus.ACTIVE,
        Prescription.is_dispensed.is_(False),
    )


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    start_of_day = datetime.combine(date.today(), time.min)
    return {
        "success": True,
        "data": {
            "stats": {
                "pending_prescriptions": pending_prescriptions(db).count(),
                "dispensed_today": db.query(Prescription).filter(
                    Prescription.is_dispensed.is_(True),
                    Prescription.dispensed_at >= start_of_day,
                ).count(),
                "low_stock_items": low_stock_query(db).count(),
                "total_inventory": db.query(InventoryItem).filter(InventoryItem.is_active.is_(True)).count(),
            },
        },
    }


@router.get("/prescriptions/pending")
async def get_pending_prescriptions(
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    prescriptions = pending_prescriptions(db).order_by(Prescription.created_at.asc(), Prescription.id.asc()).all()
    return {"success": True, "data": [PrescriptionResponse.model_validate(p) for p in prescriptions]}


@router.post("/prescriptions/{prescription_id}/dispense")
async def dispense(
    prescription_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    prescription = db.query(Prescription).filter(Prescription.id == prescription_id).first()
    if not prescription:
        raise NotFoundError("Prescription not found")

    bill = dispense_prescription(db, prescription, current_user)
    db.refresh(prescription)
    return {
        "success": True,
        "message": "Prescription dispensed successfully",
        "data": {
            "prescription": PrescriptionResponse.model_validate(prescription),
            "bill": BillResponse.model_validate(bill),
        },
    }


@router.get("/inventory")
async def get_inventory(
    category: Optional[InventoryCategory] = None,
    low_stock: bool = False,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    return list_inventory(db, pages, category, low_stock)


@router.post("/inventory", status_code=status.HTTP_201_CREATED)
async def add_inventory_item(
    data: InventoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    return {"success": True, "data": InventoryResponse.model_validate(create_item(db, data))}


@router.put("/inventory/{item_id}")
async def edit_inventory_item(
    item_id: int,
    data: InventoryUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(pharmacist_only),
):
    item = update_item(db, get_item_or_404(db, item_id), data)
    return {"success": True, "data": InventoryResponse.model_validate(item)}
