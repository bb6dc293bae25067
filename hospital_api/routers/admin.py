import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import extract, func
from sqlalchemy.orm import Session

from hospital_api.core.access import require_roles
from hospital_api.core.errors import ConflictError, NotFoundError, ValidationError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.billing import Billing, BillStatus
from hospital_api.models.department import Department
from hospital_api.models.user import Role, User
from hospital_api.routers.patients import search_users
from hospital_api.schemas import AppointmentResponse, BillResponse, DepartmentResponse, UserResponse
from hospital_api.services.accounts import AccountCreate, ProfileUpdate, create_account, update_profile
from hospital_api.services.billing import to_money
from hospital_api.services.inventory import low_stock_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

admin_only = require_roles(Role.ADMIN)


class UserUpdate(ProfileUpdate):
    is_active: Optional[bool] = None
    specialization: Optional[str] = Field(default=None, max_length=100)
    qualification: Optional[str] = Field(default=None, max_length=200)
    experience: Optional[int] = Field(default=None, ge=0, le=50)
    consultation_fee: Optional[float] = Field(default=None, ge=0)
    pharmacy_license: Optional[str] = Field(default=None, max_length=50)


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: Optional[str] = None
    head_doctor_id: Optional[int] = None
    contact_number: Optional[str] = Field(default=None, max_length=20)
    location: Optional[str] = Field(default=None, max_length=100)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    revenue = db.query(func.coalesce(func.sum(Billing.total_amount), 0)).filter(
        Billing.status == BillStatus.PAID
    ).scalar()
    recent = db.query(Appointment).order_by(Appointment.created_at.desc(), Appointment.id.desc()).limit(10).all()

    return {
        "success": True,
        "data": {
            "stats": {
                "total_patients": db.query(User).filter(User.role == Role.PATIENT, User.is_active.is_(True)).count(),
                "total_doctors": db.query(User).filter(User.role == Role.DOCTOR, User.is_active.is_(True)).count(),
                "total_appointments": db.query(Appointment).count(),
                "today_appointments": db.query(Appointment).filter(Appointment.date == date.today()).count(),
                "pending_appointments": db.query(Appointment).filter(
                    Appointment.status == AppointmentStatus.PENDING).count(),
                "total_bills": db.query(Billing).count(),
                "pending_bills": db.query(Billing).filter(Billing.status != BillStatus.PAID).count(),
                "total_revenue": float(to_money(revenue)),
                "low_stock_items": low_stock_query(db).count(),
            },
            "recent_appointments": [AppointmentResponse.model_validate(a) for a in recent],
        },
    }


@router.get("/users")
async def list_users(
    role: Optional[Role] = None,
    search: Optional[str] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    query = search_users(query, search).order_by(User.created_at.desc(), User.id.desc())
    users, pagination = paginate(query, pages)
    return {
        "success": True,
        "data": [UserResponse.model_validate(u) for u in users],
        "pagination": pagination,
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    data: AccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = create_account(db, data)
    db.commit()
    db.refresh(user)
    return {"success": True, "message": "User created successfully", "data": UserResponse.model_validate(user)}


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = get_user_or_404(db, user_id)
    if user.id == current_user.id and data.is_active is False:
        raise ValidationError("You cannot deactivate your own account")

    update_profile(db, user, data)
    db.commit()
    db.refresh(user)
    return {"success": True, "message": "User updated successfully", "data": UserResponse.model_validate(user)}


@router.delete("/users/{user_id}")
async def deactivate_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise ValidationError("You cannot deactivate your own account")

    user.is_active = False
    db.commit()
    logger.info("Admin %s deactivated user %s", current_user.id, user.id)
    return {"success": True, "message": "User deactivated successfully"}


@router.get("/appointments")
async def list_appointments(
    status: Optional[AppointmentStatus] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(Appointment)
    if status:
        query = query.filter(Appointment.status == status)
    appointments, pagination = paginate(query.order_by(Appointment.date.desc(), Appointment.time.desc()), pages)
    return {
        "success": True,
        "data": [AppointmentResponse.model_validate(a) for a in appointments],
        "pagination": pagination,
    }


@router.get("/departments")
async def list_departments(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    departments = db.query(Department).filter(Department.is_active.is_(True)).order_by(Department.name.asc()).all()
    return {"success": True, "data": [DepartmentResponse.model_validate(d) for d in departments]}


@router.post("/departments", status_code=status.HTTP_201_CREATED)
async def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    if db.query(Department.id).filter(Department.name == data.name).first():
        raise ConflictError("Department with this name already exists")
    if data.head_doctor_id is not None:
        head = db.query(User).filter(User.id == data.head_doctor_id).first()
        if head is None or head.role != Role.DOCTOR:
            raise ValidationError("head_doctor_id must reference a doctor")

    department = Department(**data.model_dump())
    db.add(department)
    db.commit()
    db.refresh(department)
    return {"success": True, "data": DepartmentResponse.model_validate(department)}


@router.get("/reports/financial")
async def financial_report(
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    query = db.query(Billing).filter(Billing.status == BillStatus.PAID)
    if start_date:
        query = query.filter(Billing.bill_date >= start_date)
    if end_date:
        query = query.filter(Billing.bill_date <= end_date)
    bills = query.order_by(Billing.bill_date.desc(), Billing.id.desc()).all()

    total_revenue = sum((to_money(b.total_amount) for b in bills), to_money(0))
    return {
        "success": True,
        "data": {
            "bills": [BillResponse.model_validate(b) for b in bills],
            "summary": {
                "total_revenue": float(total_revenue),
                "total_patients": len({b.patient_id for b in bills}),
                "total_bills": len(bills),
                "average_bill_amount": float(to_money(total_revenue / len(bills))) if bills else 0.0,
            },
        },
    }


@router.get("/statistics")
async def statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    signup_year = extract("year", User.created_at)
    signup_month = extract("month", User.created_at)
    signups = (
        db.query(signup_year, signup_month, func.count(User.id))
        .filter(User.role == Role.PATIENT)
        .group_by(signup_year, signup_month)
        .order_by(signup_year, signup_month)
        .all()
    )

    doctors = (
        db.query(User.specialization, func.count(User.id))
        .filter(User.role == Role.DOCTOR)
        .group_by(User.specialization)
        .order_by(User.specialization)
        .all()
    )

    appointments = (
        db.query(Appointment.status, func.count(Appointment.id))
        .group_by(Appointment.status)
        .all()
    )

    bill_year = extract("year", Billing.bill_date)
    bill_month = extract("month", Billing.bill_date)
    revenue = (
        db.query(bill_year, bill_month, func.sum(Billing.total_amount))
        .filter(Billing.status == BillStatus.PAID)
        .group_by(bill_year, bill_month)
        .order_by(bill_year, bill_month)
        .all()
    )

    return {
        "success": True,
        "data": {
            "patient_stats": [
                {"year": int(year), "month": int(month), "count": count} for year, month, count in signups
            ],
            "doctor_stats": [
                {"specialization": specialization, "count": count} for specialization, count in doctors
            ],
            "appointment_stats": sorted(
                ({"status": state.value, "count": count} for state, count in appointments),
                key=lambda row: row["status"],
            ),
            "revenue_stats": [
                {"year": int(year), "month": int(month), "revenue": float(to_money(total))}
                for year, month, total in revenue
            ],
        },
    }
