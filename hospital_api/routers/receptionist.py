from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from hospital_api.core.access import require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.billing import Billing, BillStatus
from hospital_api.models.user import Role, User
from hospital_api.routers.patients import search_users
from hospital_api.schemas import (
    AppointmentResponse,
    BillCreate,
    BillResponse,
    PaymentRequest,
    StaffAppointmentCreate,
    UserResponse,
)
from hospital_api.services.accounts import AccountCreate, create_account
from hospital_api.services.appointments import change_status, create_appointment
from hospital_api.services.billing import create_bill, record_payment

router = APIRouter(prefix="/api/receptionist", tags=["receptionist"])

receptionist_only = require_roles(Role.RECEPTIONIST)


class PatientRegistration(AccountCreate):
    role: Role = Role.PATIENT

    @field_validator("role", mode="before")
    @classmethod
    def force_patient_role(cls, value):
        return Role.PATIENT


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    room_number: Optional[str] = None


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    start_of_day = datetime.combine(date.today(), time.min)
    return {
        "success": True,
        "data": {
            "stats": {
                "today_appointments": db.query(Appointment).filter(Appointment.date == date.today()).count(),
                "pending_appointments": db.query(Appointment).filter(
                    Appointment.status == AppointmentStatus.PENDING).count(),
                "walk_in_patients": db.query(User).filter(
                    User.role == Role.PATIENT,
                    User.created_at >= start_of_day,
                ).count(),
                "pending_payments": db.query(Billing).filter(Billing.status != BillStatus.PAID).count(),
            },
        },
    }


@router.post("/appointments", status_code=status.HTTP_201_CREATED)
async def schedule_appointment(
    data: StaffAppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    appointment = create_appointment(db, created_by=current_user, **data.model_dump())
    db.commit()
    db.refresh(appointment)
    return {
        "success": True,
        "message": "Appointment scheduled successfully",
        "data": AppointmentResponse.model_validate(appointment),
    }


@router.get("/appointments")
async def list_appointments(
    status: Optional[AppointmentStatus] = None,
    on: Optional[date] = Query(None, alias="date"),
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    query = db.query(Appointment)
    if status:
        query = query.filter(Appointment.status == status)
    if on:
        query = query.filter(Appointment.date == on)
    appointments, pagination = paginate(query.order_by(Appointment.date.asc(), Appointment.time.asc()), pages)
    return {
        "success": True,
        "data": [AppointmentResponse.model_validate(a) for a in appointments],
        "pagination": pagination,
    }


@router.put("/appointments/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    update: AppointmentStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise NotFoundError("Appointment not found")

    change_status(appointment, current_user, update.status)
    if update.room_number is not None:
        appointment.room_number = update.room_number
    db.commit()
    db.refresh(appointment)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/patients", status_code=status.HTTP_201_CREATED)
async def register_patient(
    data: PatientRegistration,
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    patient = create_account(db, data)
    db.commit()
    db.refresh(patient)
    return {
        "success": True,
        "message": "Patient registered successfully",
        "data": UserResponse.model_validate(patient),
    }


@router.get("/patients")
async def find_patients(
    search: Optional[str] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    query = search_users(db.query(User).filter(User.role == Role.PATIENT), search)
    patients, pagination = paginate(query.order_by(User.last_name.asc(), User.first_name.asc()), pages)
    return {
        "success": True,
        "data": [UserResponse.model_validate(p) for p in patients],
        "pagination": pagination,
    }


@router.post("/billing", status_code=status.HTTP_201_CREATED)
async def generate_bill(
    data: BillCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    bill = create_bill(
        db,
        created_by=current_user,
        items=[item.model_dump() for item in data.items],
        **data.model_dump(exclude={"items"}),
    )
    db.commit()
    db.refresh(bill)
    return {
        "success": True,
        "message": "Bill generated successfully",
        "data": BillResponse.model_validate(bill),
    }


@router.post("/billing/{bill_id}/payment")
async def process_payment(
    bill_id: int,
    payment: PaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(receptionist_only),
):
    bill = db.query(Billing).filter(Billing.id == bill_id).first()
    if not bill:
        raise NotFoundError("Bill not found")

    record_payment(bill, payment.amount, payment.payment_method)
    db.commit()
    db.refresh(bill)
    return {
        "success": True,
        "message": "Payment processed successfully",
        "data": BillResponse.model_validate(bill),
    }
