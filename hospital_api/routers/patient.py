from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hospital_api.core.access import ensure_patient_ownership, require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.billing import Billing, BillStatus
from hospital_api.models.medical_record import MedicalRecord
from hospital_api.models.prescription import Prescription
from hospital_api.models.user import Role, User
from hospital_api.schemas import (
    AppointmentCreate,
    AppointmentResponse,
    BillResponse,
    MedicalRecordResponse,
    PaymentRequest,
    PrescriptionResponse,
    UserSummary,
)
from hospital_api.services.appointments import BOOKED_STATUSES, create_appointment
from hospital_api.services.billing import record_payment

router = APIRouter(prefix="/api/patient", tags=["patient"])

patient_only = require_roles(Role.PATIENT)


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    upcoming = db.query(Appointment).filter(
        Appointment.patient_id == current_user.id,
        Appointment.date >= date.today(),
        Appointment.status.in_(BOOKED_STATUSES),
    ).order_by(Appointment.date.asc(), Appointment.time.asc()).limit(5).all()

    return {
        "success": True,
        "data": {
            "upcoming_appointments": [AppointmentResponse.model_validate(a) for a in upcoming],
            "stats": {
                "total_appointments": db.query(Appointment).filter(
                    Appointment.patient_id == current_user.id).count(),
                "medical_records": db.query(MedicalRecord).filter(
                    MedicalRecord.patient_id == current_user.id).count(),
                "pending_bills": db.query(Billing).filter(
                    Billing.patient_id == current_user.id,
                    Billing.status != BillStatus.PAID,
                ).count(),
            },
        },
    }


@router.get("/appointments")
async def my_appointments(
    status: Optional[AppointmentStatus] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    query = db.query(Appointment).filter(Appointment.patient_id == current_user.id)
    if status:
        query = query.filter(Appointment.status == status)
    appointments, pagination = paginate(
        query.order_by(Appointment.date.desc(), Appointment.time.desc()), pages
    )
    return {
        "success": True,
        "data": [AppointmentResponse.model_validate(a) for a in appointments],
        "pagination": pagination,
    }


@router.post("/appointments", status_code=status.HTTP_201_CREATED)
async def book_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    appointment = create_appointment(
        db,
        patient_id=current_user.id,
        created_by=current_user,
        **data.model_dump(),
    )
    db.commit()
    db.refresh(appointment)
    return {
        "success": True,
        "message": "Appointment booked successfully",
        "data": AppointmentResponse.model_validate(appointment),
    }


@router.get("/medical-records")
async def my_medical_records(
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    records = db.query(MedicalRecord).filter(
        MedicalRecord.patient_id == current_user.id
    ).order_by(MedicalRecord.created_at.desc(), MedicalRecord.id.desc()).all()
    return {"success": True, "data": [MedicalRecordResponse.model_validate(r) for r in records]}


@router.get("/prescriptions")
async def my_prescriptions(
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    prescriptions = db.query(Prescription).filter(
        Prescription.patient_id == current_user.id
    ).order_by(Prescription.created_at.desc(), Prescription.id.desc()).all()
    return {"success": True, "data": [PrescriptionResponse.model_validate(p) for p in prescriptions]}


@router.get("/bills")
async def my_bills(
    status: Optional[BillStatus] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    query = db.query(Billing).filter(Billing.patient_id == current_user.id)
    if status:
        query = query.filter(Billing.status == status)
    bills = query.order_by(Billing.bill_date.desc(), Billing.id.desc()).all()
    return {"success": True, "data": [BillResponse.model_validate(b) for b in bills]}


@router.post("/bills/{bill_id}/payment")
async def pay_bill(
    bill_id: int,
    payment: PaymentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    bill = db.query(Billing).filter(Billing.id == bill_id).first()
    if not bill:
        raise NotFoundError("Bill not found")
    ensure_patient_ownership(current_user, bill.patient_id)

    record_payment(bill, payment.amount, payment.payment_method)
    db.commit()
    db.refresh(bill)
    return {
        "success": True,
        "message": "Payment processed successfully",
        "data": BillResponse.model_validate(bill),
    }


@router.get("/doctors")
async def list_doctors(
    specialization: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(patient_only),
):
    query = db.query(User).filter(User.role == Role.DOCTOR, User.is_active.is_(True))
    if specialization:
        query = query.filter(User.specialization.ilike(f"%{specialization}%"))
    doctors = query.order_by(User.last_name.asc(), User.first_name.asc()).all()
    return {"success": True, "data": [UserSummary.model_validate(d) for d in doctors]}
