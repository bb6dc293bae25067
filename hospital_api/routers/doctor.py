import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.orm import Session

from hospital_api.core.access import ensure_doctor_relationship, require_roles
from hospital_api.core.errors import AuthorizationError, NotFoundError
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.medical_record import MedicalRecord, RecordType
from hospital_api.models.prescription import Prescription, PrescriptionStatus
from hospital_api.models.user import Role, User
from hospital_api.schemas import (
    AppointmentResponse,
    Medication,
    MedicalRecordResponse,
    PrescriptionResponse,
    UserResponse,
)
from hospital_api.services.appointments import BOOKED_STATUSES, change_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctor", tags=["doctor"])

doctor_only = require_roles(Role.DOCTOR)


class AppointmentUpdate(BaseModel):
    status: Optional[AppointmentStatus] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[date] = None


class PrescriptionCreate(BaseModel):
    patient_id: int
    appointment_id: int
    medications: List[Medication] = Field(min_length=1)
    instructions: Optional[str] = None
    valid_until: Optional[date] = None


class MedicalRecordCreate(BaseModel):
    patient_id: int
    appointment_id: int
    record_type: RecordType
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None


def get_linked_appointment(db: Session, doctor: User, appointment_id: int, patient_id: int) -> Appointment:
    """The appointment that ties this doctor to this patient, or 403."""
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.doctor_id == doctor.id,
        Appointment.patient_id == patient_id,
    ).first()
    if not appointment:
        raise AuthorizationError("No appointment links you to this patient")
    return appointment


@router.get("/dashboard")
async def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    today = date.today()
    mine = db.query(Appointment).filter(Appointment.doctor_id == current_user.id)

    today_appointments = mine.filter(
        Appointment.date == today,
        Appointment.status.in_(BOOKED_STATUSES),
    ).order_by(Appointment.time.asc()).all()

    total_patients = db.query(func.count(func.distinct(Appointment.patient_id))).filter(
        Appointment.doctor_id == current_user.id
    ).scalar()

    return {
        "success": True,
        "data": {
            "today_appointments": [AppointmentResponse.model_validate(a) for a in today_appointments],
            "stats": {
                "total_appointments": mine.count(),
                "completed_appointments": mine.filter(Appointment.status == AppointmentStatus.COMPLETED).count(),
                "today_appointments": len(today_appointments),
                "total_patients": total_patients,
                "active_prescriptions": db.query(Prescription).filter(
                    Prescription.doctor_id == current_user.id,
                    Prescription.status == PrescriptionStatus.ACTIVE,
                ).count(),
            },
        },
    }


@router.get("/patients")
async def my_patients(
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    patients = db.query(User).filter(
        User.id.in_(db.query(Appointment.patient_id).filter(Appointment.doctor_id == current_user.id))
    ).order_by(User.last_name.asc(), User.first_name.asc()).all()
    return {"success": True, "data": [UserResponse.model_validate(p) for p in patients]}


@router.get("/appointments")
async def my_appointments(
    status: Optional[AppointmentStatus] = None,
    on: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    query = db.query(Appointment).filter(Appointment.doctor_id == current_user.id)
    if status:
        query = query.filter(Appointment.status == status)
    if on:
        query = query.filter(Appointment.date == on)
    appointments = query.order_by(Appointment.date.desc(), Appointment.time.asc()).all()
    return {"success": True, "data": [AppointmentResponse.model_validate(a) for a in appointments]}


@router.put("/appointments/{appointment_id}")
async def update_appointment(
    appointment_id: int,
    update: AppointmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    appointment = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.doctor_id == current_user.id,
    ).first()
    if not appointment:
        raise NotFoundError("Appointment not found")

    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    new_status = changes.pop("status", None)
    if new_status is not None:
        change_status(appointment, current_user, new_status)
    for field, value in changes.items():
        setattr(appointment, field, value)

    db.commit()
    db.refresh(appointment)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.post("/prescriptions", status_code=status.HTTP_201_CREATED)
async def create_prescription(
    data: PrescriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    get_linked_appointment(db, current_user, data.appointment_id, data.patient_id)

    prescription = Prescription(
        doctor_id=current_user.id,
        patient_id=data.patient_id,
        appointment_id=data.appointment_id,
        medications=[m.model_dump(exclude_none=True) for m in data.medications],
        instructions=data.instructions,
        valid_until=data.valid_until,
        status=PrescriptionStatus.ACTIVE,
    )
    db.add(prescription)
    db.commit()
    db.refresh(prescription)
    logger.info("Doctor %s prescribed %s medication(s) to patient %s",
                current_user.id, len(data.medications), data.patient_id)
    return {"success": True, "data": PrescriptionResponse.model_validate(prescription)}


@router.post("/medical-records", status_code=status.HTTP_201_CREATED)
async def create_medical_record(
    data: MedicalRecordCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    get_linked_appointment(db, current_user, data.appointment_id, data.patient_id)

    record = MedicalRecord(doctor_id=current_user.id, **data.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)
    return {"success": True, "data": MedicalRecordResponse.model_validate(record)}


@router.get("/patients/{patient_id}/records")
async def patient_records(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(doctor_only),
):
    ensure_doctor_relationship(db, current_user, patient_id)
    records = db.query(MedicalRecord).filter(
        MedicalRecord.patient_id == patient_id
    ).order_by(MedicalRecord.created_at.desc(), MedicalRecord.id.desc()).all()
    return {"success": True, "data": [MedicalRecordResponse.model_validate(r) for r in records]}
