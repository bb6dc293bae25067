from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from hospital_api.core.access import ensure_patient_access
from hospital_api.core.errors import NotFoundError
from hospital_api.core.security import get_current_user
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.user import User
from hospital_api.schemas import AppointmentResponse
from hospital_api.services.appointments import available_slots, cancel_appointment, change_status

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


class StatusUpdate(BaseModel):
    status: AppointmentStatus


def get_appointment_or_404(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


@router.get("/available-slots")
async def get_available_slots(
    doctor_id: int = Query(...),
    on: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"success": True, "data": available_slots(db, doctor_id, on)}


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appointment = get_appointment_or_404(db, appointment_id)

    # Doctors see their own appointments; everyone else goes through the patient rule
    if current_user.id != appointment.doctor_id:
        ensure_patient_access(db, current_user, appointment.patient_id)

    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.put("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: int,
    update: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appointment = get_appointment_or_404(db, appointment_id)
    change_status(appointment, current_user, update.status)
    db.commit()
    db.refresh(appointment)
    return {"success": True, "data": AppointmentResponse.model_validate(appointment)}


@router.put("/{appointment_id}/cancel")
async def cancel(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    appointment = get_appointment_or_404(db, appointment_id)
    cancel_appointment(appointment, current_user)
    db.commit()
    db.refresh(appointment)
    return {
        "success": True,
        "message": "Appointment cancelled successfully",
        "data": AppointmentResponse.model_validate(appointment),
    }
