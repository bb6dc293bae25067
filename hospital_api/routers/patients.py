from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session

from hospital_api.core.access import STAFF_WITH_PATIENT_ACCESS, ensure_patient_access, require_roles
from hospital_api.core.errors import NotFoundError
from hospital_api.core.pagination import PageParams, paginate
from hospital_api.core.security import get_current_user
from hospital_api.database import get_db
from hospital_api.models.appointment import Appointment
from hospital_api.models.user import Role, User
from hospital_api.schemas import UserResponse

router = APIRouter(prefix="/api/patients", tags=["patients"])


def search_users(query, search: Optional[str]):
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.first_name.ilike(pattern),
            User.last_name.ilike(pattern),
            User.email.ilike(pattern),
            User.phone.ilike(pattern),
        ))
    return query


@router.get("")
async def list_patients(
    search: Optional[str] = None,
    pages: PageParams = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*STAFF_WITH_PATIENT_ACCESS, Role.DOCTOR)),
):
    query = db.query(User).filter(User.role == Role.PATIENT, User.is_active.is_(True))
    if current_user.role == Role.DOCTOR:
        # Only patients with at least one appointment with this doctor
        query = query.filter(User.id.in_(
            db.query(Appointment.patient_id).filter(Appointment.doctor_id == current_user.id)
        ))

    query = search_users(query, search).order_by(User.last_name.asc(), User.first_name.asc())
    patients, pagination = paginate(query, pages)
    return {
        "success": True,
        "data": [UserResponse.model_validate(patient) for patient in patients],
        "pagination": pagination,
    }


@router.get("/{patient_id}")
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ensure_patient_access(db, current_user, patient_id)
    patient = db.query(User).filter(User.id == patient_id, User.role == Role.PATIENT).first()
    if not patient:
        raise NotFoundError("Patient not found")
    return {"success": True, "data": UserResponse.model_validate(patient)}
