"""Role gate plus ownership and relationship checks.

Roles are compared by exact value; there is no hierarchy between them, so
an admin only reaches a route whose allow-list names ``admin``.
"""
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from hospital_api.core.errors import AuthorizationError
from hospital_api.core.security import get_current_user
from hospital_api.models.appointment import Appointment
from hospital_api.models.user import Role, User

logger = logging.getLogger(__name__)

STAFF_WITH_PATIENT_ACCESS = (Role.ADMIN, Role.RECEPTIONIST, Role.NURSE)


def require_roles(*roles: Role):
    """Dependency factory that admits only users whose role is listed."""
    allowed = tuple(Role(role) for role in roles)

    def check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.info("Rejected %s user %s; route allows %s",
                        current_user.role.value, current_user.id, [r.value for r in allowed])
            raise AuthorizationError(
                f"Access denied. {current_user.role.value} role not authorized; "
                f"requires one of: {', '.join(r.value for r in allowed)}"
            )
        return current_user

    return check_role


def ensure_patient_ownership(user: User, patient_id: int) -> None:
    if user.role == Role.PATIENT and user.id != patient_id:
        raise AuthorizationError("Access denied. You can only access your own data.")


def doctor_has_patient(db: Session, doctor_id: int, patient_id: int) -> bool:
    return db.query(Appointment.id).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.patient_id == patient_id,
    ).first() is not None


def ensure_doctor_relationship(db: Session, user: User, patient_id: int) -> None:
    if user.role == Role.DOCTOR and not doctor_has_patient(db, user.id, patient_id):
        raise AuthorizationError("Access denied. Patient not under your care.")


def ensure_patient_access(db: Session, user: User, patient_id: int) -> None:
    """Combined rule for routes that expose one patient's data to several roles."""
    if user.role == Role.PATIENT:
        ensure_patient_ownership(user, patient_id)
    elif user.role == Role.DOCTOR:
        ensure_doctor_relationship(db, user, patient_id)
    elif user.role not in STAFF_WITH_PATIENT_ACCESS:
        raise AuthorizationError(f"Access denied. {user.role.value} role cannot access patient data.")
