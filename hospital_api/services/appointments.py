import logging
from datetime import date, datetime, time, timedelta
from typing import List

from sqlalchemy.orm import Session

from hospital_api.core.errors import AuthorizationError, InvalidTransitionError, ValidationError
from hospital_api.models.appointment import Appointment, AppointmentStatus
from hospital_api.models.user import Role, User

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    AppointmentStatus.PENDING: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
}

# Statuses that hold a slot in a doctor's day
BOOKED_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)

SLOT_DAY_START = time(9, 0)
SLOT_DAY_END = time(17, 0)
SLOT_MINUTES = 30


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS.get(current, set())


def authorize_appointment_mutation(user: User, appointment: Appointment) -> None:
    if user.role == Role.PATIENT:
        if appointment.patient_id != user.id:
            raise AuthorizationError("You can only modify your own appointments")
    elif user.role == Role.DOCTOR:
        if appointment.doctor_id != user.id:
            raise AuthorizationError("You can only modify your own appointments")
    elif user.role not in (Role.ADMIN, Role.RECEPTIONIST):
        raise AuthorizationError(f"Access denied. {user.role.value} role cannot modify appointments")


def change_status(appointment: Appointment, actor: User, new_status: AppointmentStatus) -> Appointment:
    authorize_appointment_mutation(actor, appointment)

    new_status = AppointmentStatus(new_status)
    if actor.role == Role.PATIENT and new_status not in (appointment.status, AppointmentStatus.CANCELLED):
        raise AuthorizationError("Patients can only cancel appointments")

    if not can_transition(appointment.status, new_status):
        raise InvalidTransitionError(
            f"Cannot change appointment from {appointment.status.value} to {new_status.value}"
        )

    if appointment.status != new_status:
        logger.info("Appointment %s: %s -> %s by user %s",
                    appointment.id, appointment.status.value, new_status.value, actor.id)
        appointment.status = new_status
    return appointment


def cancel_appointment(appointment: Appointment, actor: User) -> Appointment:
    return change_status(appointment, actor, AppointmentStatus.CANCELLED)


def _require_account(db: Session, user_id: int, role: Role) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None or user.role != role or not user.is_active:
        raise ValidationError(f"{role.value}_id must reference an active {role.value}")
    return user


def create_appointment(db: Session, *, patient_id: int, doctor_id: int, created_by: User, **fields) -> Appointment:
    """Book an appointment in ``pending`` status.

    Doctor availability is not checked here: two requests for the same slot
    both succeed. ``available_slots`` is advisory only.
    """
    _require_account(db, patient_id, Role.PATIENT)
    _require_account(db, doctor_id, Role.DOCTOR)

    appointment = Appointment(
        patient_id=patient_id,
        doctor_id=doctor_id,
        created_by=created_by.id,
        status=AppointmentStatus.PENDING,
        **fields,
    )
    db.add(appointment)
    db.flush()
    logger.info("Appointment %s booked for patient %s with doctor %s by user %s",
                appointment.id, patient_id, doctor_id, created_by.id)
    return appointment


def available_slots(db: Session, doctor_id: int, on: date) -> List[str]:
    booked = {
        slot.strftime("%H:%M")
        for (slot,) in db.query(Appointment.time).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.date == on,
            Appointment.status.in_(BOOKED_STATUSES),
        )
    }

    slots = []
    cursor = datetime.combine(on, SLOT_DAY_START)
    end = datetime.combine(on, SLOT_DAY_END)
    while cursor < end:
        label = cursor.strftime("%H:%M")
        if label not in booked:
            slots.append(label)
        cursor += timedelta(minutes=SLOT_MINUTES)
    return slots
