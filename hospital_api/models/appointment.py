from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from hospital_api.database import Base, enum_values


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class AppointmentType(str, enum.Enum):
    CONSULTATION = "consultation"
    CHECKUP = "checkup"
    SURGERY = "surgery"
    FOLLOWUP = "followup"
    EMERGENCY = "emergency"
    ROUTINE = "routine"


class AppointmentPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    type = Column(Enum(AppointmentType, values_callable=enum_values), default=AppointmentType.CONSULTATION)
    status = Column(
        Enum(AppointmentStatus, values_callable=enum_values),
        default=AppointmentStatus.PENDING,
        nullable=False,
    )
    reason = Column(Text, nullable=False)
    symptoms = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    duration = Column(Integer, default=30)  # minutes
    priority = Column(Enum(AppointmentPriority, values_callable=enum_values), default=AppointmentPriority.MEDIUM)
    room_number = Column(String(20), nullable=True)
    follow_up_required = Column(Boolean, default=False)
    follow_up_date = Column(Date, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id], back_populates="doctor_appointments")
    patient = relationship("User", foreign_keys=[patient_id], back_populates="patient_appointments")
    prescription = relationship("Prescription", back_populates="appointment", uselist=False)
