from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from hospital_api.database import Base, enum_values


class PrescriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Prescription(Base):
    __tablename__ = "prescriptions"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    medications = Column(JSON, nullable=False)  # list of medication lines
    instructions = Column(Text, nullable=True)
    status = Column(
        Enum(PrescriptionStatus, values_callable=enum_values),
        default=PrescriptionStatus.ACTIVE,
        nullable=False,
    )
    valid_until = Column(Date, nullable=True)
    is_dispensed = Column(Boolean, default=False, nullable=False)
    dispensed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    dispensed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    doctor = relationship("User", foreign_keys=[doctor_id], back_populates="doctor_prescriptions")
    patient = relationship("User", foreign_keys=[patient_id], back_populates="patient_prescriptions")
    pharmacist = relationship("User", foreign_keys=[dispensed_by])
    appointment = relationship("Appointment", back_populates="prescription")
