from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from hospital_api.database import Base, enum_values


class RecordType(str, enum.Enum):
    CONSULTATION = "consultation"
    LAB_TEST = "lab_test"
    SURGERY = "surgery"
    PRESCRIPTION = "prescription"
    VACCINATION = "vaccination"
    OTHER = "other"


class MedicalRecord(Base):
    __tablename__ = "medical_records"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True)
    record_type = Column(Enum(RecordType, values_callable=enum_values), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    diagnosis = Column(Text, nullable=True)
    treatment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    doctor = relationship("User", foreign_keys=[doctor_id])
    patient = relationship("User", foreign_keys=[patient_id])
