import enum

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from hospital_api.database import Base, enum_values


class Role(str, enum.Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"
    PHARMACIST = "pharmacist"
    RECEPTIONIST = "receptionist"
    NURSE = "nurse"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class BloodGroup(str, enum.Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    role = Column(Enum(Role, values_callable=enum_values), nullable=False, default=Role.PATIENT)
    phone = Column(String(20), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(Enum(Gender, values_callable=enum_values), nullable=True)
    blood_group = Column(Enum(BloodGroup, values_callable=enum_values), nullable=True)
    address = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Doctor specific fields
    specialization = Column(String(100), nullable=True)
    qualification = Column(String(200), nullable=True)
    license_number = Column(String(50), unique=True, nullable=True)
    experience = Column(Integer, default=0)
    consultation_fee = Column(Numeric(10, 2), default=0)

    # Pharmacist specific fields
    pharmacy_license = Column(String(50), nullable=True)

    # Relationships
    doctor_appointments = relationship("Appointment", foreign_keys="Appointment.doctor_id", back_populates="doctor")
    patient_appointments = relationship("Appointment", foreign_keys="Appointment.patient_id", back_populates="patient")
    doctor_prescriptions = relationship("Prescription", foreign_keys="Prescription.doctor_id", back_populates="doctor")
    patient_prescriptions = relationship("Prescription", foreign_keys="Prescription.patient_id", back_populates="patient")
    patient_bills = relationship("Billing", foreign_keys="Billing.patient_id", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
