import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from hospital_api.models.appointment import AppointmentPriority, AppointmentStatus, AppointmentType
from hospital_api.models.billing import BillStatus, PaymentMethod
from hospital_api.models.inventory import InventoryCategory
from hospital_api.models.medical_record import RecordType
from hospital_api.models.prescription import PrescriptionStatus
from hospital_api.models.user import BloodGroup, Gender, Role


class UserSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None
    specialization: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    phone: str
    date_of_birth: Optional[dt.date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None
    address: Optional[str] = None
    specialization: Optional[str] = None
    qualification: Optional[str] = None
    license_number: Optional[str] = None
    experience: Optional[int] = None
    consultation_fee: Optional[float] = None
    pharmacy_license: Optional[str] = None
    is_active: bool
    last_login: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    date: dt.date
    time: dt.time
    type: Optional[AppointmentType] = None
    status: AppointmentStatus
    reason: str
    symptoms: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    duration: Optional[int] = None
    priority: Optional[AppointmentPriority] = None
    room_number: Optional[str] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[dt.date] = None
    created_by: int
    patient: Optional[UserSummary] = None
    doctor: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class BillItemResponse(BaseModel):
    description: str
    quantity: int
    unit_price: float
    total: float


class BillResponse(BaseModel):
    id: int
    bill_number: str
    patient_id: int
    appointment_id: Optional[int] = None
    bill_date: dt.date
    due_date: dt.date
    items: List[BillItemResponse]
    subtotal: float
    tax_amount: float
    discount: float
    total_amount: float
    paid_amount: float
    balance: float
    status: BillStatus
    payment_method: Optional[PaymentMethod] = None
    insurance_provider: Optional[str] = None
    insurance_claim_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: int

    class Config:
        from_attributes = True


class InventoryResponse(BaseModel):
    id: int
    name: str
    category: InventoryCategory
    description: Optional[str] = None
    quantity: int
    unit: str
    unit_price: float
    cost: float
    reorder_level: int
    supplier: Optional[str] = None
    batch_number: Optional[str] = None
    expiry_date: Optional[dt.date] = None
    location: Optional[str] = None
    is_active: bool
    is_low_stock: bool

    class Config:
        from_attributes = True


class Medication(BaseModel):
    name: str
    dosage: str
    frequency: str
    duration: str
    quantity: int
    unit_price: Optional[float] = None
    instructions: Optional[str] = None


class PrescriptionResponse(BaseModel):
    id: int
    doctor_id: int
    patient_id: int
    appointment_id: Optional[int] = None
    medications: List[Medication]
    instructions: Optional[str] = None
    status: PrescriptionStatus
    valid_until: Optional[dt.date] = None
    is_dispensed: bool
    dispensed_by: Optional[int] = None
    dispensed_at: Optional[dt.datetime] = None
    created_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True


class MedicalRecordResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_id: Optional[int] = None
    record_type: RecordType
    title: str
    description: Optional[str] = None
    diagnosis: Optional[str] = None
    treatment: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    doctor: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class DepartmentResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    head_doctor_id: Optional[int] = None
    contact_number: Optional[str] = None
    location: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class AppointmentCreate(BaseModel):
    doctor_id: int
    date: dt.date
    time: dt.time
    reason: str = Field(min_length=1, max_length=500)
    type: AppointmentType = AppointmentType.CONSULTATION
    symptoms: Optional[str] = None
    duration: int = Field(default=30, ge=15, le=240)
    priority: AppointmentPriority = AppointmentPriority.MEDIUM
    room_number: Optional[str] = None

    @field_validator("date")
    @classmethod
    def not_in_past(cls, value):
        if value < dt.date.today():
            raise ValueError("Appointment date cannot be in the past")
        return value


class StaffAppointmentCreate(AppointmentCreate):
    patient_id: int


class BillItem(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)


class BillCreate(BaseModel):
    patient_id: int
    appointment_id: Optional[int] = None
    items: List[BillItem] = Field(min_length=1)
    tax: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    due_date: Optional[dt.date] = None
    insurance_provider: Optional[str] = None
    insurance_claim_number: Optional[str] = None
    notes: Optional[str] = None


class PaymentRequest(BaseModel):
    amount: float = Field(gt=0)
    payment_method: PaymentMethod
