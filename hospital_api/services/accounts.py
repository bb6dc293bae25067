import logging
import re
from datetime import date, datetime, timezone
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from sqlalchemy.orm import Session

from hospital_api.core.errors import AccountDisabledError, AuthenticationError, ConflictError, ValidationError
from hospital_api.core.security import get_password_hash, verify_password
from hospital_api.models.user import BloodGroup, Gender, Role, User

logger = logging.getLogger(__name__)

PHONE_PATTERN = r"^[0-9+\-\s()]+$"
MAX_AGE_YEARS = 120

DOCTOR_FIELDS = ("specialization", "qualification", "license_number", "experience", "consultation_fee")
PHARMACIST_FIELDS = ("pharmacy_license",)


def check_password_strength(password: str) -> str:
    if len(password) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not (re.search(r"[a-z]", password) and re.search(r"[A-Z]", password) and re.search(r"\d", password)):
        raise ValueError("Password must contain at least one uppercase letter, one lowercase letter, and one number")
    return password


def check_date_of_birth(value: Optional[date]) -> Optional[date]:
    if value is None:
        return value
    today = date.today()
    if value > today:
        raise ValueError("Date of birth cannot be in the future")
    if today.year - value.year > MAX_AGE_YEARS:
        raise ValueError("Please provide a valid date of birth")
    return value


class AccountCreate(BaseModel):
    email: EmailStr
    password: str
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    phone: str = Field(min_length=10, max_length=15, pattern=PHONE_PATTERN)
    role: Role = Role.PATIENT
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None
    address: Optional[str] = Field(default=None, max_length=500)

    # Doctor specific fields
    specialization: Optional[str] = Field(default=None, max_length=100)
    qualification: Optional[str] = Field(default=None, max_length=200)
    license_number: Optional[str] = Field(default=None, max_length=50)
    experience: Optional[int] = Field(default=None, ge=0, le=50)
    consultation_fee: Optional[float] = Field(default=None, ge=0)

    # Pharmacist specific fields
    pharmacy_license: Optional[str] = Field(default=None, max_length=50)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value):
        return check_password_strength(value)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value):
        return check_date_of_birth(value)

    @model_validator(mode="after")
    def check_role_fields(self):
        if self.role == Role.PATIENT and self.date_of_birth is None:
            raise ValueError("Date of birth is required for patients")
        if self.role == Role.DOCTOR and not (self.specialization and self.license_number):
            raise ValueError("Doctors must provide specialization and license number")
        if self.role == Role.PHARMACIST and not self.pharmacy_license:
            raise ValueError("Pharmacists require pharmacy license number")
        return self


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    last_name: Optional[str] = Field(default=None, min_length=2, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, min_length=10, max_length=15, pattern=PHONE_PATTERN)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    blood_group: Optional[BloodGroup] = None
    address: Optional[str] = Field(default=None, max_length=500)

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, value):
        return check_date_of_birth(value)


def _ensure_email_free(db: Session, email: str, exclude_id: int = None):
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("User already exists with this email")


def create_account(db: Session, data: AccountCreate) -> User:
    _ensure_email_free(db, data.email)
    if data.license_number and data.role == Role.DOCTOR:
        if db.query(User.id).filter(User.license_number == data.license_number).first():
            raise ConflictError("User with this license number already exists")

    fields = data.model_dump(exclude={"password", *DOCTOR_FIELDS, *PHARMACIST_FIELDS})
    if data.role == Role.DOCTOR:
        fields.update({name: getattr(data, name) for name in DOCTOR_FIELDS})
        fields["experience"] = fields["experience"] or 0
        fields["consultation_fee"] = fields["consultation_fee"] or 0
    elif data.role == Role.PHARMACIST:
        fields["pharmacy_license"] = data.pharmacy_license

    user = User(hashed_password=get_password_hash(data.password), **fields)
    db.add(user)
    db.flush()
    logger.info("Created %s account %s (%s)", user.role.value, user.id, user.email)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Check credentials, stamp last_login and return the account."""
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("Failed login for %s", email)
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        logger.info("Login attempt on deactivated account %s", user.id)
        raise AccountDisabledError()

    user.last_login = datetime.now(timezone.utc)
    logger.info("User %s logged in", user.id)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdate) -> User:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in changes:
        _ensure_email_free(db, changes["email"], exclude_id=user.id)
    for field, value in changes.items():
        setattr(user, field, value)
    return user


def change_password(user: User, current_password: str, new_password: str) -> User:
    if not verify_password(current_password, user.hashed_password):
        raise ValidationError("Current password is incorrect")
    user.hashed_password = get_password_hash(new_password)
    logger.info("Password changed for user %s", user.id)
    return user
