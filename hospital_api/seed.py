"""Load demo accounts, a department and a few inventory items.

Safe to run repeatedly: rows are matched by email or name and skipped when
they already exist.

    python -m hospital_api.seed
"""
import logging
from datetime import date
from decimal import Decimal

from hospital_api.core.security import get_password_hash
from hospital_api.database import Base, SessionLocal, engine, transaction
from hospital_api.models import appointment, billing, medical_record, prescription  # noqa: F401
from hospital_api.models.department import Department
from hospital_api.models.inventory import InventoryCategory, InventoryItem
from hospital_api.models.user import Gender, Role, User

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"email": "admin@hms.com", "password": "Admin123", "first_name": "System", "last_name": "Admin",
     "role": Role.ADMIN, "phone": "1234567890"},
    {"email": "doctor@hms.com", "password": "Doctor123", "first_name": "John", "last_name": "Smith",
     "role": Role.DOCTOR, "phone": "1234567891", "specialization": "Cardiology",
     "qualification": "MD", "license_number": "DOC-0001", "experience": 10,
     "consultation_fee": Decimal("150.00")},
    {"email": "reception@hms.com", "password": "Reception123", "first_name": "Mary", "last_name": "Jones",
     "role": Role.RECEPTIONIST, "phone": "1234567892"},
    {"email": "pharmacist@hms.com", "password": "Pharma123", "first_name": "Paul", "last_name": "Brown",
     "role": Role.PHARMACIST, "phone": "1234567893", "pharmacy_license": "PH-0001"},
    {"email": "nurse@hms.com", "password": "Nurse123", "first_name": "Nora", "last_name": "White",
     "role": Role.NURSE, "phone": "1234567894"},
    {"email": "patient@hms.com", "password": "Patient123", "first_name": "Jane", "last_name": "Doe",
     "role": Role.PATIENT, "phone": "1234567895", "date_of_birth": date(1990, 5, 15),
     "gender": Gender.FEMALE},
]

DEMO_INVENTORY = [
    {"name": "Paracetamol 500mg", "category": InventoryCategory.MEDICINE, "quantity": 500, "unit": "tablet",
     "unit_price": Decimal("0.50"), "cost": Decimal("0.20"), "reorder_level": 100},
    {"name": "Amoxicillin 250mg", "category": InventoryCategory.MEDICINE, "quantity": 200, "unit": "capsule",
     "unit_price": Decimal("1.20"), "cost": Decimal("0.60"), "reorder_level": 50},
    {"name": "Surgical Gloves", "category": InventoryCategory.SUPPLIES, "quantity": 20, "unit": "box",
     "unit_price": Decimal("8.00"), "cost": Decimal("5.00"), "reorder_level": 25},
]


def seed(db=None):
    owns_session = db is None
    if owns_session:
        db = SessionLocal()
    created = 0
    try:
        with transaction(db):
            for entry in DEMO_USERS:
                if db.query(User.id).filter(User.email == entry["email"]).first():
                    continue
                fields = dict(entry)
                db.add(User(hashed_password=get_password_hash(fields.pop("password")), **fields))
                created += 1
            db.flush()

            doctor = db.query(User).filter(User.email == "doctor@hms.com").first()
            if not db.query(Department.id).filter(Department.name == "Cardiology").first():
                db.add(Department(
                    name="Cardiology",
                    description="Heart and vascular care",
                    head_doctor_id=doctor.id if doctor else None,
                    location="Block A",
                ))
                created += 1

            for entry in DEMO_INVENTORY:
                if db.query(InventoryItem.id).filter(InventoryItem.name == entry["name"]).first():
                    continue
                db.add(InventoryItem(**entry))
                created += 1
    finally:
        if owns_session:
            db.close()

    logger.info("Seeded %s demo rows", created)
    return created


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    Base.metadata.create_all(bind=engine)
    seed()
