import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("SEED_DEMO_DATA", "false")

from datetime import date, time, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from hospital_api.core.security import create_access_token, get_password_hash  # noqa: E402
from hospital_api.database import Base, configure_sqlite, get_db  # noqa: E402
from hospital_api.main import app  # noqa: E402
from hospital_api.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from hospital_api.models.inventory import InventoryCategory, InventoryItem  # noqa: E402
from hospital_api.models.prescription import Prescription  # noqa: E402
from hospital_api.models.user import Role, User  # noqa: E402

PASSWORD = "Secret123"


@pytest.fixture
def engine():
    engine = configure_sqlite(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role=Role.PATIENT, **fields):
        counter["n"] += 1
        n = counter["n"]
        defaults = {
            "email": f"{role.value}{n}@hms.org",
            "hashed_password": get_password_hash(PASSWORD),
            "first_name": role.value.title(),
            "last_name": f"User{n}",
            "role": role,
            "phone": f"555000{n:04d}",
        }
        if role == Role.PATIENT:
            defaults["date_of_birth"] = date(1990, 1, 1)
        if role == Role.DOCTOR:
            defaults.update(specialization="Cardiology", license_number=f"LIC-{n}")
        if role == Role.PHARMACIST:
            defaults["pharmacy_license"] = f"PH-{n}"
        defaults.update(fields)
        user = User(**defaults)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


@pytest.fixture
def doctor(make_user):
    return make_user(Role.DOCTOR)


@pytest.fixture
def patient(make_user):
    return make_user(Role.PATIENT)


@pytest.fixture
def other_patient(make_user):
    return make_user(Role.PATIENT)


@pytest.fixture
def pharmacist(make_user):
    return make_user(Role.PHARMACIST)


@pytest.fixture
def receptionist(make_user):
    return make_user(Role.RECEPTIONIST)


@pytest.fixture
def nurse(make_user):
    return make_user(Role.NURSE)


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def headers():
    return auth_headers


@pytest.fixture
def make_appointment(db):
    def _make_appointment(patient, doctor, status=AppointmentStatus.PENDING, **fields):
        defaults = {
            "patient_id": patient.id,
            "doctor_id": doctor.id,
            "date": date.today() + timedelta(days=1),
            "time": time(10, 0),
            "reason": "Checkup",
            "status": status,
            "created_by": patient.id,
        }
        defaults.update(fields)
        appointment = Appointment(**defaults)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def make_item(db):
    def _make_item(name="Paracetamol", quantity=100, unit_price="2.50", reorder_level=10, **fields):
        item = InventoryItem(
            name=name,
            category=InventoryCategory.MEDICINE,
            quantity=quantity,
            unit="tablet",
            unit_price=Decimal(unit_price),
            cost=Decimal("1.00"),
            reorder_level=reorder_level,
            **fields,
        )
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    return _make_item


@pytest.fixture
def make_prescription(db):
    def _make_prescription(doctor, patient, medications, **fields):
        prescription = Prescription(
            doctor_id=doctor.id,
            patient_id=patient.id,
            medications=medications,
            **fields,
        )
        db.add(prescription)
        db.commit()
        db.refresh(prescription)
        return prescription

    return _make_prescription
