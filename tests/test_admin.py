from datetime import date, datetime, time

from hospital_api.models.appointment import AppointmentStatus
from hospital_api.models.user import Role
from hospital_api.services.billing import create_bill, record_payment

ITEMS = [{"description": "Consultation", "quantity": 1, "unit_price": 125}]


def new_account(**overrides):
    body = {
        "email": "staff@hms.org",
        "password": "Secret123",
        "first_name": "Sam",
        "last_name": "Staff",
        "phone": "5559876543",
        "role": "nurse",
    }
    body.update(overrides)
    return body


def test_admin_creates_and_lists_users(client, admin, headers):
    created = client.post("/api/admin/users", json=new_account(), headers=headers(admin))
    listed = client.get("/api/admin/users?role=nurse", headers=headers(admin))

    assert created.status_code == 201
    assert created.json()["data"]["role"] == "nurse"
    assert [u["email"] for u in listed.json()["data"]] == ["staff@hms.org"]


def test_admin_search_users(client, admin, make_user, headers):
    make_user(Role.DOCTOR, first_name="Gregory", last_name="House")
    make_user(Role.DOCTOR)

    response = client.get("/api/admin/users?search=hous", headers=headers(admin))

    assert [u["last_name"] for u in response.json()["data"]] == ["House"]


def test_admin_update_cannot_change_role(client, admin, patient, headers):
    response = client.put(f"/api/admin/users/{patient.id}", json={"role": "admin", "address": "2 Elm St"},
                          headers=headers(admin))

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "patient"
    assert response.json()["data"]["address"] == "2 Elm St"


def test_admin_deactivates_user(client, db, admin, patient, headers):
    auth = headers(patient)

    response = client.delete(f"/api/admin/users/{patient.id}", headers=headers(admin))

    assert response.status_code == 200
    db.refresh(patient)
    assert patient.is_active is False
    assert client.get("/api/auth/me", headers=auth).status_code == 401


def test_admin_cannot_deactivate_self(client, admin, headers):
    response = client.delete(f"/api/admin/users/{admin.id}", headers=headers(admin))

    assert response.status_code == 400


def test_departments(client, admin, doctor, patient, headers):
    created = client.post("/api/admin/departments",
                          json={"name": "Cardiology", "head_doctor_id": doctor.id}, headers=headers(admin))
    duplicate = client.post("/api/admin/departments", json={"name": "Cardiology"}, headers=headers(admin))
    bad_head = client.post("/api/admin/departments",
                           json={"name": "Neurology", "head_doctor_id": patient.id}, headers=headers(admin))
    listed = client.get("/api/admin/departments", headers=headers(admin))

    assert created.status_code == 201
    assert duplicate.status_code == 409
    assert bad_head.status_code == 400
    assert [d["name"] for d in listed.json()["data"]] == ["Cardiology"]


def test_receptionist_registers_patient(client, receptionist, headers):
    response = client.post(
        "/api/receptionist/patients",
        json=new_account(email="walkin@hms.org", role="doctor", date_of_birth="1985-06-01"),
        headers=headers(receptionist),
    )
    search = client.get("/api/receptionist/patients?search=walkin", headers=headers(receptionist))

    assert response.status_code == 201
    assert response.json()["data"]["role"] == "patient"
    assert search.json()["pagination"]["total_results"] == 1


def test_patient_doctor_directory(client, patient, make_user, headers):
    make_user(Role.DOCTOR, specialization="Neurology")
    make_user(Role.DOCTOR, specialization="Cardiology")

    response = client.get("/api/patient/doctors?specialization=neuro", headers=headers(patient))

    assert [d["specialization"] for d in response.json()["data"]] == ["Neurology"]


def test_health_and_unknown_route(client):
    assert client.get("/api/health").json()["success"] is True

    missing = client.get("/api/nowhere")
    assert missing.status_code == 404
    assert missing.json()["success"] is False


def test_admin_statistics_groups_counts(client, db, admin, make_user, make_appointment, headers):
    january = make_user(Role.PATIENT, created_at=datetime(2026, 1, 5, 9, 0))
    make_user(Role.PATIENT, created_at=datetime(2026, 1, 20, 9, 0))
    make_user(Role.PATIENT, created_at=datetime(2026, 2, 3, 9, 0))
    cardiologist = make_user(Role.DOCTOR)
    make_user(Role.DOCTOR)
    make_user(Role.DOCTOR, specialization="Neurology")
    make_appointment(january, cardiologist)
    make_appointment(january, cardiologist, time=time(11, 0))
    make_appointment(january, cardiologist, status=AppointmentStatus.COMPLETED, time=time(12, 0))
    for day in (3, 17):
        bill = create_bill(db, patient_id=january.id, items=ITEMS, created_by=admin, issued_on=date(2026, 3, day))
        record_payment(bill, bill.total_amount)
    create_bill(db, patient_id=january.id, items=ITEMS, created_by=admin, issued_on=date(2026, 3, 20))
    db.commit()

    response = client.get("/api/admin/statistics", headers=headers(admin))

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["patient_stats"] == [
        {"year": 2026, "month": 1, "count": 2},
        {"year": 2026, "month": 2, "count": 1},
    ]
    assert data["doctor_stats"] == [
        {"specialization": "Cardiology", "count": 2},
        {"specialization": "Neurology", "count": 1},
    ]
    assert data["appointment_stats"] == [
        {"status": "completed", "count": 1},
        {"status": "pending", "count": 2},
    ]
    assert data["revenue_stats"] == [{"year": 2026, "month": 3, "revenue": 250.0}]


def test_statistics_is_admin_only(client, doctor, headers):
    assert client.get("/api/admin/statistics", headers=headers(doctor)).status_code == 403
