from datetime import date, timedelta

from hospital_api.core.security import create_access_token
from hospital_api.models.user import Role

from conftest import PASSWORD


def registration(**overrides):
    body = {
        "email": "jane@hms.org",
        "password": "Secret123",
        "first_name": "Jane",
        "last_name": "Doe",
        "phone": "5551234567",
        "date_of_birth": "1990-01-01",
    }
    body.update(overrides)
    return body


def test_register_patient_returns_token(client):
    response = client.post("/api/auth/register", json=registration())

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["role"] == "patient"
    assert "hashed_password" not in body["user"]


def test_register_rejects_future_date_of_birth(client):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    response = client.post("/api/auth/register", json=registration(date_of_birth=tomorrow))

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "Date of birth" in body["message"]


def test_register_requires_date_of_birth_for_patients(client):
    body = registration()
    del body["date_of_birth"]
    response = client.post("/api/auth/register", json=body)

    assert response.status_code == 400
    assert "Date of birth is required" in response.json()["message"]


def test_register_rejects_weak_password(client):
    response = client.post("/api/auth/register", json=registration(password="secret"))

    assert response.status_code == 400
    assert "uppercase" in response.json()["message"]


def test_register_doctor_needs_license(client):
    response = client.post(
        "/api/auth/register",
        json=registration(role="doctor", specialization="Cardiology"),
    )

    assert response.status_code == 400
    assert "license" in response.json()["message"]


def test_register_doctor_keeps_doctor_fields(client):
    response = client.post(
        "/api/auth/register",
        json=registration(role="doctor", specialization="Cardiology", license_number="LIC-900",
                          consultation_fee=120),
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["specialization"] == "Cardiology"
    assert user["consultation_fee"] == 120


def test_register_patient_drops_doctor_fields(client):
    response = client.post("/api/auth/register", json=registration(specialization="Cardiology"))

    assert response.status_code == 201
    assert response.json()["user"]["specialization"] is None


def test_admin_cannot_self_register(client):
    response = client.post("/api/auth/register", json=registration(role="admin"))

    assert response.status_code == 400


def test_register_duplicate_email_conflicts(client, patient):
    response = client.post("/api/auth/register", json=registration(email=patient.email))

    assert response.status_code == 409
    assert response.json()["success"] is False


def test_login_success_stamps_last_login(client, db, patient):
    response = client.post("/api/auth/login", json={"email": patient.email, "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == patient.id
    db.refresh(patient)
    assert patient.last_login is not None


def test_login_wrong_password(client, patient):
    response = client.post("/api/auth/login", json={"email": patient.email, "password": "Wrong123"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_login_unknown_email(client):
    response = client.post("/api/auth/login", json={"email": "ghost@hms.org", "password": PASSWORD})

    assert response.status_code == 401


def test_login_deactivated_account(client, make_user):
    user = make_user(Role.PATIENT, is_active=False)
    response = client.post("/api/auth/login", json={"email": user.email, "password": PASSWORD})

    assert response.status_code == 401
    assert "deactivated" in response.json()["message"]


def test_me_requires_token(client):
    response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "Access denied. No token provided."
    assert response.headers["www-authenticate"] == "Bearer"


def test_me_rejects_garbage_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token"


def test_me_rejects_expired_token(client, patient):
    token = create_access_token(patient, expires_delta=timedelta(minutes=-1))
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_me_rejects_token_of_deactivated_user(client, db, patient, headers):
    auth = headers(patient)
    patient.is_active = False
    db.commit()

    response = client.get("/api/auth/me", headers=auth)

    assert response.status_code == 401
    assert "deactivated" in response.json()["message"]


def test_me_returns_current_user(client, doctor, headers):
    response = client.get("/api/auth/me", headers=headers(doctor))

    assert response.status_code == 200
    assert response.json()["data"]["email"] == doctor.email


def test_update_profile(client, patient, headers):
    response = client.put("/api/auth/profile", json={"address": "1 Main St"}, headers=headers(patient))

    assert response.status_code == 200
    assert response.json()["data"]["address"] == "1 Main St"


def test_change_password_checks_current(client, patient, headers):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": "Wrong123", "new_password": "Better123"},
        headers=headers(patient),
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Current password is incorrect"


def test_change_password_then_login(client, patient, headers):
    response = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "Better123"},
        headers=headers(patient),
    )
    assert response.status_code == 200

    login = client.post("/api/auth/login", json={"email": patient.email, "password": "Better123"})
    assert login.status_code == 200
