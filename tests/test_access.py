import pytest

from hospital_api.core.access import doctor_has_patient, ensure_patient_access
from hospital_api.core.errors import AuthorizationError
from hospital_api.models.user import Role


@pytest.mark.parametrize("path", [
    "/api/admin/dashboard",
    "/api/doctor/dashboard",
    "/api/pharmacist/dashboard",
    "/api/receptionist/dashboard",
    "/api/inventory",
    "/api/billing",
])
def test_patient_is_kept_out_of_staff_routes(client, patient, headers, path):
    response = client.get(path, headers=headers(patient))

    assert response.status_code == 403
    assert response.json()["success"] is False
    assert "patient role not authorized" in response.json()["message"]


def test_roles_have_no_hierarchy(client, admin, headers):
    # Admin is not implicitly a doctor
    response = client.get("/api/doctor/dashboard", headers=headers(admin))

    assert response.status_code == 403


@pytest.mark.parametrize("role, path", [
    (Role.ADMIN, "/api/admin/dashboard"),
    (Role.DOCTOR, "/api/doctor/dashboard"),
    (Role.PATIENT, "/api/patient/dashboard"),
    (Role.PHARMACIST, "/api/pharmacist/dashboard"),
    (Role.RECEPTIONIST, "/api/receptionist/dashboard"),
])
def test_each_role_reaches_its_dashboard(client, make_user, headers, role, path):
    response = client.get(path, headers=headers(make_user(role)))

    assert response.status_code == 200
    assert "stats" in response.json()["data"]


def test_role_gate_checks_token_first(client, db, monkeypatch):
    calls = []
    for name in ("query", "add", "commit"):
        monkeypatch.setattr(db, name, lambda *args, _name=name, **kwargs: calls.append(_name))

    missing = client.get("/api/admin/dashboard")
    garbage = client.get("/api/admin/dashboard", headers={"Authorization": "Bearer not-a-token"})
    wrong_scheme = client.post("/api/inventory/1/stock", json={"quantity": 1, "operation": "add"},
                               headers={"Authorization": "Basic abc"})

    assert missing.status_code == 401
    assert garbage.status_code == 401
    assert wrong_scheme.status_code == 401
    assert calls == []


def test_doctor_has_patient_requires_an_appointment(db, doctor, patient, other_patient, make_appointment):
    make_appointment(patient, doctor)

    assert doctor_has_patient(db, doctor.id, patient.id)
    assert not doctor_has_patient(db, doctor.id, other_patient.id)


def test_ensure_patient_access_rules(db, doctor, patient, other_patient, nurse, pharmacist, make_appointment):
    make_appointment(patient, doctor)

    ensure_patient_access(db, patient, patient.id)
    ensure_patient_access(db, doctor, patient.id)
    ensure_patient_access(db, nurse, other_patient.id)

    with pytest.raises(AuthorizationError):
        ensure_patient_access(db, patient, other_patient.id)
    with pytest.raises(AuthorizationError):
        ensure_patient_access(db, doctor, other_patient.id)
    with pytest.raises(AuthorizationError):
        ensure_patient_access(db, pharmacist, patient.id)


def test_patient_reads_own_record_only(client, patient, other_patient, headers):
    own = client.get(f"/api/patients/{patient.id}", headers=headers(patient))
    other = client.get(f"/api/patients/{other_patient.id}", headers=headers(patient))

    assert own.status_code == 200
    assert other.status_code == 403


def test_doctor_reads_only_related_patients(client, doctor, patient, other_patient, headers, make_appointment):
    make_appointment(patient, doctor)

    assert client.get(f"/api/patients/{patient.id}", headers=headers(doctor)).status_code == 200
    assert client.get(f"/api/patients/{other_patient.id}", headers=headers(doctor)).status_code == 403


def test_doctor_patient_list_is_scoped(client, doctor, patient, other_patient, headers, make_appointment):
    make_appointment(patient, doctor)

    response = client.get("/api/patients", headers=headers(doctor))

    assert response.status_code == 200
    ids = [p["id"] for p in response.json()["data"]]
    assert ids == [patient.id]


def test_staff_patient_list_is_paginated(client, receptionist, make_user, headers):
    for _ in range(3):
        make_user(Role.PATIENT)

    response = client.get("/api/patients?page=1&limit=2", headers=headers(receptionist))

    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"] == {"current": 1, "total": 2, "results": 2, "total_results": 3}
