"""
Tests for the authentication endpoints.
"""
from medicloud.auth.schemas import INVALID_CREDENTIALS_MESSAGE, ORACLE_UNAVAILABLE_MESSAGE, STORE_UNAVAILABLE_MESSAGE
from medicloud.config import settings
from medicloud.core.security import create_access_token, verify_token
from medicloud.database import get_face_oracle, get_store
from medicloud.main import app


def test_login(client, store, make_patient):
    """
    Test a successful login returns a token and the profile without the password.
    """
    store.insert(make_patient())

    response = client.post("/api/v1/auth/login", json={"patientId": "pat001", "password": "Secret123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert verify_token(data["access_token"])["sub"] == "PAT001"
    assert data["patient"]["id"] == "PAT001"
    assert data["patient"]["full_name"] == "Asha Verma"
    assert "password" not in data["patient"]
    assert data["confidence"] is None


def test_login_serializes_bills_with_stored_keys(client, store, make_patient):
    store.insert(make_patient())

    response = client.post("/api/v1/auth/login", json={"patientId": "PAT001", "password": "Secret123"})

    bill = response.json()["patient"]["bill_payments"][0]
    assert bill["disease"] == "Viral Fever"
    assert bill["paymentMethod"] == "UPI"


def test_login_wrong_password(client, store, make_patient):
    store.insert(make_patient())

    response = client.post("/api/v1/auth/login", json={"patientId": "PAT001", "password": "wrong"})

    assert response.status_code == 401
    assert response.json()["detail"] == INVALID_CREDENTIALS_MESSAGE


def test_login_empty_store(client):
    response = client.post("/api/v1/auth/login", json={"patientId": "PAT001", "password": "Secret123"})

    assert response.status_code == 401
    assert response.json()["detail"] == INVALID_CREDENTIALS_MESSAGE


def test_login_store_unavailable(client, failing_read_store):
    """
    Test a store outage is reported as 503, not as bad credentials.
    """
    app.dependency_overrides[get_store] = lambda: failing_read_store

    response = client.post("/api/v1/auth/login", json={"patientId": "PAT001", "password": "Secret123"})

    assert response.status_code == 503
    assert response.json()["detail"] == STORE_UNAVAILABLE_MESSAGE


def test_face_login_upload(client, store, make_patient, oracle, png_bytes):
    """
    Test face login with an uploaded photo.
    """
    store.insert(make_patient())

    response = client.post(
        "/api/v1/auth/face-login",
        data={"patient_id": "PAT001"},
        files={"image": ("capture.png", png_bytes, "image/png")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["confidence"] == 0.95
    assert data["patient"]["id"] == "PAT001"
    assert oracle.calls[0][1].startswith("data:image/png;base64,")


def test_face_login_rejects_unaccepted_file_type(client, store, make_patient, oracle):
    store.insert(make_patient())

    response = client.post(
        "/api/v1/auth/face-login",
        data={"patient_id": "PAT001"},
        files={"image": ("capture.gif", b"GIF89a", "image/gif")},
    )

    assert response.status_code == 400
    assert oracle.calls == []


def test_face_login_rejects_oversized_upload(monkeypatch, client, store, make_patient, oracle, png_bytes):
    monkeypatch.setattr(settings, "max_image_bytes", 16)
    store.insert(make_patient())

    response = client.post(
        "/api/v1/auth/face-login",
        data={"patient_id": "PAT001"},
        files={"image": ("capture.png", png_bytes, "image/png")},
    )

    assert response.status_code == 400
    assert oracle.calls == []


def test_face_login_data_uri(client, store, make_patient, live_image):
    store.insert(make_patient())

    response = client.post(
        "/api/v1/auth/face-login/data-uri",
        json={"patientId": "PAT001", "imageDataUri": live_image},
    )

    assert response.status_code == 200
    assert response.json()["access_token"]


def test_face_login_data_uri_rejects_garbage(client, store, make_patient):
    store.insert(make_patient())

    response = client.post(
        "/api/v1/auth/face-login/data-uri",
        json={"patientId": "PAT001", "imageDataUri": "not-an-image"},
    )

    assert response.status_code == 400


def test_face_login_mismatch(client, store, make_patient, make_oracle, live_image):
    """
    Test a mismatch is a 401 carrying the model's reason.
    """
    store.insert(make_patient())
    app.dependency_overrides[get_face_oracle] = lambda: make_oracle(
        is_same_person=False, confidence=0.9, reason="Different person"
    )

    response = client.post(
        "/api/v1/auth/face-login/data-uri",
        json={"patientId": "PAT001", "imageDataUri": live_image},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Different person"


def test_face_login_unknown_patient(client, live_image):
    response = client.post(
        "/api/v1/auth/face-login/data-uri",
        json={"patientId": "PAT404", "imageDataUri": live_image},
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Patient profile not found"


def test_face_login_model_unavailable(client, store, make_patient, failing_oracle, live_image):
    store.insert(make_patient())
    app.dependency_overrides[get_face_oracle] = lambda: failing_oracle

    response = client.post(
        "/api/v1/auth/face-login/data-uri",
        json={"patientId": "PAT001", "imageDataUri": live_image},
    )

    assert response.status_code == 503
    assert response.json()["detail"] == ORACLE_UNAVAILABLE_MESSAGE


def test_validate_credentials(client, store, make_patient):
    store.insert(make_patient())

    valid = client.post("/api/v1/auth/validate", json={"patientId": "PAT001", "password": "Secret123"})
    invalid = client.post("/api/v1/auth/validate", json={"patientId": "PAT001", "password": "nope"})

    assert valid.json() == {"valid": True}
    assert invalid.json() == {"valid": False}


def test_token_gives_access_to_profile(client, store, make_patient, login):
    store.insert(make_patient())

    response = client.get("/api/v1/patients/me", headers=login("pat001"))

    assert response.status_code == 200
    assert response.json()["id"] == "PAT001"


def test_missing_token(client):
    response = client.get("/api/v1/patients/me")

    assert response.status_code == 401


def test_token_for_deleted_patient(client):
    token = create_access_token({"sub": "PAT404", "type": "access"})

    response = client.get("/api/v1/patients/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_token_of_wrong_type(client, store, make_patient):
    store.insert(make_patient())
    token = create_access_token({"sub": "PAT001", "type": "refresh"})

    response = client.get("/api/v1/patients/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
