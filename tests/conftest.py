"""
Test configuration for the patient portal backend.
"""
import base64
import os

# Settings are read at import time, so these must be set before medicloud is imported
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime, timezone
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from medicloud.auth.exceptions import OracleUnavailableError, StoreUnavailableError
from medicloud.core.security import hash_password
from medicloud.database import get_face_oracle, get_store
from medicloud.face.oracle import FaceMatchOracle, FaceVerdict
from medicloud.main import app
from medicloud.patients.models import PatientRecord
from medicloud.patients.store import InMemoryPatientStore


def make_png(color=(200, 150, 120), size=(8, 8)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(color=(200, 150, 120)) -> str:
    return "data:image/png;base64," + base64.b64encode(make_png(color)).decode("utf-8")


class StubFaceOracle(FaceMatchOracle):
    """
    Face oracle that returns a preset verdict and remembers what it was asked.
    """
    def __init__(self, is_same_person=True, confidence=0.95, reason="match", error=None):
        self.verdict = FaceVerdict(is_same_person=is_same_person, confidence=confidence, reason=reason)
        self.error = error
        self.calls = []

    def verify(self, image_a, image_b):
        self.calls.append((image_a, image_b))
        if self.error is not None:
            raise self.error
        return self.verdict


class FailingWriteStore(InMemoryPatientStore):
    """
    In-memory store whose writes always fail, for best-effort write tests.
    """
    def upsert(self, record, expected_version=None):
        raise StoreUnavailableError("Could not save patient data.")

    def save_all(self, records):
        raise StoreUnavailableError("Could not save patient data.")


class FailingReadStore(InMemoryPatientStore):
    """
    In-memory store that cannot be read.
    """
    def load(self):
        raise StoreUnavailableError("Could not read patient data.")

    def get(self, patient_id, case_insensitive=False):
        raise StoreUnavailableError("Could not read patient data.")


@pytest.fixture(scope="session")
def png_bytes():
    return make_png()


@pytest.fixture(scope="session")
def face_image():
    return png_data_uri((200, 150, 120))


@pytest.fixture(scope="session")
def live_image():
    return png_data_uri((190, 140, 110))


@pytest.fixture(scope="session")
def hashed_secret():
    """bcrypt hash of "Secret123", computed once because hashing is slow."""
    return hash_password("Secret123")


@pytest.fixture
def make_patient(face_image, hashed_secret):
    """
    Factory for patient records. The default password is "Secret123".
    """
    def _make_patient(**overrides):
        data = {
            "id": "PAT001",
            "password": hashed_secret,
            "first_name": "Asha",
            "last_name": "Verma",
            "house_address": "12 Lake Road",
            "blood_group": "O+",
            "age": "34",
            "gender": "Female",
            "contact_number": "9876543210",
            "emergency_contact_name": "Ravi Verma",
            "emergency_contact_relation": "Brother",
            "emergency_contact_phone": "9123456780",
            "face_image": face_image,
            "last_visit": datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc),
        }
        data.update(overrides)
        return PatientRecord(**data)
    return _make_patient


@pytest.fixture
def store():
    return InMemoryPatientStore()


@pytest.fixture
def oracle():
    return StubFaceOracle()


@pytest.fixture
def failing_oracle():
    return StubFaceOracle(error=OracleUnavailableError("model timed out"))


@pytest.fixture
def make_oracle():
    return StubFaceOracle


@pytest.fixture
def failing_write_store():
    return FailingWriteStore


@pytest.fixture
def failing_read_store():
    return FailingReadStore()


@pytest.fixture(scope="function")
def client(store, oracle):
    """
    Create a test client wired to the in-memory store and stub face oracle.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_face_oracle] = lambda: oracle

    with TestClient(app) as client:
        yield client

    app.dependency_overrides = {}


@pytest.fixture
def login(client):
    """
    Log a patient in and return the Authorization header.
    """
    def _login(patient_id="PAT001", password="Secret123"):
        response = client.post("/api/v1/auth/login", json={"patientId": patient_id, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _login
