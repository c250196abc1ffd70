"""
Authentication Schemas - Result objects returned by the authenticators and
Pydantic models for login requests and responses.
"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..patients.models import PatientRecord
from ..patients.schemas import PatientResponse

STORE_UNAVAILABLE_MESSAGE = "Unable to connect to database. Please try again later."
INVALID_CREDENTIALS_MESSAGE = "Invalid Patient ID or Password"
UNKNOWN_IDENTITY_MESSAGE = "Patient profile not found"
FACE_MISMATCH_MESSAGE = "Face verification failed. The faces do not match."
ORACLE_UNAVAILABLE_MESSAGE = "An error occurred during face verification. Please try again later."


class AuthErrorCode(str, Enum):
    """Why an authentication attempt failed"""
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    EMPTY_STORE = "EMPTY_STORE"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    UNKNOWN_IDENTITY = "UNKNOWN_IDENTITY"
    FACE_MISMATCH = "FACE_MISMATCH"
    ORACLE_UNAVAILABLE = "ORACLE_UNAVAILABLE"


class LoginResult(BaseModel):
    """
    Login Result - Outcome of a password login

    Fields:
    - success: Whether the patient is authenticated
    - patient: Patient record with refreshed last visit (on success)
    - error: User-facing explanation (on failure)
    - error_code: Machine-readable failure reason (on failure)
    """
    success: bool
    patient: Optional[PatientRecord] = None
    error: Optional[str] = None
    error_code: Optional[AuthErrorCode] = None

    @classmethod
    def failure(cls, error_code: AuthErrorCode, error: str):
        return cls(success=False, error=error, error_code=error_code)


class FaceLoginResult(LoginResult):
    """
    Face Login Result - Outcome of a face login

    Adds:
    - confidence: The model's confidence in the match (on success)
    """
    confidence: Optional[float] = None


class LoginRequest(BaseModel):
    """
    Login Request Schema - Used for password authentication

    Fields:
    - patient_id: Patient ID (any letter case)
    - password: Patient's password
    """
    patient_id: str = Field(..., alias="patientId", min_length=1)
    password: str = Field(..., min_length=1)

    class Config:
        populate_by_name = True


class FaceLoginRequest(BaseModel):
    """
    Face Login Request Schema - Used when the frontend sends a captured frame as a data URI

    Fields:
    - patient_id: Claimed patient ID
    - image_data_uri: Captured frame, "data:<mime>;base64,<data>"
    """
    patient_id: str = Field(..., alias="patientId", min_length=1)
    image_data_uri: str = Field(..., alias="imageDataUri", min_length=1)

    class Config:
        populate_by_name = True


class LoginResponse(BaseModel):
    """
    Login Response Schema - Returned after a successful login

    Fields:
    - access_token: JWT access token
    - token_type: Always "bearer"
    - patient: Patient profile
    - confidence: Face match confidence (face login only)
    """
    access_token: str
    token_type: str = "bearer"
    patient: PatientResponse
    confidence: Optional[float] = None
