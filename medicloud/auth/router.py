"""
Authentication routes for the patient portal.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
import logging

from ..core.images import read_upload, validate_data_uri
from ..core.security import create_patient_token
from ..database import get_face_oracle, get_store
from ..face.oracle import FaceMatchOracle
from ..patients.schemas import PatientResponse
from ..patients.store import PatientStore
from .exceptions import (
    InvalidCredentialsException,
    InvalidImageError,
    InvalidImageException,
    ServiceUnavailableException,
)
from .schemas import AuthErrorCode, FaceLoginRequest, LoginRequest, LoginResponse, LoginResult
from .service import authenticate_patient, authenticate_patient_with_face, validate_patient_credentials

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter()

UNAVAILABLE_CODES = {AuthErrorCode.STORE_UNAVAILABLE, AuthErrorCode.ORACLE_UNAVAILABLE}


def _login_response(result: LoginResult) -> LoginResponse:
    """
    Turn an authenticator result into a login response or an HTTP error.
    """
    if not result.success:
        if result.error_code in UNAVAILABLE_CODES:
            raise ServiceUnavailableException(result.error)
        raise InvalidCredentialsException(result.error)

    return LoginResponse(
        access_token=create_patient_token(result.patient.id),
        patient=PatientResponse.from_record(result.patient),
        confidence=getattr(result, "confidence", None),
    )


@router.post("/login", response_model=LoginResponse, summary="Patient Login")
def login_route(
    credentials: LoginRequest,
    store: PatientStore = Depends(get_store),
):
    """
    Log in with Patient ID and password.

    The Patient ID is not case-sensitive. A wrong password and an unknown
    Patient ID produce the same error.
    """
    result = authenticate_patient(store, credentials.patient_id, credentials.password)
    return _login_response(result)


@router.post("/face-login", response_model=LoginResponse, summary="Patient Face Login")
def face_login_route(
    patient_id: str = Form(...),
    image: UploadFile = File(...),
    store: PatientStore = Depends(get_store),
    oracle: FaceMatchOracle = Depends(get_face_oracle),
):
    """
    Log in by uploading a photo captured at submit time.

    The photo is compared with the photo enrolled at account creation.
    """
    try:
        live_image = read_upload(image)
    except InvalidImageError as e:
        raise InvalidImageException(str(e))

    result = authenticate_patient_with_face(store, oracle, patient_id, live_image)
    return _login_response(result)


@router.post("/face-login/data-uri", response_model=LoginResponse, summary="Patient Face Login (data URI)")
def face_login_data_uri_route(
    request_data: FaceLoginRequest,
    store: PatientStore = Depends(get_store),
    oracle: FaceMatchOracle = Depends(get_face_oracle),
):
    """
    Log in with a captured frame sent as a data URI, as produced by a browser canvas.
    """
    try:
        live_image = validate_data_uri(request_data.image_data_uri)
    except InvalidImageError as e:
        raise InvalidImageException(str(e))

    result = authenticate_patient_with_face(store, oracle, request_data.patient_id, live_image)
    return _login_response(result)


@router.post("/validate", status_code=status.HTTP_200_OK, summary="Check Credentials")
def validate_credentials_route(
    credentials: LoginRequest,
    store: PatientStore = Depends(get_store),
):
    """
    Check a Patient ID and password without logging in.
    """
    return {"valid": validate_patient_credentials(store, credentials.patient_id, credentials.password)}
