"""
FastAPI dependencies for authentication.
"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from ..core.security import verify_token
from ..database import get_store
from ..patients.models import PatientRecord
from ..patients.service import get_patient_by_id
from ..patients.store import PatientStore
from .exceptions import InvalidTokenException, PatientNotFoundException

# OAuth2 scheme for JWT token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

def get_current_patient(
    token: str = Depends(oauth2_scheme),
    store: PatientStore = Depends(get_store),
) -> PatientRecord:
    """
    Get the logged-in patient from the bearer token.

    Args:
        token: JWT token from Authorization header
        store: Patient store

    Returns:
        PatientRecord: Normalized record of the current patient

    Raises:
        InvalidTokenException: If token is invalid, expired, or its patient no longer exists
    """
    payload = verify_token(token)
    if not payload or payload.get("type") != "access":
        raise InvalidTokenException()

    patient_id = payload.get("sub")
    if not patient_id:
        raise InvalidTokenException("Invalid token payload")

    try:
        return get_patient_by_id(store, patient_id)
    except PatientNotFoundException:
        raise InvalidTokenException("Patient not found")
