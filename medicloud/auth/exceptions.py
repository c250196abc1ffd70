"""
Authentication and record-access exceptions.

The plain exceptions are raised by the store adapter, the face oracle client
and the image helpers. The authenticators catch them and turn them into
result objects; the HTTP exceptions are only raised by routers and services.
"""
from fastapi import HTTPException, status


class StoreUnavailableError(Exception):
    """Raised when the patient store cannot be read or written."""


class DuplicatePatientError(Exception):
    """Raised when inserting a patient whose ID already exists."""


class RecordConflictError(Exception):
    """Raised when a versioned write finds a newer record in the store."""
    def __init__(self, patient_id: str, expected_version: int):
        self.patient_id = patient_id
        self.expected_version = expected_version
        super().__init__(f"Patient {patient_id} changed since version {expected_version}")


class OracleUnavailableError(Exception):
    """Raised when the face verification model cannot produce a verdict."""


class InvalidImageError(Exception):
    """Raised when an uploaded image is not an accepted data URI."""


class AuthException(HTTPException):
    """Base class for authentication exceptions."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid."""
    def __init__(self, detail: str = "Invalid Patient ID or Password"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class InvalidTokenException(AuthException):
    """Exception raised when token is invalid."""
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class ServiceUnavailableException(AuthException):
    """Exception raised when a backing service (store or face model) is down."""
    def __init__(self, detail: str = "Service temporarily unavailable. Please try again later."):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)

class PatientNotFoundException(AuthException):
    """Exception raised when a patient ID does not resolve."""
    def __init__(self, detail: str = "Patient profile not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class InvalidImageException(AuthException):
    """Exception raised when an uploaded image is rejected."""
    def __init__(self, detail: str = "Invalid image"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class ConflictException(AuthException):
    """Exception raised when a concurrent edit won the race."""
    def __init__(self, detail: str = "Profile was changed by another session. Please reload and try again."):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
