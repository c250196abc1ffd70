"""
Authentication service layer.

Both login paths load the patient records, pick the matching one, and on
success refresh its last visit with a best-effort write. Failures are
returned as result objects; nothing raised by the store or the face model
escapes these functions.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from ..config import settings
from ..core.security import dummy_verify_password, hash_password, is_password_hash, verify_password
from ..face.oracle import FaceMatchOracle
from ..patients.defaults import normalize_record
from ..patients.models import PatientRecord
from ..patients.store import PatientStore
from .exceptions import OracleUnavailableError, RecordConflictError, StoreUnavailableError
from .schemas import (
    AuthErrorCode,
    FaceLoginResult,
    LoginResult,
    FACE_MISMATCH_MESSAGE,
    INVALID_CREDENTIALS_MESSAGE,
    ORACLE_UNAVAILABLE_MESSAGE,
    STORE_UNAVAILABLE_MESSAGE,
    UNKNOWN_IDENTITY_MESSAGE,
)

# Set up logging
logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_visit_time(previous: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """
    Timestamp for a new visit, always later than the previous one.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    if previous is not None and _as_utc(previous) >= now:
        return _as_utc(previous) + timedelta(microseconds=1)
    return now


def refresh_last_visit(
    store: PatientStore,
    record: PatientRecord,
    now: Optional[datetime] = None,
    password_hash: Optional[str] = None,
) -> PatientRecord:
    """
    Set the record's last visit to now and try to persist it.

    The write is a versioned single-record upsert of the stored record, so a
    concurrent profile edit is never overwritten. If the write fails the
    refreshed record is still returned: a lost timestamp must not block a
    legitimate login.

    Args:
        store: Patient store
        record: Record as loaded from the store (not normalized)
        now: Visit time, defaults to the current time
        password_hash: Replacement hash for a password stored in a legacy form

    Returns:
        PatientRecord: Record with the refreshed last visit
    """
    updates = {"last_visit": next_visit_time(record.last_visit, now)}
    if password_hash:
        updates["password"] = password_hash
    updated = record.model_copy(update=updates)

    try:
        stored = store.upsert(updated, expected_version=record.version)
    except (StoreUnavailableError, RecordConflictError) as e:
        logger.warning(f"⚠️ Could not update last visit timestamp for {record.id}: {str(e)}")
        return updated

    logger.info(f"💾 Last visit timestamp updated for {record.id}")
    return stored


def _find_by_credentials(records: List[PatientRecord], patient_id: str, password: str) -> Tuple[Optional[PatientRecord], bool]:
    wanted = patient_id.lower()
    hash_checked = False
    for record in records:
        if record.id.lower() != wanted:
            continue
        hash_checked = hash_checked or is_password_hash(record.password)
        matches, needs_rehash = verify_password(password, record.password)
        if matches:
            return record, needs_rehash
    if not hash_checked:
        dummy_verify_password()
    return None, False


def _find_by_id(records: List[PatientRecord], patient_id: str, case_insensitive: bool) -> Optional[PatientRecord]:
    if case_insensitive:
        wanted = patient_id.lower()
        return next((record for record in records if record.id.lower() == wanted), None)
    return next((record for record in records if record.id == patient_id), None)


def authenticate_patient(store: PatientStore, patient_id: str, password: str, now: Optional[datetime] = None) -> LoginResult:
    """
    Authenticate a patient using Patient ID and password.

    The Patient ID is matched ignoring letter case, the password exactly.
    An unknown ID and a wrong password produce the same error.

    Args:
        store: Patient store
        patient_id: Patient ID as typed by the patient
        password: Password as typed by the patient
        now: Visit time, defaults to the current time

    Returns:
        LoginResult: success with the patient, or the failure reason
    """
    logger.info(f"🔐 Starting authentication for Patient ID: {patient_id}")
    try:
        records = store.load()
        logger.info(f"📊 Retrieved patients from database: {len(records)}")

        if not records:
            logger.warning("⚠️ No patients found in database")
            return LoginResult.failure(AuthErrorCode.EMPTY_STORE, INVALID_CREDENTIALS_MESSAGE)

        record, needs_rehash = _find_by_credentials(records, patient_id, password)
        if record is None:
            logger.info("❌ Patient not found or password incorrect")
            return LoginResult.failure(AuthErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        logger.info(f"✅ Patient authenticated successfully: {record.id}")
        password_hash = hash_password(password) if needs_rehash else None
        refreshed = refresh_last_visit(store, record, now, password_hash=password_hash)
        return LoginResult(success=True, patient=normalize_record(refreshed, now))
    except StoreUnavailableError as e:
        logger.error(f"❌ Authentication error: {str(e)}")
        return LoginResult.failure(AuthErrorCode.STORE_UNAVAILABLE, STORE_UNAVAILABLE_MESSAGE)
    except Exception as e:
        logger.exception(f"❌ Unexpected authentication error: {str(e)}")
        return LoginResult.failure(AuthErrorCode.STORE_UNAVAILABLE, STORE_UNAVAILABLE_MESSAGE)


def authenticate_patient_with_face(
    store: PatientStore,
    oracle: FaceMatchOracle,
    patient_id: str,
    live_image: str,
    threshold: Optional[float] = None,
    case_insensitive: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> FaceLoginResult:
    """
    Authenticate a patient by comparing a live photo with the enrollment photo.

    Args:
        store: Patient store
        oracle: Face-match oracle
        patient_id: Claimed Patient ID
        live_image: Captured frame as a data URI
        threshold: Minimum confidence, defaults to settings.face_confidence_threshold
        case_insensitive: Match the ID ignoring case, defaults to settings.face_login_case_insensitive
        now: Visit time, defaults to the current time

    Returns:
        FaceLoginResult: success with the patient and confidence, or the failure reason
    """
    if threshold is None:
        threshold = settings.face_confidence_threshold
    if case_insensitive is None:
        case_insensitive = settings.face_login_case_insensitive

    logger.info(f"🔐 Starting face authentication for Patient ID: {patient_id}")
    try:
        records = store.load()
    except StoreUnavailableError as e:
        logger.error(f"❌ Face authentication error: {str(e)}")
        return FaceLoginResult.failure(AuthErrorCode.STORE_UNAVAILABLE, STORE_UNAVAILABLE_MESSAGE)

    record = _find_by_id(records, patient_id, case_insensitive)
    if record is None:
        logger.info(f"❌ Face login for unknown Patient ID: {patient_id}")
        return FaceLoginResult.failure(AuthErrorCode.UNKNOWN_IDENTITY, UNKNOWN_IDENTITY_MESSAGE)

    try:
        raw_verdict = oracle.compare(record.face_image, live_image)
    except OracleUnavailableError as e:
        logger.error(f"❌ Face verification unavailable: {str(e)}")
        return FaceLoginResult.failure(AuthErrorCode.ORACLE_UNAVAILABLE, ORACLE_UNAVAILABLE_MESSAGE)
    except Exception as e:
        logger.exception(f"❌ Unexpected face verification error: {str(e)}")
        return FaceLoginResult.failure(AuthErrorCode.ORACLE_UNAVAILABLE, ORACLE_UNAVAILABLE_MESSAGE)

    verdict = raw_verdict.apply_threshold(threshold)
    if not verdict.is_same_person:
        logger.info(f"❌ Face mismatch for {record.id} (confidence {raw_verdict.confidence:.2f})")
        # a low-confidence "match" carries a reason that argues for the match
        reason = raw_verdict.reason if not raw_verdict.is_same_person else ""
        return FaceLoginResult.failure(AuthErrorCode.FACE_MISMATCH, reason or FACE_MISMATCH_MESSAGE)

    logger.info(f"✅ Face authenticated for {record.id} (confidence {verdict.confidence:.2f})")
    try:
        refreshed = refresh_last_visit(store, record, now)
        return FaceLoginResult(success=True, patient=normalize_record(refreshed, now), confidence=verdict.confidence)
    except Exception as e:
        logger.exception(f"❌ Unexpected error after face match: {str(e)}")
        return FaceLoginResult.failure(AuthErrorCode.STORE_UNAVAILABLE, STORE_UNAVAILABLE_MESSAGE)


def validate_patient_credentials(store: PatientStore, patient_id: str, password: str) -> bool:
    """
    Check a Patient ID and password without touching the last visit.
    """
    try:
        records = store.load()
    except StoreUnavailableError as e:
        logger.error(f"❌ Validation error: {str(e)}")
        return False
    record, _ = _find_by_credentials(records, patient_id, password)
    return record is not None
