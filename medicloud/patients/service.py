"""
Patient Service - Business logic for patient accounts and profiles.

This module provides account creation, patient lookup and the profile edits
available to a logged-in patient.
"""
from datetime import datetime, timezone
from typing import List, Tuple
import logging

from ..auth.exceptions import (
    ConflictException,
    DuplicatePatientError,
    PatientNotFoundException,
    RecordConflictError,
    ServiceUnavailableException,
    StoreUnavailableError,
)
from ..core.security import generate_password, generate_patient_id, hash_password
from .defaults import normalize, normalize_record, seed_demo_data
from .models import PatientRecord
from .schemas import ContactUpdate, EmergencyContactUpdate, PatientCreate
from .store import PatientStore

# Set up logging
logger = logging.getLogger(__name__)

# Attempts at finding an unused generated Patient ID
MAX_ID_ATTEMPTS = 5


def create_patient_account(
    store: PatientStore,
    patient_data: PatientCreate,
    face_image: str,
    signature_image: str = "",
) -> Tuple[PatientRecord, str]:
    """
    Register a new patient with a generated Patient ID and password.

    Args:
        store: Patient store
        patient_data: Validated registration form
        face_image: Enrollment photo as a data URI (required)
        signature_image: Signature as a data URI, or "" when not provided

    Returns:
        Tuple of the stored record and the generated plain text password

    Raises:
        ServiceUnavailableException: If the store cannot be written or no free ID was found
    """
    password = generate_password()
    password_hash = hash_password(password)
    now = datetime.now(timezone.utc)

    for attempt in range(1, MAX_ID_ATTEMPTS + 1):
        record = PatientRecord(
            id=generate_patient_id(),
            password=password_hash,
            first_name=patient_data.first_name,
            middle_name=patient_data.middle_name,
            last_name=patient_data.last_name,
            house_address=patient_data.house_address,
            blood_group=patient_data.blood_group,
            age=patient_data.age,
            gender=patient_data.gender,
            contact_number=patient_data.contact_number,
            alternative_contact=patient_data.alternative_contact,
            allergies=patient_data.allergy_list(),
            diseases=patient_data.disease_list(),
            emergency_contact_name=patient_data.emergency_contact_name,
            emergency_contact_relation=patient_data.emergency_contact_relation,
            emergency_contact_phone=patient_data.emergency_contact_phone,
            face_image=face_image,
            signature_image=signature_image,
            last_visit=now,
        )
        record = seed_demo_data(record, now)

        try:
            store.insert(record)
        except DuplicatePatientError:
            logger.warning(f"⚠️ Generated Patient ID {record.id} already taken (attempt {attempt})")
            continue
        except StoreUnavailableError as e:
            logger.error(f"❌ Could not create patient account: {str(e)}")
            raise ServiceUnavailableException("Could not create account. Please try again.")

        logger.info(f"✅ Patient account created: {record.id}")
        return record, password

    logger.error("❌ Could not find a free Patient ID")
    raise ServiceUnavailableException("Could not create account. Please try again.")


def get_all_patients(store: PatientStore) -> List[PatientRecord]:
    """
    Get every patient record, normalized for display.

    Raises:
        ServiceUnavailableException: If the store cannot be read
    """
    try:
        return normalize(store.load())
    except StoreUnavailableError as e:
        logger.error(f"❌ Error fetching all patients: {str(e)}")
        raise ServiceUnavailableException()


def get_patient_by_id(store: PatientStore, patient_id: str, normalized: bool = True) -> PatientRecord:
    """
    Get a patient record by its exact Patient ID.

    Args:
        store: Patient store
        patient_id: Patient ID
        normalized: Return the normalized view rather than the stored record

    Raises:
        PatientNotFoundException: If no patient has this ID
        ServiceUnavailableException: If the store cannot be read
    """
    try:
        record = store.get(patient_id)
    except StoreUnavailableError as e:
        logger.error(f"❌ Error fetching patient {patient_id}: {str(e)}")
        raise ServiceUnavailableException()

    if record is None:
        raise PatientNotFoundException()
    return normalize_record(record) if normalized else record


def _update_patient(store: PatientStore, patient_id: str, updates: dict) -> PatientRecord:
    record = get_patient_by_id(store, patient_id, normalized=False)
    updated = record.model_copy(update=updates)
    try:
        stored = store.upsert(updated, expected_version=record.version)
    except RecordConflictError:
        raise ConflictException()
    except StoreUnavailableError as e:
        logger.error(f"❌ Error updating patient {patient_id}: {str(e)}")
        raise ServiceUnavailableException("Could not save your changes. Please try again later.")
    logger.info(f"✅ Patient {patient_id} updated: {', '.join(sorted(updates))}")
    return normalize_record(stored)


def update_contact_info(store: PatientStore, patient_id: str, contact: ContactUpdate) -> PatientRecord:
    """
    Update a patient's contact number, alternative contact and address.
    """
    return _update_patient(store, patient_id, contact.model_dump())


def update_emergency_contact(store: PatientStore, patient_id: str, contact: EmergencyContactUpdate) -> PatientRecord:
    """
    Update a patient's emergency contact.
    """
    return _update_patient(store, patient_id, contact.model_dump())


def get_bill(record: PatientRecord, index: int):
    """
    Get one bill from a patient's bill history.

    Raises:
        PatientNotFoundException: If there is no bill at this position
    """
    if index < 0 or index >= len(record.bill_payments):
        raise PatientNotFoundException("Bill not found")
    return record.bill_payments[index]
