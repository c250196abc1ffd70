"""
Demo-data backfill for patient records.

normalize() is applied to records on their way out to a caller and never
writes to the store. seed_demo_data() applies the same backfill to a new
record before it is first stored.
"""
from datetime import datetime, timezone
from typing import List, Optional

from ..config import settings
from .models import BillPayment, Disease, PatientRecord

SAMPLE_DISEASES = [
    {"name": "Common Cold", "status": "Cured"},
    {"name": "Asthma", "status": "Ongoing"},
]

SAMPLE_BILL_PAYMENTS = [
    {
        "date": "2023-11-15T00:00:00",
        "amount": 1500,
        "status": "Paid",
        "disease": "Viral Fever",
        "tablets": [
            {"name": "Paracetamol", "usage": "1 tablet twice a day"},
            {"name": "Azithromycin", "usage": "1 tablet once a day"},
        ],
        "paymentMethod": "UPI",
    },
    {
        "date": "2024-01-20T00:00:00",
        "amount": 250,
        "status": "Paid",
        "disease": "Follow-up Consultation",
        "tablets": [],
        "paymentMethod": "Cash",
    },
    {
        "date": "2024-03-05T00:00:00",
        "amount": 800,
        "status": "Paid",
        "disease": "Allergic Rhinitis",
        "tablets": [
            {"name": "Cetirizine", "usage": "1 tablet at night"},
        ],
        "paymentMethod": "Debit Card",
    },
    {
        "date": "2024-05-01T00:00:00",
        "amount": 1200,
        "status": "Pending",
        "disease": "Sinusitis",
        "tablets": [
            {"name": "Amoxicillin", "usage": "1 tablet three times a day"},
            {"name": "Ibuprofen", "usage": "As needed for pain"},
        ],
        "paymentMethod": "Insurance Claim",
    },
]


def sample_diseases() -> List[Disease]:
    return [Disease.model_validate(disease) for disease in SAMPLE_DISEASES]


def sample_bill_payments() -> List[BillPayment]:
    return [BillPayment.model_validate(bill) for bill in SAMPLE_BILL_PAYMENTS]


def needs_sample_bills(record: PatientRecord, replace_legacy_bills: bool) -> bool:
    """
    Whether a record's bill list should be replaced with the samples.

    An empty list always qualifies. A list whose first bill lacks a diagnosis
    or payment method only qualifies when replace_legacy_bills is set, since
    that replacement discards the patient's real bill history.
    """
    if not record.bill_payments:
        return True
    return replace_legacy_bills and not record.bill_payments[0].is_complete


def normalize_record(
    record: PatientRecord,
    now: Optional[datetime] = None,
    replace_legacy_bills: Optional[bool] = None,
) -> PatientRecord:
    """
    Return a copy of the record with missing demo fields filled in.

    Args:
        record: Record as read from the store
        now: Timestamp used when the record has no last visit
        replace_legacy_bills: Override for settings.normalize_replace_legacy_bills

    Returns:
        PatientRecord: Normalized copy; the input is left untouched
    """
    if replace_legacy_bills is None:
        replace_legacy_bills = settings.normalize_replace_legacy_bills

    normalized = record.model_copy(deep=True)

    if not normalized.diseases:
        normalized.diseases = sample_diseases()

    if needs_sample_bills(normalized, replace_legacy_bills):
        normalized.bill_payments = sample_bill_payments()

    if normalized.last_visit is None:
        normalized.last_visit = now or datetime.now(timezone.utc)

    return normalized


def normalize(
    records: List[PatientRecord],
    now: Optional[datetime] = None,
    replace_legacy_bills: Optional[bool] = None,
) -> List[PatientRecord]:
    """
    Normalize a list of records. Idempotent: normalize(normalize(x)) == normalize(x).
    """
    now = now or datetime.now(timezone.utc)
    return [normalize_record(record, now, replace_legacy_bills) for record in records]


def seed_demo_data(record: PatientRecord, now: Optional[datetime] = None) -> PatientRecord:
    """Backfill a newly created record so the stored document already carries demo data."""
    return normalize_record(record, now=now, replace_legacy_bills=False)
