"""
Tests for profile and bill PDF rendering.
"""
from medicloud.core.pdf import (
    bill_pdf_filename,
    format_amount,
    format_bill_date,
    profile_pdf_filename,
    render_bill_pdf,
    render_profile_pdf,
)
from medicloud.patients.defaults import normalize_record


def test_format_bill_date():
    assert format_bill_date("2023-11-15T00:00:00") == "November 15, 2023"
    assert format_bill_date("2024-05-01T00:00:00Z") == "May 01, 2024"
    assert format_bill_date("last spring") == "last spring"


def test_format_amount():
    assert format_amount(1500) == "Rs. 1,500.00"


def test_profile_pdf(make_patient, face_image):
    """
    Test a full profile with photo and signature renders.
    """
    patient = normalize_record(make_patient(signature_image=face_image, allergies=["Dust"]))

    content = render_profile_pdf(patient)

    assert content.startswith(b"%PDF")


def test_profile_pdf_escapes_markup(make_patient):
    patient = normalize_record(make_patient(first_name="<b>Asha", house_address="12 Lake Rd & Sons"))

    assert render_profile_pdf(patient).startswith(b"%PDF")


def test_broken_images_are_skipped(make_patient):
    """
    Test a corrupt stored image does not prevent the export.
    """
    patient = normalize_record(make_patient(
        face_image="data:image/png;base64,bm90IGFuIGltYWdl",
        signature_image="garbage",
    ))

    assert render_profile_pdf(patient).startswith(b"%PDF")
    assert render_bill_pdf(patient, patient.bill_payments[0]).startswith(b"%PDF")


def test_bill_pdf(make_patient, face_image):
    patient = normalize_record(make_patient(signature_image=face_image))

    for bill in patient.bill_payments:
        assert render_bill_pdf(patient, bill).startswith(b"%PDF")


def test_legacy_bill_pdf(make_patient):
    patient = normalize_record(make_patient(bill_payments=[{"date": "2022-02-02", "amount": 300, "status": "Paid"}]))

    assert render_bill_pdf(patient, patient.bill_payments[0]).startswith(b"%PDF")


def test_filenames(make_patient):
    patient = normalize_record(make_patient())

    assert profile_pdf_filename(patient) == "Asha_Patient_Profile.pdf"
    assert bill_pdf_filename(patient, patient.bill_payments[1]) == "Bill_2024-01-20_PAT001.pdf"
