"""
Patient Router - API endpoints for account creation and the patient profile.

Profile endpoints act on the patient identified by the bearer token.
"""
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..auth.dependencies import get_current_patient
from ..auth.exceptions import InvalidImageError, InvalidImageException
from ..core.images import read_upload
from ..core.pdf import bill_pdf_filename, profile_pdf_filename, render_bill_pdf, render_profile_pdf
from ..database import get_store
from .models import PatientRecord
from .schemas import (
    AccountCreatedResponse,
    ContactUpdate,
    EmergencyContactUpdate,
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientSummary,
)
from .service import (
    create_patient_account,
    get_all_patients,
    get_bill,
    get_patient_by_id,
    update_contact_info,
    update_emergency_contact,
)
from .store import PatientStore

router = APIRouter()


def _read_image(upload: UploadFile) -> str:
    try:
        return read_upload(upload)
    except InvalidImageError as e:
        raise InvalidImageException(f"{upload.filename}: {str(e)}")


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=AccountCreatedResponse, status_code=status.HTTP_201_CREATED, summary="Create Patient Account")
def create_account_route(
    first_name: str = Form(...),
    middle_name: Optional[str] = Form(None),
    last_name: str = Form(...),
    house_address: str = Form(...),
    blood_group: str = Form(...),
    age: str = Form(...),
    gender: str = Form(...),
    contact_number: str = Form(...),
    alternative_contact: Optional[str] = Form(None),
    allergies: Optional[str] = Form(None),
    existing_diseases: Optional[str] = Form(None),
    emergency_contact_name: str = Form(...),
    emergency_contact_relation: str = Form(...),
    emergency_contact_phone: str = Form(...),
    face_image: UploadFile = File(...),
    signature: Optional[UploadFile] = File(None),
    store: PatientStore = Depends(get_store),
):
    """
    Patient self-registration endpoint.

    A face photo is required and becomes the reference for face login.
    The generated Patient ID and password are returned once in the response.
    """
    try:
        patient_data = PatientCreate(
            first_name=first_name,
            middle_name=middle_name,
            last_name=last_name,
            house_address=house_address,
            blood_group=blood_group,
            age=age,
            gender=gender,
            contact_number=contact_number,
            alternative_contact=alternative_contact,
            allergies=allergies,
            existing_diseases=existing_diseases,
            emergency_contact_name=emergency_contact_name,
            emergency_contact_relation=emergency_contact_relation,
            emergency_contact_phone=emergency_contact_phone,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))

    face_data_uri = _read_image(face_image)
    signature_data_uri = _read_image(signature) if signature is not None and signature.filename else ""

    record, password = create_patient_account(store, patient_data, face_data_uri, signature_data_uri)
    return AccountCreatedResponse(
        message="Account created successfully. Please save these credentials securely.",
        patient_id=record.id,
        password=password,
        patient=PatientResponse.from_record(record),
    )


@router.get("", response_model=PatientListResponse, summary="List Patients")
def list_patients_route(
    store: PatientStore = Depends(get_store),
    current_patient: PatientRecord = Depends(get_current_patient),
):
    """
    List every patient by ID and name.
    """
    patients = [PatientSummary.from_record(record) for record in get_all_patients(store)]
    return PatientListResponse(patients=patients, total=len(patients))


@router.get("/me", response_model=PatientResponse, summary="My Profile")
def get_my_profile_route(current_patient: PatientRecord = Depends(get_current_patient)):
    """
    Get the logged-in patient's profile
    """
    return PatientResponse.from_record(current_patient)


@router.put("/me/contact", response_model=PatientResponse, summary="Update Contact Info")
def update_my_contact_route(
    contact: ContactUpdate,
    store: PatientStore = Depends(get_store),
    current_patient: PatientRecord = Depends(get_current_patient),
):
    """
    Update the logged-in patient's contact number and address
    """
    return PatientResponse.from_record(update_contact_info(store, current_patient.id, contact))


@router.put("/me/emergency-contact", response_model=PatientResponse, summary="Update Emergency Contact")
def update_my_emergency_contact_route(
    contact: EmergencyContactUpdate,
    store: PatientStore = Depends(get_store),
    current_patient: PatientRecord = Depends(get_current_patient),
):
    """
    Update the logged-in patient's emergency contact
    """
    return PatientResponse.from_record(update_emergency_contact(store, current_patient.id, contact))


@router.get("/me/pdf", summary="Download Profile PDF")
def download_profile_pdf_route(current_patient: PatientRecord = Depends(get_current_patient)):
    """
    Download the logged-in patient's profile as a PDF
    """
    return _pdf_response(render_profile_pdf(current_patient), profile_pdf_filename(current_patient))


@router.get("/me/bills/{index}/pdf", summary="Download Bill Receipt")
def download_bill_pdf_route(index: int, current_patient: PatientRecord = Depends(get_current_patient)):
    """
    Download a receipt for one of the logged-in patient's bills
    """
    bill = get_bill(current_patient, index)
    return _pdf_response(render_bill_pdf(current_patient, bill), bill_pdf_filename(current_patient, bill))


@router.get("/{patient_id}", response_model=PatientSummary, summary="Get Patient")
def get_patient_route(
    patient_id: str,
    store: PatientStore = Depends(get_store),
    current_patient: PatientRecord = Depends(get_current_patient),
):
    """
    Get a patient's directory entry by exact Patient ID
    """
    return PatientSummary.from_record(get_patient_by_id(store, patient_id))
