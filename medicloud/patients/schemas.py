"""
Patient Schemas - Pydantic models for patient data validation and serialization.

Responses never include the stored password hash.
"""
from typing import Optional, List, Any
from pydantic import BaseModel, Field
from datetime import datetime

from .models import BillPayment, Disease, PatientRecord


class PatientCreate(BaseModel):
    """
    Patient Creation Schema - Form fields submitted at account creation

    Fields:
    - first_name, middle_name, last_name: Patient's name
    - house_address: Home address
    - blood_group: Blood group
    - age: Age in years (digits only)
    - gender: Male, Female or Other
    - contact_number: At least 10 digits
    - alternative_contact: Optional second number
    - allergies: Comma-separated allergies (optional)
    - existing_diseases: Comma-separated ongoing diseases (optional)
    - emergency_contact_name/relation/phone: Emergency contact
    """
    first_name: str = Field(..., min_length=1)
    middle_name: Optional[str] = None
    last_name: str = Field(..., min_length=1)
    house_address: str = Field(..., min_length=1)
    blood_group: str = Field(..., min_length=1)
    age: str = Field(..., pattern=r"^\d+$")
    gender: str = Field(..., min_length=1)
    contact_number: str = Field(..., min_length=10, pattern=r"^\d+$")
    alternative_contact: Optional[str] = None
    allergies: Optional[str] = None
    existing_diseases: Optional[str] = None
    emergency_contact_name: str = Field(..., min_length=1)
    emergency_contact_relation: str = Field(..., min_length=1)
    emergency_contact_phone: str = Field(..., min_length=10)

    def allergy_list(self) -> List[str]:
        return [item.strip() for item in (self.allergies or "").split(",") if item.strip()]

    def disease_list(self) -> List[Disease]:
        return [
            Disease(name=item.strip(), status="Ongoing")
            for item in (self.existing_diseases or "").split(",")
            if item.strip()
        ]


class ContactUpdate(BaseModel):
    """
    Contact Update Schema - Used when a patient edits contact details

    Fields:
    - contact_number: Primary contact number
    - alternative_contact: Optional second number
    - house_address: Home address
    """
    contact_number: str = Field(..., min_length=10, pattern=r"^\d+$")
    alternative_contact: Optional[str] = None
    house_address: str = Field(..., min_length=1)


class EmergencyContactUpdate(BaseModel):
    """
    Emergency Contact Update Schema - Used when a patient edits the emergency contact

    Fields:
    - emergency_contact_name: Contact's name
    - emergency_contact_relation: Relation to the patient
    - emergency_contact_phone: Contact's phone number
    """
    emergency_contact_name: str = Field(..., min_length=1)
    emergency_contact_relation: str = Field(..., min_length=1)
    emergency_contact_phone: str = Field(..., min_length=10)


class PatientResponse(BaseModel):
    """
    Patient Response Schema - Full profile returned to the logged-in patient
    """
    id: str
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    full_name: str
    house_address: str
    blood_group: str
    age: str
    gender: str
    contact_number: str
    alternative_contact: Optional[str] = None
    allergies: List[str]
    diseases: List[Disease]
    emergency_contact_name: str
    emergency_contact_relation: str
    emergency_contact_phone: str
    face_image: str
    signature_image: str
    bill_payments: List[BillPayment]
    last_visit: Optional[datetime] = None
    previous_treatments: List[Any]
    notes: str

    @classmethod
    def from_record(cls, record: PatientRecord) -> "PatientResponse":
        data = record.model_dump(exclude={"password", "version"})
        return cls(full_name=record.full_name, **data)


class PatientSummary(BaseModel):
    """
    Patient Summary Schema - Directory entry without personal details
    """
    id: str
    full_name: str
    last_visit: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: PatientRecord) -> "PatientSummary":
        return cls(id=record.id, full_name=record.full_name, last_visit=record.last_visit)


class PatientListResponse(BaseModel):
    patients: List[PatientSummary]
    total: int


class AccountCreatedResponse(BaseModel):
    """
    Account Created Response Schema - Returned once after registration

    The generated password is only ever shown in this response.
    """
    message: str
    patient_id: str
    password: str
    patient: PatientResponse
