"""
Patient Model - Stores the patient document and its nested records.

A patient is a single flat document in the patient collection. Field aliases
match the camelCase keys used in stored documents and by the frontend.
"""
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, validator


class DiseaseStatus(str, Enum):
    """Status of a recorded disease"""
    ONGOING = "Ongoing"
    CURED = "Cured"
    UNKNOWN = "Unknown"


class BillStatus(str, Enum):
    """Payment state of a bill"""
    PAID = "Paid"
    PENDING = "Pending"


class PaymentMethod(str, Enum):
    """How a bill was (or will be) settled"""
    UPI = "UPI"
    DEBIT_CARD = "Debit Card"
    INSURANCE_CLAIM = "Insurance Claim"
    CASH = "Cash"


class Disease(BaseModel):
    name: str
    status: DiseaseStatus = DiseaseStatus.UNKNOWN


class Tablet(BaseModel):
    name: str
    usage: str


class BillPayment(BaseModel):
    """
    Bill Payment - One visit's bill.

    Fields:
    - date: ISO date of the visit
    - amount: Billed amount
    - status: Paid or Pending
    - diagnosis: What the visit was for (stored as "disease")
    - tablets: Prescribed tablets with usage instructions
    - payment_method: UPI, Debit Card, Insurance Claim or Cash

    diagnosis and payment_method are optional because documents written by
    older versions of the portal do not carry them.
    """
    date: str
    amount: float
    status: BillStatus
    diagnosis: Optional[str] = Field(None, alias="disease")
    tablets: List[Tablet] = Field(default_factory=list)
    payment_method: Optional[PaymentMethod] = Field(None, alias="paymentMethod")

    class Config:
        populate_by_name = True

    @property
    def is_complete(self) -> bool:
        return self.diagnosis is not None and self.payment_method is not None


class PatientRecord(BaseModel):
    """
    Patient Record - The only stored entity.

    Fields:
    - id: Patient ID, unique, human-assigned (e.g. PAT4K2ZQ)
    - password: bcrypt hash of the patient's password
    - first_name, middle_name, last_name: Patient's name
    - house_address, blood_group, age, gender: Demographics
    - contact_number, alternative_contact: Phone numbers
    - allergies: Known allergies (no duplicates)
    - diseases: Disease history
    - emergency_contact_name/relation/phone: Emergency contact
    - face_image: Enrollment photo as a data URI, used for face login
    - signature_image: Optional signature as a data URI
    - bill_payments: Bill history
    - last_visit: When the patient last logged in
    - previous_treatments: Free-form treatment history
    - notes: Free-form notes
    - version: Incremented on every single-record write
    """
    id: str
    password: str
    first_name: str = Field(..., alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: str = Field(..., alias="lastName")
    house_address: str = Field("", alias="houseAddress")
    blood_group: str = Field("", alias="bloodGroup")
    age: str = ""
    gender: str = ""
    contact_number: str = Field("", alias="contactNumber")
    alternative_contact: Optional[str] = Field(None, alias="alternativeContact")
    allergies: List[str] = Field(default_factory=list)
    diseases: List[Disease] = Field(default_factory=list)
    emergency_contact_name: str = Field("", alias="emergencyContactName")
    emergency_contact_relation: str = Field("", alias="emergencyContactRelation")
    emergency_contact_phone: str = Field("", alias="emergencyContactPhone")
    face_image: str = Field(..., alias="faceImageBase64")
    signature_image: str = Field("", alias="signatureBase64")
    bill_payments: List[BillPayment] = Field(default_factory=list, alias="billPayments")
    last_visit: Optional[datetime] = Field(None, alias="lastVisit")
    previous_treatments: List[Any] = Field(default_factory=list, alias="previousTreatments")
    notes: str = ""
    version: int = 0

    class Config:
        populate_by_name = True

    @validator("allergies", pre=True)
    def dedupe_allergies(cls, value):
        if value is None:
            return []
        seen = []
        for allergy in value:
            if allergy not in seen:
                seen.append(allergy)
        return seen

    @validator("signature_image", "notes", pre=True)
    def none_to_empty(cls, value):
        return value or ""

    @validator("diseases", "bill_payments", "previous_treatments", pre=True)
    def none_to_list(cls, value):
        return value or []

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)

    def to_document(self) -> dict:
        """Serialize to the camelCase document stored in MongoDB."""
        return self.model_dump(mode="json", by_alias=True)

    def __repr__(self):
        return f"<PatientRecord(id={self.id}, version={self.version})>"
