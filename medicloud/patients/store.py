"""
Patient Store - Persistence adapters for patient records.

Two access styles are supported:
- whole-collection load/save_all, where a save replaces every document
- keyed get/insert/upsert, where upsert can be a versioned compare-and-swap

Every transport failure surfaces as StoreUnavailableError so callers never
have to know which backend is in use.
"""
import copy
import logging
import re
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError
from pymongo.collation import Collation
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..auth.exceptions import DuplicatePatientError, RecordConflictError, StoreUnavailableError
from .models import PatientRecord

# Set up logging
logger = logging.getLogger(__name__)

# Case-insensitive comparison for the unique index on patient IDs
ID_COLLATION = Collation(locale="en", strength=2)


def _parse_document(document: dict) -> PatientRecord:
    try:
        return PatientRecord.model_validate(document)
    except ValidationError as e:
        logger.error(f"❌ Stored patient {document.get('id')} failed validation: {str(e)}")
        raise StoreUnavailableError("Could not read patient data.") from e


def _parse_documents(documents: Iterable[dict]) -> List[PatientRecord]:
    """
    Validate stored documents one by one.

    Documents that fail validation are logged and left out of the result.
    """
    records = []
    for document in documents:
        try:
            records.append(PatientRecord.model_validate(document))
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping stored patient {document.get('id')}: {str(e)}")
    return records


def _versioned(record: PatientRecord) -> PatientRecord:
    return record.model_copy(update={"version": record.version + 1})


class PatientStore(ABC):
    """
    Interface every patient store implements.
    """

    @abstractmethod
    def load(self) -> List[PatientRecord]:
        """Return every stored patient record that passes validation."""

    @abstractmethod
    def save_all(self, records: List[PatientRecord]) -> None:
        """Replace the whole collection with the given records."""

    @abstractmethod
    def get(self, patient_id: str, case_insensitive: bool = False) -> Optional[PatientRecord]:
        """Return one patient record, or None when the ID is unknown."""

    @abstractmethod
    def insert(self, record: PatientRecord) -> PatientRecord:
        """Add a new patient record; raises DuplicatePatientError on a taken ID."""

    @abstractmethod
    def upsert(self, record: PatientRecord, expected_version: Optional[int] = None) -> PatientRecord:
        """
        Write a single record and return it with its version bumped.

        When expected_version is given the write only happens if the stored
        record still has that version; otherwise RecordConflictError is raised.
        """


class MongoPatientStore(PatientStore):
    """
    Patient store backed by a pymongo collection.
    """

    def __init__(self, collection: Collection):
        self.collection = collection

    def ensure_indexes(self) -> None:
        try:
            self.collection.create_index("id", unique=True, collation=ID_COLLATION, name="patient_id_unique")
        except PyMongoError as e:
            logger.error(f"❌ Could not create patient ID index: {str(e)}")
            raise StoreUnavailableError("Could not prepare patient collection.") from e

    def load(self) -> List[PatientRecord]:
        logger.info("🔄 Fetching patients from MongoDB...")
        try:
            documents = list(self.collection.find({}, {"_id": 0}))
        except PyMongoError as e:
            logger.error(f"❌ Error fetching patients from MongoDB: {str(e)}")
            raise StoreUnavailableError("Could not read patient data.") from e

        logger.info(f"✅ Retrieved {len(documents)} patients from MongoDB")
        return _parse_documents(documents)

    def save_all(self, records: List[PatientRecord]) -> None:
        logger.info(f"🔄 Saving {len(records)} patients to MongoDB...")
        try:
            self.collection.delete_many({})
            if records:
                self.collection.insert_many([record.to_document() for record in records])
        except PyMongoError as e:
            logger.error(f"❌ Error saving patients to MongoDB: {str(e)}")
            raise StoreUnavailableError("Could not save patient data.") from e
        logger.info(f"✅ Successfully saved {len(records)} patients to MongoDB")

    def get(self, patient_id: str, case_insensitive: bool = False) -> Optional[PatientRecord]:
        if case_insensitive:
            query = {"id": {"$regex": f"^{re.escape(patient_id)}$", "$options": "i"}}
        else:
            query = {"id": patient_id}
        try:
            document = self.collection.find_one(query, {"_id": 0})
        except PyMongoError as e:
            logger.error(f"❌ Error fetching patient {patient_id}: {str(e)}")
            raise StoreUnavailableError("Could not read patient data.") from e

        if document is None:
            return None
        return _parse_document(document)

    def insert(self, record: PatientRecord) -> PatientRecord:
        try:
            # insert_one adds _id to the dict it is given
            self.collection.insert_one(record.to_document())
        except DuplicateKeyError as e:
            raise DuplicatePatientError(record.id) from e
        except PyMongoError as e:
            logger.error(f"❌ Error inserting patient {record.id}: {str(e)}")
            raise StoreUnavailableError("Could not save patient data.") from e
        logger.info(f"✅ Patient {record.id} inserted")
        return record

    def upsert(self, record: PatientRecord, expected_version: Optional[int] = None) -> PatientRecord:
        updated = _versioned(record)
        document = updated.to_document()

        if expected_version is None:
            query = {"id": record.id}
        elif expected_version == 0:
            # documents written before versioning have no version field
            query = {"id": record.id, "$or": [{"version": 0}, {"version": {"$exists": False}}]}
        else:
            query = {"id": record.id, "version": expected_version}

        try:
            result = self.collection.replace_one(query, document, upsert=expected_version is None)
        except PyMongoError as e:
            logger.error(f"❌ Error updating patient {record.id}: {str(e)}")
            raise StoreUnavailableError("Could not save patient data.") from e

        if expected_version is not None and result.matched_count == 0:
            logger.warning(f"⚠️ Version conflict on patient {record.id} (expected {expected_version})")
            raise RecordConflictError(record.id, expected_version)
        return updated


class InMemoryPatientStore(PatientStore):
    """
    Process-local patient store.

    Documents are kept serialized so callers never share mutable state with
    the store, mirroring what a round-trip through MongoDB would do.
    """

    def __init__(self, records: Optional[Iterable[PatientRecord]] = None):
        self._documents: Dict[str, dict] = {}
        self._lock = threading.Lock()
        for record in records or []:
            self._documents[record.id] = record.to_document()

    def load(self) -> List[PatientRecord]:
        with self._lock:
            documents = copy.deepcopy(list(self._documents.values()))
        return _parse_documents(documents)

    def save_all(self, records: List[PatientRecord]) -> None:
        with self._lock:
            self._documents = {record.id: record.to_document() for record in records}

    def get(self, patient_id: str, case_insensitive: bool = False) -> Optional[PatientRecord]:
        with self._lock:
            document = self._find(patient_id, case_insensitive)
            document = copy.deepcopy(document)
        if document is None:
            return None
        return _parse_document(document)

    def insert(self, record: PatientRecord) -> PatientRecord:
        with self._lock:
            if self._find(record.id, case_insensitive=True) is not None:
                raise DuplicatePatientError(record.id)
            self._documents[record.id] = record.to_document()
        return record

    def upsert(self, record: PatientRecord, expected_version: Optional[int] = None) -> PatientRecord:
        updated = _versioned(record)
        with self._lock:
            current = self._documents.get(record.id)
            if expected_version is not None:
                if current is None or current.get("version", 0) != expected_version:
                    raise RecordConflictError(record.id, expected_version)
            self._documents[record.id] = updated.to_document()
        return updated

    def _find(self, patient_id: str, case_insensitive: bool) -> Optional[dict]:
        if not case_insensitive:
            return self._documents.get(patient_id)
        wanted = patient_id.lower()
        for stored_id, document in self._documents.items():
            if stored_id.lower() == wanted:
                return document
        return None
