"""
Database connection and store management.
Provides the MongoDB client, the patient store and the FastAPI dependencies
that hand them to request handlers.
"""
import logging
from typing import Optional

from pymongo import MongoClient

from .config import settings
from .face.oracle import FaceMatchOracle, MistralFaceMatchOracle
from .patients.store import InMemoryPatientStore, MongoPatientStore, PatientStore

# Set up logging
logger = logging.getLogger(__name__)

_client: Optional[MongoClient] = None
_store: Optional[PatientStore] = None
_oracle: Optional[FaceMatchOracle] = None


def get_client() -> MongoClient:
    """
    Get the process-wide MongoDB client, creating it on first use.

    MongoClient connects lazily and pools connections, so one instance
    serves every request.
    """
    global _client
    if _client is None:
        logger.info(f"🔄 Creating MongoDB client for database '{settings.mongodb_db}'")
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=5000)
    return _client


def create_store() -> PatientStore:
    """
    Build the patient store selected by settings.store_backend.
    """
    if settings.store_backend == "memory":
        logger.info("🧪 Using in-memory patient store")
        return InMemoryPatientStore()

    collection = get_client()[settings.mongodb_db][settings.patients_collection]
    return MongoPatientStore(collection)


def get_store() -> PatientStore:
    """
    Store dependency - Returns the shared patient store.

    Returns:
        PatientStore: Patient store
    """
    global _store
    if _store is None:
        _store = create_store()
    return _store


def get_face_oracle() -> FaceMatchOracle:
    """
    Face oracle dependency - Returns the shared face-match oracle client.
    """
    global _oracle
    if _oracle is None:
        _oracle = MistralFaceMatchOracle()
    return _oracle


def close_client() -> None:
    global _client, _store
    if _client is not None:
        _client.close()
        logger.info("🔌 Disconnected from MongoDB")
    _client = None
    _store = None
