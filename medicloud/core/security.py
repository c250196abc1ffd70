"""
Core security utilities for authentication and password handling.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
from jose import jwt, JWTError
from passlib.context import CryptContext
import secrets
import string
import hmac
import logging

from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Alphabet for generated patient IDs and passwords
CREDENTIAL_ALPHABET = string.ascii_uppercase + string.digits
PATIENT_ID_PREFIX = "PAT"

def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        str: Hashed password
    """
    return pwd_context.hash(password)

def is_password_hash(stored: str) -> bool:
    """
    Check whether a stored password is a recognized hash.

    Records created before hashing was introduced hold the password itself.
    """
    return bool(stored) and pwd_context.identify(stored) is not None

def verify_password(plain_password: str, stored_password: str) -> Tuple[bool, bool]:
    """
    Verify a password against its stored form.

    Args:
        plain_password: Plain text password
        stored_password: bcrypt hash, or a legacy plaintext password

    Returns:
        Tuple[bool, bool]: (password matches, stored form should be re-hashed)
    """
    if is_password_hash(stored_password):
        matches = pwd_context.verify(plain_password, stored_password)
        return matches, matches and pwd_context.needs_update(stored_password)

    matches = hmac.compare_digest(plain_password.encode("utf-8"), (stored_password or "").encode("utf-8"))
    return matches, matches

def dummy_verify_password() -> None:
    """
    Spend the time of one bcrypt check without checking anything.

    Called when no stored hash was compared, so a login for an unknown
    Patient ID takes as long as one with a wrong password.
    """
    pwd_context.dummy_verify()

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data to encode in the token
        expires_delta: Token expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode, settings.secret_key, algorithm=settings.algorithm
    )

    return encoded_jwt

def create_patient_token(patient_id: str) -> str:
    return create_access_token({"sub": patient_id, "type": "access"})

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string

    Returns:
        Dict containing token payload if valid, None if invalid
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload
    except JWTError:
        return None

def generate_random_string(length: int) -> str:
    return "".join(secrets.choice(CREDENTIAL_ALPHABET) for _ in range(length))

def generate_patient_id() -> str:
    """
    Generate a patient ID such as PAT4K2ZQ.

    Returns:
        str: "PAT" followed by five uppercase letters or digits
    """
    return f"{PATIENT_ID_PREFIX}{generate_random_string(5)}"

def generate_password(length: int = 8) -> str:
    """
    Generate an initial password shown once to a newly registered patient.
    """
    return generate_random_string(length)
