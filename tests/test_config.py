"""
Tests for application settings.
"""
import pytest
from pydantic import ValidationError

from medicloud.config import Settings


def test_secret_key_is_required(monkeypatch):
    """
    Test the app refuses to start without a JWT signing key.
    """
    monkeypatch.delenv("SECRET_KEY", raising=False)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "from-env")
    monkeypatch.setenv("FACE_CONFIDENCE_THRESHOLD", "0.75")

    loaded = Settings(_env_file=None)

    assert loaded.secret_key == "from-env"
    assert loaded.face_confidence_threshold == 0.75
    assert loaded.algorithm == "HS256"
