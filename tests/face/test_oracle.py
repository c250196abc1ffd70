"""
Tests for the face-match oracle client.
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from medicloud.auth.exceptions import OracleUnavailableError
from medicloud.face.oracle import FaceVerdict, MistralFaceMatchOracle


def chat_response(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def mistral_client():
    return MagicMock()


@pytest.fixture
def face_oracle(mistral_client):
    return MistralFaceMatchOracle(model="pixtral-test", client=mistral_client)


def test_verify_sends_both_images(face_oracle, mistral_client, face_image, live_image):
    """
    Test both images go to the model in one JSON-mode chat request.
    """
    mistral_client.chat.complete.return_value = chat_response(
        '{"isSamePerson": true, "confidence": 0.93, "reason": "Same facial structure"}'
    )

    verdict = face_oracle.verify(face_image, live_image)

    assert verdict == FaceVerdict(is_same_person=True, confidence=0.93, reason="Same facial structure")
    kwargs = mistral_client.chat.complete.call_args.kwargs
    assert kwargs["model"] == "pixtral-test"
    assert kwargs["response_format"] == {"type": "json_object"}
    images = [part["image_url"] for part in kwargs["messages"][0]["content"] if part["type"] == "image_url"]
    assert images == [face_image, live_image]


def test_fenced_json_is_accepted(face_oracle, mistral_client):
    mistral_client.chat.complete.return_value = chat_response(
        '```json\n{"isSamePerson": false, "confidence": 0.2, "reason": "Different people"}\n```'
    )

    verdict = face_oracle.verify("a", "b")

    assert not verdict.is_same_person
    assert verdict.reason == "Different people"


def test_confidence_is_clamped(face_oracle, mistral_client):
    mistral_client.chat.complete.return_value = chat_response('{"isSamePerson": true, "confidence": 1.7}')

    verdict = face_oracle.verify("a", "b")

    assert verdict.confidence == 1.0
    assert verdict.reason == ""


def test_request_failure(face_oracle, mistral_client):
    """
    Test transport errors become OracleUnavailableError.
    """
    mistral_client.chat.complete.side_effect = TimeoutError("read timed out")

    with pytest.raises(OracleUnavailableError):
        face_oracle.verify("a", "b")


@pytest.mark.parametrize("content", [
    "I think these are the same person.",
    '{"confidence": 0.9}',
    '{"isSamePerson": "perhaps", "confidence": 0.9}',
    None,
])
def test_unreadable_verdict(face_oracle, mistral_client, content):
    mistral_client.chat.complete.return_value = chat_response(content)

    with pytest.raises(OracleUnavailableError):
        face_oracle.verify("a", "b")


def test_empty_choices(face_oracle, mistral_client):
    mistral_client.chat.complete.return_value = SimpleNamespace(choices=[])

    with pytest.raises(OracleUnavailableError):
        face_oracle.verify("a", "b")


@pytest.mark.parametrize("confidence, threshold, same", [
    (0.59, 0.6, False),
    (0.599, 0.6, False),
    (0.6, 0.6, True),
    (0.95, 0.6, True),
    (0.95, None, True),
    (0.1, None, True),
])
def test_compare_applies_threshold(face_oracle, mistral_client, confidence, threshold, same):
    """
    Test low-confidence matches are rejected only when a threshold is given.
    """
    mistral_client.chat.complete.return_value = chat_response(
        f'{{"isSamePerson": true, "confidence": {confidence}, "reason": "similar"}}'
    )

    verdict = face_oracle.compare("a", "b", threshold=threshold)

    assert verdict.is_same_person is same
    assert verdict.confidence == confidence


def test_threshold_never_turns_a_rejection_into_a_match():
    verdict = FaceVerdict(is_same_person=False, confidence=0.9, reason="Different person")

    assert verdict.apply_threshold(0.6) == verdict


@pytest.mark.parametrize("confidence", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_confidence_is_unreadable(face_oracle, mistral_client, confidence):
    """
    Test a verdict without a real confidence score is never accepted.
    """
    mistral_client.chat.complete.return_value = chat_response(
        f'{{"isSamePerson": true, "confidence": {confidence}, "reason": "similar"}}'
    )

    with pytest.raises(OracleUnavailableError):
        face_oracle.compare("a", "b", threshold=0.6)


def test_threshold_rejects_unscored_match():
    verdict = FaceVerdict.model_construct(is_same_person=True, confidence=float("nan"), reason="")

    assert verdict.apply_threshold(0.6).is_same_person is False
