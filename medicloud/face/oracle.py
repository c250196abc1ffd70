"""
Face-match oracle client.

Compares two face images with a hosted vision model and returns the model's
verdict. The client does not decide who gets logged in: callers pass the
confidence threshold they want applied.
"""
import json
import math
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from mistralai import Mistral
from pydantic import BaseModel, Field, ValidationError, validator

from ..auth.exceptions import OracleUnavailableError
from ..config import settings

# Set up logging
logger = logging.getLogger(__name__)

FACE_VERIFICATION_PROMPT = """
You are an advanced AI face verification system. Your task is to compare two images and determine if they show the same person.

Analyze the facial features in both images provided. Based on your analysis, determine if it's the same person.

Provide a confidence score for your assessment. A score of 1 means you are certain they are the same person, and 0 means you are certain they are not.

Return JSON only:
{
"isSamePerson": true or false,
"confidence": a number between 0 and 1,
"reason": "a brief explanation for the decision"
}
"""


class FaceVerdict(BaseModel):
    """
    Face Verdict - What the model concluded about two images.

    Fields:
    - is_same_person: Whether both images show the same person
    - confidence: Score between 0 and 1
    - reason: Short explanation, shown to the user on rejection
    """
    is_same_person: bool = Field(..., alias="isSamePerson")
    confidence: float
    reason: str = ""

    class Config:
        populate_by_name = True

    @validator("confidence")
    def clamp_confidence(cls, value):
        if not math.isfinite(value):
            raise ValueError("confidence must be a finite number")
        return min(max(float(value), 0.0), 1.0)

    @validator("reason", pre=True)
    def none_to_empty(cls, value):
        return value or ""

    def apply_threshold(self, threshold: float) -> "FaceVerdict":
        """Return a verdict that rejects any match below the confidence threshold."""
        if self.is_same_person and not self.confidence >= threshold:
            return self.model_copy(update={"is_same_person": False})
        return self


class FaceMatchOracle(ABC):
    """
    Interface for anything that can tell whether two face images match.
    """

    def compare(self, image_a: str, image_b: str, threshold: Optional[float] = None) -> FaceVerdict:
        """
        Compare two data-URI images.

        Args:
            image_a: Reference image (data URI)
            image_b: Live image (data URI)
            threshold: When given, matches below this confidence are rejected

        Returns:
            FaceVerdict: The model's verdict

        Raises:
            OracleUnavailableError: If no verdict could be obtained
        """
        verdict = self.verify(image_a, image_b)
        if threshold is not None:
            verdict = verdict.apply_threshold(threshold)
        return verdict

    @abstractmethod
    def verify(self, image_a: str, image_b: str) -> FaceVerdict:
        """Return the model's raw verdict for two images."""


class MistralFaceMatchOracle(FaceMatchOracle):
    """
    Face-match oracle backed by a Mistral vision model.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 timeout_ms: Optional[int] = None, client: Optional[Mistral] = None):
        self.model = model or settings.face_model
        self.client = client or Mistral(
            api_key=api_key or settings.mistral_api_key,
            timeout_ms=timeout_ms or settings.face_oracle_timeout_ms,
        )

    def verify(self, image_a: str, image_b: str) -> FaceVerdict:
        try:
            result = self.client.chat.complete(
                model=self.model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": FACE_VERIFICATION_PROMPT},
                        {"type": "text", "text": "Image 1:"},
                        {"type": "image_url", "image_url": image_a},
                        {"type": "text", "text": "Image 2:"},
                        {"type": "image_url", "image_url": image_b},
                    ],
                }],
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(f"❌ Face verification request failed: {str(e)}")
            raise OracleUnavailableError("Face verification service unavailable") from e

        return self.parse_response(result)

    @staticmethod
    def parse_response(result) -> FaceVerdict:
        try:
            json_raw = result.choices[0].message.content
            json_clean = re.sub(r"^```json\s*|\s*```$", "", json_raw.strip(), flags=re.MULTILINE)
            verdict = FaceVerdict.model_validate(json.loads(json_clean))
        except (AttributeError, IndexError, TypeError, ValueError, ValidationError) as e:
            logger.error(f"❌ Face verification returned an unreadable verdict: {str(e)}")
            raise OracleUnavailableError("Face verification returned an unreadable verdict") from e

        logger.info(f"🔍 Face verification verdict: same={verdict.is_same_person} confidence={verdict.confidence:.2f}")
        return verdict
