"""Request body models for the extraction endpoints.

Length and domain rules are enforced by the service layer so that every entry
point (HTTP or programmatic) gets the same error codes.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ..domain.models import FeedbackType


class ExtractFromTextRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    text: Optional[str] = None


class ExtractFromUrlRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", strict=True)

    url: Optional[str] = None


class ExtractionFeedbackRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    feedback: FeedbackType
