"""Validation of recipe data returned by the model.

Critical fields (name, ingredients, steps) decide between a usable result and
the placeholder; everything else is cleaned up with warnings.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..constants import ALLOWED_TAGS, PLACEHOLDER_RECIPE_NAME
from ..domain.models import ExtractionValidationResult

_FIELD_WARNINGS = {
    "name": "Recipe name was not detected. Please fill it in manually.",
    "ingredients": "No ingredients were detected. Please add them manually.",
    "steps": "No preparation steps were detected. Please add them manually.",
}


class ExtractedRecipeData(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    ingredients: list[str] = Field(..., min_length=1)
    steps: list[str] = Field(..., min_length=1)
    preparation_time: Optional[str] = None
    suggested_tags: list[str] = Field(default_factory=list)
    image_url: Optional[str] = None
    source_url: Optional[str] = None

    @field_validator("ingredients", "steps")
    @classmethod
    def items_not_blank(cls, v: list[str]) -> list[str]:
        if any(not item for item in v):
            raise ValueError("items must be non-empty strings")
        return v

    @field_validator("preparation_time", "image_url", "source_url", mode="before")
    @classmethod
    def optional_text(cls, v: Any) -> Optional[str]:
        # A malformed optional value is dropped rather than failing the record.
        if isinstance(v, str) and v.strip():
            return v
        return None

    @field_validator("suggested_tags", mode="before")
    @classmethod
    def tags_list(cls, v: Any) -> list[str]:
        if not isinstance(v, list):
            return []
        return [tag for tag in v if isinstance(tag, str)]


def placeholder_recipe() -> dict[str, Any]:
    return {"name": PLACEHOLDER_RECIPE_NAME, "ingredients": [], "steps": [], "suggested_tags": []}


def _issue_warning(error: dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    field = loc[0] if loc else None
    return _FIELD_WARNINGS.get(field, f"A validation error occurred: {error.get('msg', 'invalid value')}")


def validate_extracted_data(raw: Any) -> ExtractionValidationResult:
    try:
        recipe = ExtractedRecipeData.model_validate(raw)
    except ValidationError as e:
        warnings: list[str] = []
        for error in e.errors():
            message = _issue_warning(error)
            if message not in warnings:
                warnings.append(message)
        return ExtractionValidationResult(data=placeholder_recipe(), warnings=warnings, has_errors=True)

    allowed = set(ALLOWED_TAGS)
    valid_tags = [tag for tag in recipe.suggested_tags if tag in allowed]
    invalid_tags = [tag for tag in recipe.suggested_tags if tag not in allowed]

    warnings = []
    if invalid_tags:
        warnings.append(f"Invalid tags have been omitted: {', '.join(invalid_tags)}")

    data = recipe.model_dump(exclude_none=True)
    data["suggested_tags"] = valid_tags
    return ExtractionValidationResult(data=data, warnings=warnings, has_errors=False)
