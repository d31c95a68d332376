"""Rating DTOs for the Service Layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.ratings.models import MAX_SCORE, MIN_SCORE


class CreateRatingDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=MIN_SCORE, le=MAX_SCORE)
    comment: str = ""

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v: str) -> str:
        return v.strip()
