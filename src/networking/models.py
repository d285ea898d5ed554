"""Pydantic v2 data models — the data contracts flowing through the system."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from src.networking.config import SimilarityBands, settings
from src.networking.vector_math import parse_embedding


# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

SimilarityLabel = Literal["Very High", "High", "Medium", "Low", "Very Low"]

PairKey = tuple[str, str, str]  # (event_id, profile_id_1, profile_id_2)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class Profile(BaseModel):
    """An attendee's profile within exactly one event."""

    id: str
    event_id: str
    name: str = ""
    email: str | None = None
    image_url: str | None = None
    skills: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    about_you: str | None = None
    looking_for: str | None = None
    hobbies: str | None = None
    linkedin_url: str | None = None
    resume_text: str | None = None
    embedding: list[float] | None = None

    @field_validator("skills", "interests", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, value: Any) -> list[float] | None:
        return parse_embedding(value)

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


class ProfileVector(BaseModel):
    """The projection of a profile the similarity engine consumes."""

    id: str
    embedding: list[float] | None = None

    @field_validator("embedding", mode="before")
    @classmethod
    def _parse_embedding(cls, value: Any) -> list[float] | None:
        return parse_embedding(value)


# ---------------------------------------------------------------------------
# Similarity records
# ---------------------------------------------------------------------------

class SimilarityRecord(BaseModel):
    event_id: str
    profile_id_1: str
    profile_id_2: str
    similarity_score: float

    @model_validator(mode="after")
    def _reject_self_pair(self) -> SimilarityRecord:
        if self.profile_id_1 == self.profile_id_2:
            raise ValueError(
                f"self-pair {self.profile_id_1!r} cannot be stored",
            )
        return self

    @property
    def key(self) -> PairKey:
        return (self.event_id, self.profile_id_1, self.profile_id_2)

    def involves(self, profile_id: str) -> bool:
        return profile_id in (self.profile_id_1, self.profile_id_2)

    def counterpart(self, profile_id: str) -> str:
        """Return whichever member of the pair is not ``profile_id``."""
        if profile_id == self.profile_id_1:
            return self.profile_id_2
        if profile_id == self.profile_id_2:
            return self.profile_id_1
        raise ValueError(f"{profile_id!r} is not part of this pair")


class SimilarProfile(BaseModel):
    profile: Profile
    similarity_score: float = 0.0

    @property
    def label(self) -> SimilarityLabel:
        return similarity_label(self.similarity_score)

    @property
    def percentage(self) -> str:
        return format_similarity(self.similarity_score)


class RecomputeResult(BaseModel):
    event_id: str
    profile_id: str | None = None
    scores_calculated: int = 0
    skipped: int = 0

    @property
    def nothing_to_compute(self) -> bool:
        return self.scores_calculated == 0


# ---------------------------------------------------------------------------
# Invocation contract
# ---------------------------------------------------------------------------

class CalculateSimilarityRequest(BaseModel):
    event_id: str = Field(alias="eventId")
    profile_id: str | None = Field(default=None, alias="profileId")

    model_config = {"populate_by_name": True}

    @field_validator("event_id")
    @classmethod
    def _require_event_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Event ID is required")
        return value

    @field_validator("profile_id")
    @classmethod
    def _blank_profile_is_absent(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value


class CalculateSimilarityResponse(BaseModel):
    success: bool = True
    scores_calculated: int = Field(default=0, alias="scoresCalculated")
    message: str = ""

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    error: str
    code: str | None = None


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def similarity_label(
    score: float, bands: SimilarityBands | None = None,
) -> SimilarityLabel:
    b = bands or settings.similarity_bands
    if score > b.very_high:
        return "Very High"
    if score > b.high:
        return "High"
    if score > b.medium:
        return "Medium"
    if score > b.low:
        return "Low"
    return "Very Low"


def format_similarity(score: float) -> str:
    return f"{round(score * 100)}%"
