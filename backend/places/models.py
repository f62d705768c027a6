from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Document(BaseModel):
    """Base for records stored as camelCase documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude={"id"})


def ensure_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Place(Document):
    # Place documents carry many client-side fields (address, tags, ...)
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    name: str = ""
    rating: float = Field(default=0.0, ge=0.0, le=5.0)
    is_verified: bool = False
    report_count: int = Field(default=0, ge=0)
    review_count: int = Field(default=0, ge=0)
    created_by: str | None = None
    needs_review: bool = False
    flagged_at: datetime | None = None

    @field_validator("flagged_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Review(Document):
    id: str = ""
    place_id: str = Field(..., min_length=1)
    user_id: str = ""
    user_name: str = ""
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""
    created_at: datetime
    helpful_count: int = Field(default=0, ge=0)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class Report(Document):
    id: str = ""
    place_id: str = Field(..., min_length=1)
    reporter_id: str = ""
    reason: str = "other"
    description: str = ""
    is_resolved: bool = False
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class RankedPlace(Place):
    top_picks_score: float
    review_count: int = Field(..., ge=0)


class TopPicksList(Document):
    places: list[RankedPlace] = Field(default_factory=list)
    last_updated: datetime
    algorithm: str

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class RatingUpdate(Document):
    place_id: str
    rating: float
    review_count: int


class UserStats(Document):
    user_id: str
    places_added: int = 0
    reviews_written: int = 0
    photos_uploaded: int = 0
    helpful_votes_received: int = 0
    last_updated: datetime

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class AnonymizationResult(Document):
    user_id: str
    reviews_anonymized: int
    places_anonymized: int


# ── Request / response bodies ────────────────────────────────────────────


class ReviewCreate(BaseModel):
    place_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(default="", max_length=2000)


class ReviewUpdate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReportCreate(BaseModel):
    place_id: str = Field(..., min_length=1)
    reason: str = Field(default="other", min_length=1)
    description: str = Field(default="", max_length=2000)


class ReportResponse(BaseModel):
    report_id: str
    place_flagged: bool


class PruneResponse(BaseModel):
    deleted: int


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
