from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EnrolledUser(BaseModel):
    """A single enrollment as persisted by every store backend."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1, description="Framer submission identifier")
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    telephone: Optional[str] = None
    location: Optional[str] = None
    newsletter: Optional[bool] = None
    niveau_etudes: Optional[str] = None
    ecole: Optional[str] = None
    enrolled_at: datetime = Field(default_factory=utc_now)

    @field_validator("enrolled_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        # SQLite hands back naive timestamps; they are stored as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)
