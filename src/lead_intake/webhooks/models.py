"""
Pydantic models for Framer enrollment webhooks.
Alias-aware submission parsing and typed intake results.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import MissingFieldsError, ValidationError
from ..core.schemas import EnrolledUser


class IntakeStatus(str, Enum):
    """Outcome of an enrollment intake."""

    ENROLLED = "enrolled"
    ALREADY_ENROLLED = "already_enrolled"


class NotificationStatus(str, Enum):
    """Outcome of a confirmation SMS attempt."""

    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


# Earlier aliases win when a payload carries several spellings
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "name": ("name", "Name"),
    "email": ("email", "Email"),
    "telephone": ("telephone", "Telephone", "Téléphone", "phone"),
    "location": ("location", "Location"),
    "newsletter": ("newsletter", "Newsletter"),
    "niveau_etudes": ("niveau_etudes", "Niveau d'études"),
    "ecole": ("ecole", "École"),
}


class EnrollmentSubmission(BaseModel):
    """
    Validated enrollment fields extracted from a Framer form payload.

    Framer forms name their fields after the labels the site author typed,
    so each logical field is looked up through a prioritised alias list.
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        frozen=True,
    )

    name: str = Field(..., min_length=1, description="Candidate name")
    email: str = Field(..., min_length=1, description="Candidate email")
    telephone: str | None = Field(None, description="Phone number for SMS")
    location: str | None = None
    newsletter: bool | None = None
    niveau_etudes: str | None = None
    ecole: str | None = None

    @classmethod
    def from_webhook_data(
        cls, data: Any, require_telephone: bool = False
    ) -> "EnrollmentSubmission":
        """
        Create a submission from a decoded webhook body.

        Args:
            data: Decoded JSON body
            require_telephone: Treat telephone as mandatory (SMS variant)

        Returns:
            Validated EnrollmentSubmission

        Raises:
            ValidationError: If the body is not a JSON object
            MissingFieldsError: Listing every required field that is absent
        """
        if not isinstance(data, dict):
            raise ValidationError(
                message="Webhook body must be a JSON object",
                error_code="INVALID_PAYLOAD",
            )

        values: dict[str, Any] = {}
        for field_name, aliases in FIELD_ALIASES.items():
            key, value = _first_present(data, aliases)
            if key is not None:
                values[field_name] = value

        required = ["name", "email"] + (["telephone"] if require_telephone else [])
        missing = [field for field in required if field not in values]
        if missing:
            raise MissingFieldsError(missing)

        if "newsletter" in values:
            values["newsletter"] = _parse_checkbox(values["newsletter"])

        for field_name in ("name", "email", "telephone", "location", "niveau_etudes", "ecole"):
            if field_name in values and not isinstance(values[field_name], str):
                values[field_name] = str(values[field_name])

        return cls(**values)

    def to_enrolled_user(self, submission_id: str) -> EnrolledUser:
        """Build the record persisted for a new enrollment."""
        return EnrolledUser(
            id=submission_id,
            name=self.name,
            email=self.email,
            telephone=self.telephone,
            location=self.location,
            newsletter=self.newsletter,
            niveau_etudes=self.niveau_etudes,
            ecole=self.ecole,
        )


def _is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _first_present(data: dict[str, Any], aliases: tuple[str, ...]) -> tuple[str | None, Any]:
    for alias in aliases:
        if alias in data and _is_present(data[alias]):
            return alias, data[alias]
    return None, None


def _parse_checkbox(value: Any) -> bool:
    """Framer sends checkboxes as "on" when ticked."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("on", "true", "yes", "1")


class NotificationResult(BaseModel):
    """Result of a best-effort confirmation SMS."""

    model_config = ConfigDict(use_enum_values=False)

    status: NotificationStatus
    recipient: str | None = None
    message_sid: str | None = Field(None, description="Provider message identifier")
    error_message: str | None = None

    @property
    def delivered(self) -> bool:
        return self.status == NotificationStatus.SENT


class IntakeResult(BaseModel):
    """Result of processing one enrollment submission."""

    status: IntakeStatus
    user_id: str = Field(..., description="Stored record identifier")
    email: str
    notification: NotificationResult | None = Field(
        None, description="SMS outcome; None when no SMS was attempted"
    )
