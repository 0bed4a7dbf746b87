"""Pydantic models for whistleblower report intake.

This module defines the canonical case record, the common submission
type every intake channel maps into, and the wire shapes accepted at
the HTTP boundary.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ImmutableFieldError, InvalidCategoryError, SubmissionValidationError


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


# =============================================================================
# Enumerations
# =============================================================================


class Category(str, Enum):
    """Report categories accepted by the case store."""

    FRAUD = "fraud"
    ABUSE = "abuse"
    DISCRIMINATION = "discrimination"
    HARASSMENT = "harassment"
    SAFETY = "safety"
    CORRUPTION = "corruption"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class Priority(str, Enum):
    """Case priority, ordered from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Priority).index(self)


class CaseStatus(str, Enum):
    """Lifecycle state of a case."""

    OPEN = "open"
    UNDER_INVESTIGATION = "under_investigation"
    RESOLVED = "resolved"
    ESCALATED = "escalated"
    CLOSED = "closed"


class ReportSource(str, Enum):
    """Channel a report came in through."""

    VAPI = "VAPIReport"
    MAP = "MapReport"
    MANUAL = "ManualReport"

    @property
    def label(self) -> str:
        """Display label for dashboards."""
        return {
            ReportSource.VAPI: "Voice AI",
            ReportSource.MAP: "Map Report",
            ReportSource.MANUAL: "Manual Form",
        }[self]


class IdentifierKind(str, Enum):
    """Kinds of generated case identifiers."""

    CASE_ID = "case_id"
    REPORT_ID = "report_id"
    TRACKING_CODE = "tracking_code"
    SECRET_CODE = "secret_code"
    CASE_NUMBER = "case_number"


# =============================================================================
# Submission Models
# =============================================================================


class Coordinates(BaseModel):
    """Map click position. Left loosely typed so validation can report it."""

    lat: Any = None
    lng: Any = None


class RawSubmission(BaseModel):
    """Common shape every intake channel maps its payload into.

    Values are untrusted: nothing here has been validated or sanitized.
    """

    model_config = ConfigDict(extra="ignore")

    category: Any = None
    title: str | None = None
    description: str | None = None
    summary: str | None = None
    transcript: str | None = None
    location: str | None = None
    coordinates: Coordinates | None = None
    date_occurred: str | None = None
    anonymous: bool | None = None
    contact_info: str | None = None

    # Voice-only fields
    session_id: str | None = None
    audio_url: str | None = None
    call_data: dict[str, Any] | None = None

    def present_fields(self) -> set[str]:
        """Names of fields that carry a usable value."""
        present = set()
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, str) and not value.strip():
                continue
            present.add(name)
        return present


class ManualSubmission(BaseModel):
    """Manual form submission as posted by the report page."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: Any = None
    title: str | None = None
    description: str | None = None
    location: str | None = None
    date_occurred: str | None = Field(default=None, alias="dateOccurred")
    anonymous: bool | None = None
    contact_info: str | None = Field(default=None, alias="contactInfo")

    def to_raw(self) -> RawSubmission:
        return RawSubmission(
            category=self.category,
            title=self.title,
            description=self.description,
            location=self.location,
            date_occurred=self.date_occurred,
            anonymous=self.anonymous,
            contact_info=self.contact_info,
        )


class MapSubmission(ManualSubmission):
    """Submission from a click on the report map."""

    coordinates: Coordinates | None = None

    def to_raw(self) -> RawSubmission:
        raw = super().to_raw()
        raw.coordinates = self.coordinates
        return raw


class VoiceSubmission(BaseModel):
    """Transcript of a finished voice intake call."""

    model_config = ConfigDict(extra="ignore")

    session_id: str | None = None
    transcript: str | None = None
    summary: str | None = None
    audio_url: str | None = None
    call_data: dict[str, Any] | None = None

    def to_raw(self) -> RawSubmission:
        return RawSubmission(
            session_id=self.session_id,
            transcript=self.transcript,
            summary=self.summary,
            audio_url=self.audio_url,
            call_data=self.call_data,
        )


class VapiCall(BaseModel):
    """Raw call record as returned by the voice vendor."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str
    status: str | None = None
    transcript: str | None = None
    summary: str | None = None
    recording_url: str | None = Field(default=None, alias="recordingUrl")
    stereo_recording_url: str | None = Field(default=None, alias="stereoRecordingUrl")
    mono_recording_url: str | None = Field(default=None, alias="monoRecordingUrl")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    ended_at: datetime | None = Field(default=None, alias="endedAt")
    analysis: dict[str, Any] | None = None

    def best_summary(self) -> str | None:
        """Vendor analysis summary, falling back to the call summary."""
        if self.analysis and self.analysis.get("summary"):
            return self.analysis["summary"]
        return self.summary or None

    def audio_url(self) -> str | None:
        return self.recording_url or self.stereo_recording_url or self.mono_recording_url

    def to_submission(self) -> VoiceSubmission:
        return VoiceSubmission(
            session_id=self.id,
            transcript=self.transcript,
            summary=self.best_summary(),
            audio_url=self.audio_url(),
            call_data=self.model_dump(mode="json", by_alias=True),
        )


# =============================================================================
# Case Model
# =============================================================================


IMMUTABLE_FIELDS = frozenset(
    {
        "case_id",
        "report_id",
        "tracking_code",
        "secret_code",
        "case_number",
        "report_source",
        "created_at",
    }
)


class Case(BaseModel):
    """Canonical case record produced from a submission.

    Identifiers and provenance are fixed at creation; downstream
    workflow actions may only change the remaining fields, and every
    change bumps ``updated_at``.
    """

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    case_id: str = Field(..., min_length=10, max_length=10)
    case_number: str
    report_id: str = Field(..., min_length=10, max_length=10)
    tracking_code: str = Field(..., min_length=4, max_length=32)
    secret_code: str = Field(..., min_length=12, max_length=12)

    title: str
    description: str = ""
    summary: str | None = None
    category: Category
    priority: Priority
    status: CaseStatus = CaseStatus.OPEN
    report_source: ReportSource

    is_anonymous: bool = True
    contact_info: str | None = None
    location: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    date_occurred: str | None = None

    vapi_session_id: str | None = None
    vapi_transcript: str | None = None
    vapi_audio_url: str | None = None
    vapi_call_data: dict[str, Any] | None = None

    assigned_to: str | None = None
    notes: str | None = None
    reward_status: str = "pending"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready row for the reports table."""
        return self.model_dump(mode="json", exclude_none=True)

    def to_case_record(self) -> dict[str, Any]:
        """Projection for the legacy cases table.

        The cases table keys rows on ``case_number`` and has no
        ``report_source`` or coordinate columns.
        """
        record = self.to_record()
        for key in ("report_source", "latitude", "longitude", "vapi_call_data", "summary"):
            record.pop(key, None)
        if self.summary:
            record["vapi_report_summary"] = self.summary
        return record

    def apply_update(self, patch: dict[str, Any], now: datetime | None = None) -> "Case":
        """Return a copy with ``patch`` applied and ``updated_at`` bumped.

        Raises:
            ImmutableFieldError: If the patch touches identifiers or provenance
            SubmissionValidationError: If a status, priority or category is unknown
        """
        blocked = sorted(set(patch) & (IMMUTABLE_FIELDS | {"updated_at"}))
        if blocked:
            raise ImmutableFieldError(blocked)

        unknown = sorted(set(patch) - set(type(self).model_fields))
        if unknown:
            raise SubmissionValidationError(
                code="UNKNOWN_FIELDS",
                message="Update failed",
                details=f"Unknown fields: {', '.join(unknown)}",
            )

        if "category" in patch and patch["category"] not in Category.values():
            raise InvalidCategoryError(patch["category"])
        for field, enum in (("priority", Priority), ("status", CaseStatus)):
            if field in patch and patch[field] not in [m.value for m in enum]:
                raise SubmissionValidationError(
                    code=f"INVALID_{field.upper()}",
                    message=f"Invalid {field}",
                    details=f"{field.capitalize()} must be one of: "
                    + ", ".join(m.value for m in enum),
                )

        data = self.model_dump()
        data.update(patch)
        data["updated_at"] = now or utcnow()
        return Case.model_validate(data)


# =============================================================================
# Pipeline Results
# =============================================================================


class Classification(BaseModel):
    """Category and priority derived for a report."""

    category: Category
    priority: Priority
    matched_keywords: list[str] = Field(default_factory=list)

    model_config = ConfigDict(use_enum_values=True)


class SubmissionResult(BaseModel):
    """Outcome of normalizing a submission and handing it to the store.

    Normalization success and storage success are reported separately:
    a case that failed to persist is still returned so the submitter
    receives their tracking code.
    """

    case: Case
    persisted: bool
    table: str | None = None
    persistence_error: str | None = None

    @property
    def demo_mode(self) -> bool:
        return not self.persisted
