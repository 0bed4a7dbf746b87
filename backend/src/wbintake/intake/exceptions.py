"""Exception classes for report intake.

Every error carries a machine-readable ``code`` and a human-readable
``details`` string naming exactly what failed.
"""


class IntakeError(Exception):
    """Base error for the intake pipeline."""

    code = "INTAKE_ERROR"

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details or message
        super().__init__(self.details)

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "details": self.details,
            "code": self.code,
        }


# =========================
# Validation
# =========================


class SubmissionValidationError(IntakeError):
    """A submission was rejected before normalization."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", details: str | None = None, code: str | None = None):
        if code:
            self.code = code
        super().__init__(message, details)


class MissingFieldsError(SubmissionValidationError):
    """One or more required fields were absent or blank."""

    code = "MISSING_FIELDS"

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(
            "Validation failed",
            f"Missing required fields: {', '.join(self.fields)}",
        )


class InvalidCategoryError(SubmissionValidationError):
    """The submitted category is not one of the accepted categories."""

    code = "INVALID_CATEGORY"

    def __init__(self, value: object):
        from .models import Category

        self.value = value
        super().__init__(
            "Invalid category",
            f"Category must be one of: {', '.join(Category.values())}",
        )


class InvalidCoordinatesError(SubmissionValidationError):
    """Latitude or longitude missing, non-numeric, or out of range."""

    code = "INVALID_COORDINATES"

    def __init__(self, lat: object = None, lng: object = None):
        self.lat = lat
        self.lng = lng
        super().__init__(
            "Invalid coordinates",
            "Latitude must be between -90 and 90, longitude between -180 and 180",
        )


class FieldTooLongError(SubmissionValidationError):
    """A free-text field exceeded its length limit."""

    code = "FIELD_TOO_LONG"

    def __init__(self, field: str, limit: int, length: int | None = None):
        self.field = field
        self.limit = limit
        self.length = length
        super().__init__(
            "Field too long",
            f"Field '{field}' exceeds maximum length of {limit} characters",
        )


# =========================
# Gate and store
# =========================


class RateLimitExceededError(IntakeError):
    """A client sent more submissions than its window allows."""

    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, identity: str, retry_after: int = 60):
        self.identity = identity
        self.retry_after = retry_after
        super().__init__(
            "Too many requests",
            "Please wait before submitting another report",
        )


class PersistenceError(IntakeError):
    """The external store rejected or failed a write."""

    code = "DB_ERROR"

    def __init__(self, table: str, message: str):
        self.table = table
        super().__init__("Database operation failed", message)


class ImmutableFieldError(IntakeError):
    """An update tried to change a field fixed at creation."""

    code = "IMMUTABLE_FIELD"

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(
            "Update failed",
            f"Fields cannot be changed after creation: {', '.join(self.fields)}",
        )


class VapiError(IntakeError):
    """The voice vendor API returned an error or could not be reached."""

    code = "VAPI_ERROR"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__("Voice provider request failed", message)
