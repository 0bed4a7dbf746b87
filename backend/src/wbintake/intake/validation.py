"""Validation gate for raw submissions.

Checks required fields, coordinates, category membership and field
lengths, raising the specific error for the first rule that fails.
"""

import math
from dataclasses import dataclass, field

from .exceptions import (
    FieldTooLongError,
    InvalidCategoryError,
    InvalidCoordinatesError,
    MissingFieldsError,
)
from .models import Category, RawSubmission, ReportSource

# Required fields per intake channel
REQUIRED_FIELDS: dict[ReportSource, tuple[str, ...]] = {
    ReportSource.MANUAL: ("category", "title", "description"),
    ReportSource.MAP: ("category", "title", "description", "location", "coordinates"),
    ReportSource.VAPI: ("transcript",),
}

# Maximum characters per free-text field
FIELD_LIMITS: dict[str, int] = {
    "title": 200,
    "description": 2000,
    "location": 500,
    "contact_info": 500,
}

LATITUDE_RANGE = (-90.0, 90.0)
LONGITUDE_RANGE = (-180.0, 180.0)


@dataclass
class ValidationRules:
    """Per call site validation settings."""

    required_fields: tuple[str, ...]
    field_limits: dict[str, int] = field(default_factory=lambda: dict(FIELD_LIMITS))
    check_coordinates: bool = False

    @classmethod
    def for_source(cls, source: ReportSource) -> "ValidationRules":
        return cls(
            required_fields=REQUIRED_FIELDS[source],
            check_coordinates=source == ReportSource.MAP,
        )


def _is_coordinate(value: object, bounds: tuple[float, float]) -> bool:
    # bool is an int subclass; "true" is not a latitude
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value):
        return False
    low, high = bounds
    return low <= value <= high


def validate_coordinates(lat: object, lng: object) -> None:
    """Raise InvalidCoordinatesError unless both values are in range."""
    if not (_is_coordinate(lat, LATITUDE_RANGE) and _is_coordinate(lng, LONGITUDE_RANGE)):
        raise InvalidCoordinatesError(lat, lng)


def validate(
    raw: RawSubmission,
    source: ReportSource,
    rules: ValidationRules | None = None,
) -> RawSubmission:
    """Validate a submission for the given channel.

    Args:
        raw: Untrusted submission
        source: Channel the submission arrived on
        rules: Override of the channel defaults

    Returns:
        The same submission, unchanged

    Raises:
        MissingFieldsError: Listing every required field that is absent
        InvalidCoordinatesError: Map submission outside lat/lng bounds
        InvalidCategoryError: Category not in the accepted set
        FieldTooLongError: Naming the first field over its limit
    """
    rules = rules or ValidationRules.for_source(source)

    present = raw.present_fields()
    missing = [name for name in rules.required_fields if name not in present]
    if missing:
        raise MissingFieldsError(missing)

    if rules.check_coordinates:
        coordinates = raw.coordinates
        validate_coordinates(
            coordinates.lat if coordinates else None,
            coordinates.lng if coordinates else None,
        )

    if raw.category is not None and raw.category not in Category.values():
        raise InvalidCategoryError(raw.category)

    for name, limit in rules.field_limits.items():
        value = getattr(raw, name, None)
        if value is not None and len(value) > limit:
            raise FieldTooLongError(name, limit, len(value))

    return raw
