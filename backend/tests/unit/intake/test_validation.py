"""Unit tests for submission validation.

Run with: pytest backend/tests/unit/intake/test_validation.py -v
"""

import pytest

from wbintake.intake.exceptions import (
    FieldTooLongError,
    InvalidCategoryError,
    InvalidCoordinatesError,
    MissingFieldsError,
)
from wbintake.intake.models import Coordinates, RawSubmission, ReportSource
from wbintake.intake.validation import ValidationRules, validate, validate_coordinates


class TestRequiredFields:
    """Tests for required field checks per channel."""

    def test_complete_manual_submission_passes(self, manual_raw):
        """Test that validate returns the submission unchanged."""
        assert validate(manual_raw, ReportSource.MANUAL) is manual_raw

    def test_lists_every_missing_field(self):
        """Test that all missing fields are reported in order."""
        raw = RawSubmission(category="fraud")

        with pytest.raises(MissingFieldsError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.fields == ["title", "description"]
        assert exc_info.value.code == "MISSING_FIELDS"
        assert exc_info.value.details == "Missing required fields: title, description"

    def test_blank_strings_count_as_missing(self):
        """Test that whitespace-only values are treated as absent."""
        raw = RawSubmission(category="fraud", title="   ", description="Details")

        with pytest.raises(MissingFieldsError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.fields == ["title"]

    def test_map_requires_location_and_coordinates(self):
        raw = RawSubmission(category="fraud", title="T", description="D")

        with pytest.raises(MissingFieldsError) as exc_info:
            validate(raw, ReportSource.MAP)

        assert exc_info.value.fields == ["location", "coordinates"]

    def test_voice_only_requires_transcript(self):
        raw = RawSubmission(transcript="Someone is stealing from the till.")
        assert validate(raw, ReportSource.VAPI) is raw

    def test_voice_without_transcript_fails(self):
        with pytest.raises(MissingFieldsError) as exc_info:
            validate(RawSubmission(summary="Summary only"), ReportSource.VAPI)

        assert exc_info.value.fields == ["transcript"]

    def test_missing_fields_checked_before_category(self):
        """Test that missing fields win over an invalid category."""
        raw = RawSubmission(category="theft")

        with pytest.raises(MissingFieldsError):
            validate(raw, ReportSource.MANUAL)


class TestCoordinates:
    """Tests for map coordinate validation."""

    @pytest.mark.parametrize(
        "lat,lng",
        [(0, 0), (90, 180), (-90, -180), (40.7128, -74.006)],
    )
    def test_accepts_in_range(self, lat, lng):
        validate_coordinates(lat, lng)

    @pytest.mark.parametrize(
        "lat,lng",
        [
            (91, 0),
            (0, -180.5),
            ("40.7", -74.0),
            (True, 0),
            (float("nan"), 0),
            (0, float("inf")),
            (None, 10),
        ],
    )
    def test_rejects_invalid(self, lat, lng):
        with pytest.raises(InvalidCoordinatesError):
            validate_coordinates(lat, lng)

    def test_map_submission_out_of_range(self, map_raw):
        """Test that a map submission with latitude 91 is rejected."""
        raw = map_raw.model_copy(update={"coordinates": Coordinates(lat=91, lng=0)})

        with pytest.raises(InvalidCoordinatesError) as exc_info:
            validate(raw, ReportSource.MAP)

        assert exc_info.value.code == "INVALID_COORDINATES"

    def test_manual_submission_ignores_coordinates(self, manual_raw):
        raw = manual_raw.model_copy(update={"coordinates": Coordinates(lat=500, lng=0)})
        validate(raw, ReportSource.MANUAL)


class TestCategory:
    """Tests for category membership."""

    def test_rejects_unknown_category(self, manual_raw):
        raw = manual_raw.model_copy(update={"category": "theft"})

        with pytest.raises(InvalidCategoryError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.code == "INVALID_CATEGORY"
        assert "fraud" in exc_info.value.details
        assert "corruption" in exc_info.value.details

    def test_category_is_case_sensitive(self, manual_raw):
        raw = manual_raw.model_copy(update={"category": "Fraud"})

        with pytest.raises(InvalidCategoryError):
            validate(raw, ReportSource.MANUAL)


class TestFieldLengths:
    """Tests for free-text length limits."""

    def test_title_at_limit_passes(self, manual_raw):
        raw = manual_raw.model_copy(update={"title": "x" * 200})
        validate(raw, ReportSource.MANUAL)

    def test_title_over_limit(self, manual_raw):
        raw = manual_raw.model_copy(update={"title": "x" * 201})

        with pytest.raises(FieldTooLongError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.field == "title"
        assert exc_info.value.details == "Field 'title' exceeds maximum length of 200 characters"

    def test_first_field_over_limit_is_reported(self, manual_raw):
        raw = manual_raw.model_copy(
            update={"title": "x" * 201, "description": "y" * 2001}
        )

        with pytest.raises(FieldTooLongError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.field == "title"

    def test_contact_info_limit(self, manual_raw):
        raw = manual_raw.model_copy(update={"contact_info": "a" * 501})

        with pytest.raises(FieldTooLongError) as exc_info:
            validate(raw, ReportSource.MANUAL)

        assert exc_info.value.field == "contact_info"

    def test_custom_rules(self, manual_raw):
        """Test that call sites can tighten limits."""
        rules = ValidationRules(
            required_fields=("title",),
            field_limits={"title": 5},
        )

        with pytest.raises(FieldTooLongError):
            validate(manual_raw, ReportSource.MANUAL, rules)
