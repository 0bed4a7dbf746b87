"""Unit tests for keyword classification.

Run with: pytest backend/tests/unit/intake/test_classification.py -v
"""

import pytest

from wbintake.intake.classification import Classifier, PriorityPolicy, get_classifier
from wbintake.intake.models import Category, Priority


@pytest.fixture
def classifier() -> Classifier:
    return Classifier()


class TestCategorize:
    """Tests for category heuristics."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("I was harassed at work", Category.HARASSMENT),
            ("Someone embezzled funds", Category.FRAUD),
            ("He threatened me in the hallway", Category.ABUSE),
            ("There is a hazard near the loading dock", Category.SAFETY),
            ("The contractor paid a bribe", Category.CORRUPTION),
            ("Racist remarks in meetings", Category.DISCRIMINATION),
        ],
    )
    def test_keyword_categories(self, classifier, text, expected):
        assert classifier.categorize(text) == expected

    def test_precedence_order(self, classifier):
        """Test that discrimination beats harassment when both match."""
        assert classifier.categorize("racial harassment") == Category.DISCRIMINATION

    def test_case_insensitive(self, classifier):
        assert classifier.categorize("BRIBE") == Category.CORRUPTION

    def test_default_is_fraud(self, classifier):
        assert classifier.categorize("Nothing specific to say") == Category.FRAUD
        assert classifier.categorize(None) == Category.FRAUD

    def test_substring_matching(self, classifier):
        """Test that short keywords fire inside longer words.

        "manager" contains "age", so this lands in discrimination.
        """
        assert classifier.categorize("My manager is stealing money") == Category.DISCRIMINATION


class TestPrioritize:
    """Tests for priority heuristics."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("This is urgent", Priority.CRITICAL),
            ("A serious problem", Priority.HIGH),
            ("A minor issue", Priority.LOW),
            ("hello there", Priority.MEDIUM),
        ],
    )
    def test_keyword_priorities(self, classifier, text, expected):
        assert classifier.prioritize(text) == expected

    def test_critical_beats_high(self, classifier):
        assert classifier.prioritize("serious and urgent") == Priority.CRITICAL


class TestClassify:
    """Tests for combined classification and priority policies."""

    def test_explicit_category_wins(self, classifier):
        result = classifier.classify("I was harassed", category="fraud")

        assert result.category == Category.FRAUD
        assert "harass" not in result.matched_keywords

    def test_matched_keywords(self, classifier):
        result = classifier.classify("There is a hazard and it is urgent")

        assert result.category == Category.SAFETY
        assert result.priority == Priority.CRITICAL
        assert result.matched_keywords == ["hazard", "urgent"]

    def test_category_default_policy(self, classifier):
        assert (
            classifier.classify("minor", category="safety", policy=PriorityPolicy.CATEGORY_DEFAULT).priority
            == Priority.CRITICAL
        )
        assert (
            classifier.classify("urgent", category="fraud", policy="category_default").priority
            == Priority.HIGH
        )

    def test_highest_policy(self, classifier):
        assert (
            classifier.classify("a minor issue", category="fraud", policy=PriorityPolicy.HIGHEST).priority
            == Priority.HIGH
        )
        assert (
            classifier.classify("urgent", category="fraud", policy=PriorityPolicy.HIGHEST).priority
            == Priority.CRITICAL
        )

    def test_singleton(self):
        assert get_classifier() is get_classifier()
