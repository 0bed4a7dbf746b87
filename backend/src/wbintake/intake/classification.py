"""Keyword classification of report text.

Derives a category and a priority from free text. Both use the same
shape: buckets are tested in a fixed precedence order and the first
bucket with any keyword contained in the lower-cased text wins.

Matching is plain substring containment, not word-boundary matching,
so short keywords can fire inside longer words ("age" in "manager").
"""

from enum import Enum

from .models import Category, Classification, Priority

# Precedence order matters: first matching category wins
CATEGORY_KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.DISCRIMINATION: (
        "discriminat", "racial", "racis", "gender", "age", "bias", "prejudice",
    ),
    Category.HARASSMENT: (
        "harass", "sexual", "unwanted", "inappropriate", "advances", "hostile",
    ),
    Category.FRAUD: (
        "fraud", "money", "steal", "embezzle", "financial", "invoice", "accounting",
    ),
    Category.ABUSE: (
        "abuse", "violence", "threat", "intimidat", "bullying", "assault",
    ),
    Category.SAFETY: (
        "safety", "danger", "unsafe", "injury", "accident", "hazard",
    ),
    Category.CORRUPTION: (
        "corrupt", "bribe", "kickback", "payoff",
    ),
}

PRIORITY_KEYWORDS: dict[Priority, tuple[str, ...]] = {
    Priority.CRITICAL: (
        "immediate", "urgent", "danger", "threat", "critical", "killed",
        "injury", "emergency", "death",
    ),
    Priority.HIGH: (
        "serious", "significant", "major", "large", "thousands", "ongoing",
        "widespread",
    ),
    Priority.LOW: (
        "minor", "small", "trivial", "slight",
    ),
}

# Priority table used by the map intake channel
CATEGORY_DEFAULT_PRIORITY: dict[Category, Priority] = {
    Category.FRAUD: Priority.HIGH,
    Category.ABUSE: Priority.HIGH,
    Category.DISCRIMINATION: Priority.HIGH,
    Category.HARASSMENT: Priority.HIGH,
    Category.SAFETY: Priority.CRITICAL,
    Category.CORRUPTION: Priority.HIGH,
}


class PriorityPolicy(str, Enum):
    """How a priority is chosen when both text and category are known."""

    KEYWORDS = "keywords"
    CATEGORY_DEFAULT = "category_default"
    HIGHEST = "highest"


def _first_match(text: str, buckets: dict) -> tuple[object, list[str]] | None:
    for bucket, keywords in buckets.items():
        hits = [keyword for keyword in keywords if keyword in text]
        if hits:
            return bucket, hits
    return None


class Classifier:
    """Keyword classifier for categories and priorities.

    Args:
        category_keywords: Ordered category buckets
        priority_keywords: Ordered priority buckets, excluding the default
        default_category: Returned when no category keyword matches
        default_priority: Returned when no priority keyword matches
    """

    def __init__(
        self,
        category_keywords: dict[Category, tuple[str, ...]] | None = None,
        priority_keywords: dict[Priority, tuple[str, ...]] | None = None,
        default_category: Category = Category.FRAUD,
        default_priority: Priority = Priority.MEDIUM,
    ):
        self.category_keywords = category_keywords or CATEGORY_KEYWORDS
        self.priority_keywords = priority_keywords or PRIORITY_KEYWORDS
        self.default_category = default_category
        self.default_priority = default_priority

    def categorize(self, text: str | None) -> Category:
        """Return the first category whose keywords appear in ``text``."""
        match = _first_match((text or "").lower(), self.category_keywords)
        return match[0] if match else self.default_category

    def prioritize(self, text: str | None) -> Priority:
        """Return the first priority bucket whose keywords appear in ``text``."""
        match = _first_match((text or "").lower(), self.priority_keywords)
        return match[0] if match else self.default_priority

    def category_default_priority(self, category: Category | str) -> Priority:
        return CATEGORY_DEFAULT_PRIORITY.get(Category(category), self.default_priority)

    def resolve_priority(
        self,
        text: str | None,
        category: Category | str,
        policy: PriorityPolicy = PriorityPolicy.KEYWORDS,
    ) -> Priority:
        """Pick a priority under the given policy."""
        policy = PriorityPolicy(policy)
        if policy == PriorityPolicy.CATEGORY_DEFAULT:
            return self.category_default_priority(category)

        from_text = self.prioritize(text)
        if policy == PriorityPolicy.HIGHEST:
            from_category = self.category_default_priority(category)
            return max(from_text, from_category, key=lambda p: p.rank)
        return from_text

    def classify(
        self,
        text: str | None,
        category: Category | str | None = None,
        policy: PriorityPolicy = PriorityPolicy.KEYWORDS,
    ) -> Classification:
        """Categorize and prioritize ``text``.

        An explicitly submitted category takes precedence over the
        keyword heuristic.
        """
        lowered = (text or "").lower()
        matched: list[str] = []

        if category is not None:
            resolved = Category(category)
        else:
            match = _first_match(lowered, self.category_keywords)
            resolved = match[0] if match else self.default_category
            if match:
                matched.extend(match[1])

        priority_match = _first_match(lowered, self.priority_keywords)
        if priority_match:
            matched.extend(priority_match[1])

        return Classification(
            category=resolved,
            priority=self.resolve_priority(text, resolved, policy),
            matched_keywords=matched,
        )


# Singleton instance
_classifier: Classifier | None = None


def get_classifier() -> Classifier:
    """Get the keyword classifier singleton."""
    global _classifier
    if _classifier is None:
        _classifier = Classifier()
    return _classifier
