"""Report intake: validation, classification and normalization.

Turns untrusted submissions from the voice, map and manual channels
into canonical ``Case`` records.

Main components:
- validate: Required fields, coordinates, category and length checks
- sanitize: Free-text cleanup applied before storage
- IdentifierGenerator: Case numbers, report IDs, tracking and secret codes
- Classifier: Keyword category and priority heuristics
- TextExtractor: Title and summary derivation
- RateLimiter: Per-client fixed-window gate
- ReportNormalizer: Composes the above into one Case
- ReportIntakeService: Normalizes and persists, fail-open on storage

Usage:
    from wbintake.intake import ReportNormalizer, ReportSource, ManualSubmission

    normalizer = ReportNormalizer()
    case = normalizer.normalize(
        ManualSubmission(category="fraud", title="Invoices", description="...").to_raw(),
        ReportSource.MANUAL,
    )
"""

from .classification import Classifier, PriorityPolicy, get_classifier
from .exceptions import (
    FieldTooLongError,
    ImmutableFieldError,
    IntakeError,
    InvalidCategoryError,
    InvalidCoordinatesError,
    MissingFieldsError,
    PersistenceError,
    RateLimitExceededError,
    SubmissionValidationError,
    VapiError,
)
from .extraction import TextExtractor, extract_summary, extract_title
from .identifiers import IdentifierGenerator, extract_tracking_code
from .models import (
    Case,
    CaseStatus,
    Category,
    Classification,
    IdentifierKind,
    ManualSubmission,
    MapSubmission,
    Priority,
    RawSubmission,
    ReportSource,
    SubmissionResult,
    VapiCall,
    VoiceSubmission,
)
from .normalizer import ReportNormalizer
from .ratelimit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RedisRateLimitStore,
    build_rate_limiters,
    get_client_identity,
)
from .sanitization import sanitize
from .service import ReportIntakeService
from .validation import ValidationRules, validate

__all__ = [
    # Models
    "Case",
    "CaseStatus",
    "Category",
    "Classification",
    "IdentifierKind",
    "ManualSubmission",
    "MapSubmission",
    "Priority",
    "RawSubmission",
    "ReportSource",
    "SubmissionResult",
    "VapiCall",
    "VoiceSubmission",
    # Errors
    "FieldTooLongError",
    "ImmutableFieldError",
    "IntakeError",
    "InvalidCategoryError",
    "InvalidCoordinatesError",
    "MissingFieldsError",
    "PersistenceError",
    "RateLimitExceededError",
    "SubmissionValidationError",
    "VapiError",
    # Components
    "Classifier",
    "IdentifierGenerator",
    "InMemoryRateLimitStore",
    "PriorityPolicy",
    "RateLimiter",
    "RedisRateLimitStore",
    "ReportIntakeService",
    "ReportNormalizer",
    "TextExtractor",
    "ValidationRules",
    # Functions
    "build_rate_limiters",
    "extract_summary",
    "extract_title",
    "extract_tracking_code",
    "get_classifier",
    "get_client_identity",
    "sanitize",
    "validate",
]
