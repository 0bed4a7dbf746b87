"""Free-text sanitization for report fields.

Strips angle brackets and surrounding whitespace. This keeps stored
text free of markup tags but is not a general HTML sanitizer; output
must still be escaped when rendered.
"""

import re
from typing import Any

from ..logging import get_context_logger

logger = get_context_logger(__name__)

_ANGLE_BRACKETS = re.compile(r"[<>]")

# Patterns worth a log line when seen in a submission
SUSPICIOUS_PATTERNS = [
    r"<script",  # XSS
    r"javascript:",  # XSS
    r"on\w+\s*=",  # Event handlers
    r"\$\{.*\}",  # Template injection
    r"{{.*}}",  # Template injection
]

REDACTED_FIELDS = {"contact_info", "contactInfo"}
TRANSCRIPT_FIELDS = {"transcript", "vapi_transcript"}


def sanitize(value: str | None) -> str:
    """Remove ``<``, ``>`` and null bytes, then trim whitespace.

    Idempotent: ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    if not value:
        return ""

    value = value.replace("\x00", "")
    value = _ANGLE_BRACKETS.sub("", value)
    return value.strip()


def sanitize_optional(value: str | None) -> str | None:
    """Sanitize a value, mapping empty results to None."""
    if value is None:
        return None
    return sanitize(value) or None


def detect_markup(value: str | None) -> bool:
    """Check if input contains markup or script injection patterns.

    Only logs; the submission is still accepted and sanitized.
    """
    if not value:
        return False

    for pattern in SUSPICIOUS_PATTERNS:
        if re.search(pattern, value, re.IGNORECASE):
            logger.warning(
                "Possible injection attempt in submission",
                extra={"pattern": pattern, "value_preview": value[:100]},
            )
            return True

    return False


def redact_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """Copy of a payload that is safe to write to logs."""
    result = {}
    for key, value in data.items():
        if key in REDACTED_FIELDS:
            result[key] = "[REDACTED]" if value else None
        elif key in TRANSCRIPT_FIELDS:
            result[key] = "[TRANSCRIPT_PRESENT]" if value else None
        elif isinstance(value, dict):
            result[key] = redact_for_log(value)
        else:
            result[key] = value
    return result
