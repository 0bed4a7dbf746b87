"""Identifier generation for new cases.

Codes that grant access to a case (secret code, tracking code, report
and case IDs) come from a cryptographically secure source. The display
case number uses an ordinary PRNG. Neither is checked for uniqueness
against the store.
"""

import random
import re
import secrets
import string
from collections.abc import Callable
from datetime import datetime, timezone

from .models import IdentifierKind

ALPHABET = string.ascii_uppercase + string.digits

KEY_LENGTH = 10
SECRET_CODE_LENGTH = 12
CASE_NUMBER_PREFIX = "WB"

# Bounds for a tracking code read back from a call; must fit Case.tracking_code
MIN_TRACKING_CODE_LENGTH = 6
MAX_TRACKING_CODE_LENGTH = 32

# "... your tracking code is: AB12CD34EF" as read back by the voice assistant
TRACKING_CODE_PATTERN = re.compile(r"tracking code[:\s]+(?:is[:\s]+)?([A-Z0-9]+)", re.IGNORECASE)


class IdentifierGenerator:
    """Generates case numbers, report IDs, tracking codes and secret codes.

    Args:
        secure_random: Source for access codes; defaults to the OS CSPRNG
        display_random: Source for the human-readable case number
        clock: Returns the current time, used for the case number year
    """

    def __init__(
        self,
        secure_random: random.Random | None = None,
        display_random: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._secure = secure_random or secrets.SystemRandom()
        self._display = display_random or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _code(self, length: int) -> str:
        return "".join(self._secure.choice(ALPHABET) for _ in range(length))

    def case_id(self) -> str:
        return self._code(KEY_LENGTH)

    def report_id(self) -> str:
        return self._code(KEY_LENGTH)

    def tracking_code(self) -> str:
        return self._code(KEY_LENGTH)

    def secret_code(self) -> str:
        return self._code(SECRET_CODE_LENGTH)

    def case_number(self) -> str:
        """Human-readable ``WB-<year>-<NNNN>``; not globally unique."""
        year = self._clock().year
        return f"{CASE_NUMBER_PREFIX}-{year}-{self._display.randint(0, 9999):04d}"

    def generate(self, kind: IdentifierKind | str) -> str:
        """Generate an identifier of the given kind."""
        generators = {
            IdentifierKind.CASE_ID: self.case_id,
            IdentifierKind.REPORT_ID: self.report_id,
            IdentifierKind.TRACKING_CODE: self.tracking_code,
            IdentifierKind.SECRET_CODE: self.secret_code,
            IdentifierKind.CASE_NUMBER: self.case_number,
        }
        return generators[IdentifierKind(kind)]()


def extract_tracking_code(text: str | None) -> str | None:
    """Find a tracking code the voice assistant already read to the caller."""
    if not text:
        return None
    match = TRACKING_CODE_PATTERN.search(text)
    if not match:
        return None
    code = match.group(1).upper()
    # Short matches are words like "is" or "a", not codes
    if not MIN_TRACKING_CODE_LENGTH <= len(code) <= MAX_TRACKING_CODE_LENGTH:
        return None
    return code
