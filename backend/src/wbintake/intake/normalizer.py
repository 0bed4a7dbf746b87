"""Normalization of raw submissions into canonical cases.

Every intake channel (voice, map, manual form) maps its payload into a
``RawSubmission`` and calls ``ReportNormalizer.normalize``. The result
is a fully formed ``Case``; nothing is written to storage here.
"""

from collections.abc import Callable
from datetime import datetime

from ..logging import get_context_logger
from .classification import Classifier, PriorityPolicy, get_classifier
from .extraction import DEFAULT_TITLE, VOICE_SUMMARY, VOICE_TITLE, TextExtractor
from .identifiers import IdentifierGenerator, extract_tracking_code
from .models import Case, CaseStatus, RawSubmission, ReportSource, VapiCall, utcnow
from .sanitization import detect_markup, sanitize, sanitize_optional
from .validation import ValidationRules, validate

logger = get_context_logger(__name__)

TEXT_FIELDS = ("title", "description", "summary", "transcript", "location", "contact_info")

# Transcripts shorter than this are hang-ups or silence
MIN_TRANSCRIPT_LENGTH = 20


def _classification_text(raw: RawSubmission) -> str:
    """Summary and transcript together, else title and description."""
    voice_text = " ".join(part for part in (raw.summary, raw.transcript) if part)
    if voice_text:
        return voice_text
    return " ".join(part for part in (raw.title, raw.description) if part)


class ReportNormalizer:
    """Builds canonical cases from untrusted submissions.

    Args:
        identifiers: Identifier source
        classifier: Category and priority heuristics
        extractor: Title and summary derivation
        priority_policy: How text and category priorities are combined
        clock: Returns the current time for timestamps
    """

    def __init__(
        self,
        identifiers: IdentifierGenerator | None = None,
        classifier: Classifier | None = None,
        extractor: TextExtractor | None = None,
        priority_policy: PriorityPolicy = PriorityPolicy.KEYWORDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.identifiers = identifiers if identifiers is not None else IdentifierGenerator()
        self.classifier = classifier if classifier is not None else get_classifier()
        self.extractor = extractor if extractor is not None else TextExtractor()
        self.priority_policy = PriorityPolicy(priority_policy)
        self._clock = clock

    def sanitize_submission(self, raw: RawSubmission) -> RawSubmission:
        """Copy of ``raw`` with every free-text field sanitized."""
        updates = {}
        for name in TEXT_FIELDS:
            value = getattr(raw, name)
            if value is not None:
                detect_markup(value)
                updates[name] = sanitize_optional(value)
        return raw.model_copy(update=updates)

    def normalize(
        self,
        raw: RawSubmission,
        source: ReportSource,
        rules: ValidationRules | None = None,
    ) -> Case:
        """Validate, sanitize, classify and assemble a case.

        Raises:
            SubmissionValidationError: The specific validation failure
        """
        source = ReportSource(source)
        validate(raw, source, rules)
        clean = self.sanitize_submission(raw)

        is_voice = source == ReportSource.VAPI
        now = self._clock()

        classification = self.classifier.classify(
            _classification_text(clean),
            category=clean.category,
            policy=self.priority_policy,
        )

        summary = clean.summary
        if is_voice and not summary:
            summary = self.extractor.summary(clean.transcript, fallback=VOICE_SUMMARY)

        title = clean.title or self.extractor.title(
            clean.summary or clean.transcript or clean.description,
            fallback=VOICE_TITLE if is_voice else DEFAULT_TITLE,
        )

        tracking_code = (extract_tracking_code(clean.summary) if is_voice else None) or (
            self.identifiers.tracking_code()
        )

        # Contact details are only kept when the submitter opts out of anonymity
        is_anonymous = not (clean.anonymous is False and clean.contact_info)

        fields = dict(
            case_id=self.identifiers.case_id(),
            report_id=self.identifiers.report_id(),
            case_number=self.identifiers.case_number(),
            secret_code=self.identifiers.secret_code(),
            tracking_code=tracking_code,
            title=title,
            description=clean.description or summary or "",
            summary=summary,
            category=classification.category,
            priority=classification.priority,
            status=CaseStatus.OPEN,
            report_source=source,
            is_anonymous=is_anonymous,
            contact_info=None if is_anonymous else clean.contact_info,
            created_at=now,
            updated_at=now,
        )

        if source == ReportSource.MAP:
            fields.update(
                location=clean.location,
                latitude=float(clean.coordinates.lat),
                longitude=float(clean.coordinates.lng),
                date_occurred=clean.date_occurred,
            )
        elif source == ReportSource.MANUAL:
            fields.update(location=clean.location, date_occurred=clean.date_occurred)
        else:
            fields.update(
                vapi_session_id=clean.session_id,
                vapi_transcript=clean.transcript,
                vapi_audio_url=clean.audio_url,
                vapi_call_data=clean.call_data,
            )

        case = Case(**fields)
        logger.debug(
            f"Normalized {source.value} submission into case {case.case_id}",
            extra={
                "case_id": case.case_id,
                "category": case.category,
                "priority": case.priority,
                "matched_keywords": classification.matched_keywords,
            },
        )
        return case

    def normalize_vapi_call(self, call: VapiCall) -> Case | None:
        """Normalize a finished vendor call, or None if it has no usable transcript."""
        if call.status and call.status != "ended":
            return None
        if len((call.transcript or "").strip()) < MIN_TRANSCRIPT_LENGTH:
            return None
        return self.normalize(call.to_submission().to_raw(), ReportSource.VAPI)
