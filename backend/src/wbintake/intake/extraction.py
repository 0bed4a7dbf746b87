"""Title and summary extraction from free text and call transcripts."""

import re

SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Spoken openers that carry no content
FILLER_WORDS = frozenset(
    {
        "um", "umm", "uh", "uhh", "er", "erm", "ah", "oh",
        "well", "so", "hi", "hello", "hey", "okay", "ok",
        "like", "yeah", "yes",
    }
)

_LEADING_TOKEN = re.compile(r"^\s*([A-Za-z']+)[\s,;:\-]*")

ELLIPSIS = "..."
DEFAULT_TITLE = "Report"
VOICE_TITLE = "Voice Report"
VOICE_SUMMARY = "Voice report submitted"


def split_sentences(text: str | None) -> list[str]:
    """Split on ``.``, ``!`` and ``?``, dropping empty segments."""
    if not text:
        return []
    return [s.strip() for s in SENTENCE_SPLIT.split(text) if s.strip()]


def strip_filler(sentence: str) -> str:
    """Remove leading filler words and interjections."""
    while True:
        match = _LEADING_TOKEN.match(sentence)
        if not match or match.group(1).lower() not in FILLER_WORDS:
            break
        sentence = sentence[match.end():]
    return sentence.strip(" ,;:-")


def truncate(text: str, max_length: int) -> str:
    """Cut ``text`` to ``max_length`` characters including the ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def extract_title(
    text: str | None,
    max_length: int = 100,
    fallback: str = DEFAULT_TITLE,
) -> str:
    """Derive a short title from the first meaningful sentence.

    Args:
        text: Description, summary or transcript
        max_length: Maximum title length, ellipsis included
        fallback: Returned when nothing but filler remains

    Returns:
        Capitalized, possibly truncated title
    """
    for sentence in split_sentences(text):
        cleaned = strip_filler(sentence)
        if cleaned:
            title = cleaned[0].upper() + cleaned[1:]
            return truncate(title, max_length)
    return fallback


def extract_summary(
    text: str | None,
    max_sentences: int = 3,
    max_length: int = 200,
    fallback: str = VOICE_SUMMARY,
) -> str:
    """Join the first few sentences into a short summary."""
    sentences = [strip_filler(s) for s in split_sentences(text)]
    sentences = [s for s in sentences if s][:max_sentences]
    if not sentences:
        return fallback
    return truncate(". ".join(sentences) + ".", max_length)


class TextExtractor:
    """Title and summary extraction with per-channel defaults."""

    def __init__(
        self,
        title_max_length: int = 100,
        summary_max_sentences: int = 3,
        summary_max_length: int = 200,
    ):
        self.title_max_length = title_max_length
        self.summary_max_sentences = summary_max_sentences
        self.summary_max_length = summary_max_length

    def title(self, text: str | None, fallback: str = DEFAULT_TITLE) -> str:
        return extract_title(text, self.title_max_length, fallback)

    def summary(self, text: str | None, fallback: str = VOICE_SUMMARY) -> str:
        return extract_summary(
            text, self.summary_max_sentences, self.summary_max_length, fallback
        )
