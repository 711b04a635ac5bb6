"""Maps noisy article text onto the closed description vocabulary.

Stage one scores every canonical option by word overlap with the OCR
text; stage two falls back to keyword-pair rules when no option scores
above the threshold. The result is always one of ``DESCRIPTION_OPTIONS``.
"""

import re

from ddt_digitizer.utils.logger import get_logger

from .fields import DESCRIPTION_OPTIONS

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.15

_MIN_WORD_LENGTH = 3

# (required keyword, any-of keywords, option index), checked in order.
KEYWORD_RULES: list[tuple[str, tuple[str, ...], int]] = [
    ("CATENA", ("METALLO", "SPIRALE"), 1),
    ("CATENA", ("CONTINUA",), 1),
    ("CERNIERE", ("SCORCIARE",), 0),
    ("CERNIERE", ("CURSORE",), 2),
    ("CERNIERE", ("TIRETTO",), 3),
]


def normalize_text(text: str) -> str:
    """Uppercase, replace non-letters with spaces and collapse whitespace."""
    letters_only = re.sub(r"[^A-Z\s]", " ", text.upper())
    return re.sub(r"\s+", " ", letters_only).strip()


def _significant_words(normalized: str) -> list[str]:
    return [w for w in normalized.split(" ") if len(w) >= _MIN_WORD_LENGTH]


def similarity(text_words: list[str], option: str) -> float:
    """Fraction of the option's significant words found in the text.

    A word counts as found when it contains, or is contained in, any
    significant text word.

    Args:
        text_words: Significant words of the normalized OCR text.
        option: Canonical option string (normalized internally).

    Returns:
        Score between 0.0 and 1.0.
    """
    option_words = _significant_words(normalize_text(option))
    if not option_words:
        return 0.0
    found = sum(
        1
        for option_word in option_words
        if any(option_word in word or word in option_word for word in text_words)
    )
    return found / len(option_words)


def _match_keywords(normalized: str) -> str | None:
    for required, any_of, index in KEYWORD_RULES:
        if required in normalized and any(k in normalized for k in any_of):
            logger.debug("Keyword rule %s+%s matched", required, "/".join(any_of))
            return DESCRIPTION_OPTIONS[index]
    return None


def match_description(text: str, threshold: float = DEFAULT_THRESHOLD) -> str | None:
    """Pick the canonical article description best supported by the text.

    Args:
        text: Raw OCR text.
        threshold: Minimum similarity score (exclusive) for stage one.

    Returns:
        One of ``DESCRIPTION_OPTIONS``, or ``None`` when neither stage
        finds support.
    """
    normalized = normalize_text(text)
    text_words = _significant_words(normalized)

    best_option: str | None = None
    best_score = 0.0
    for option in DESCRIPTION_OPTIONS:
        score = similarity(text_words, option)
        logger.debug("Description %r scored %.2f", option, score)
        if score > best_score:
            best_score = score
            best_option = option

    if best_option is not None and best_score > threshold:
        logger.debug("Description matched %r (%.2f)", best_option, best_score)
        return best_option

    return _match_keywords(normalized)
