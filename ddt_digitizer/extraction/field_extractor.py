"""Rule-based extraction of the three DDT fields from raw OCR text.

Each field is resolved by an ordered table of regex rules, most specific
first. A rule only wins when its capture passes the rule's validator, so
the cascade degrades gracefully from table-aligned layouts down to bare
digit runs. The tables are module-level data and can be exercised one
rule at a time.
"""

import re
from dataclasses import dataclass

from ddt_digitizer.utils.config import ExtractionConfig
from ddt_digitizer.utils.logger import get_logger

from .description_matcher import match_description
from .fields import DESCRIPTION, DOCUMENT_NUMBER, QUANTITY, ExtractedFields

logger = get_logger(__name__)

# Date-column header that OCR sometimes places where the number should be.
_DATE_HEADER = "Data"


@dataclass(frozen=True)
class PatternRule:
    """A named regex whose first capture group holds the candidate value."""

    name: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class QuantityRule:
    """A quantity regex and the plausibility range its captures must meet.

    Anchored rules sit next to unit markers and only need the value to be
    above the lower bound; generic rules match any decimal-looking number
    and use the narrower generic range.
    """

    name: str
    pattern: re.Pattern[str]
    anchored: bool


DOCUMENT_NUMBER_RULES: list[PatternRule] = [
    PatternRule(
        "row_with_date",
        re.compile(r"\|\s*(\d+/[A-Za-z]+)\s*\|\s*\d{2}/\d{2}/\d{4}"),
    ),
    PatternRule("row_before_digit", re.compile(r"\|\s*(\d+/[A-Za-z]+)\s*\|\s*\d")),
    PatternRule(
        "cell_after_number",
        re.compile(r"\|\s*\d+\s*\|\s*([^|\s]+/[^|\s]+)\s*\|"),
    ),
    PatternRule(
        "token_before_date",
        re.compile(r"(?<!\d)(\d+/[A-Za-z]+)\s+\d{2}/\d{2}/\d{4}"),
    ),
    PatternRule(
        "labelled",
        re.compile(r"Numero\s+Documento[:\s]*([^\s|]+)", re.IGNORECASE),
    ),
    PatternRule("three_digits_letter", re.compile(r"\b(\d{3}/[A-Za-z])\b")),
    PatternRule("three_digits_number", re.compile(r"\b(\d{3}/\d+)\b")),
    PatternRule("generic", re.compile(r"(?<!\d)(\d+/[A-Za-z0-9]+)")),
]

_QUOTE = r"[\"|']"
# Starts only at the head of a digit run so long runs are scanned once.
_NUMBER = r"(?<!\d)(\d+(?:[,.]\d*)?)"

QUANTITY_RULES: list[QuantityRule] = [
    QuantityRule(
        "varie_misure",
        re.compile(
            rf"VARIE\s+MISURE\s+PZ\s+\d+\s+MT\s*{_QUOTE}\s*{_NUMBER}\s*{_QUOTE}",
            re.IGNORECASE,
        ),
        anchored=True,
    ),
    QuantityRule(
        "mt_quoted",
        re.compile(rf"MT\s*{_QUOTE}\s*{_NUMBER}\s*{_QUOTE}", re.IGNORECASE),
        anchored=True,
    ),
    QuantityRule(
        "pz_mt",
        re.compile(rf"PZ\s+\d+\s+MT\s*{_QUOTE}\s*{_NUMBER}", re.IGNORECASE),
        anchored=True,
    ),
    QuantityRule(
        "trailing_cell",
        re.compile(rf"\|\s*{_NUMBER}\s*\|\s*$", re.MULTILINE),
        anchored=True,
    ),
    QuantityRule(
        "trailing_quote",
        re.compile(rf"{_NUMBER}\s*{_QUOTE}\s*$", re.MULTILINE),
        anchored=True,
    ),
    QuantityRule("decimal_two_three", re.compile(r"\b(\d{2,3}[,.]\d{2})\b"), False),
    QuantityRule("decimal_one_three", re.compile(r"\b(\d{1,3}[,.]\d{2})\b"), False),
    QuantityRule("decimal_wide", re.compile(r"\b(\d{2,4}[,.]\d{1,3})\b"), False),
    QuantityRule("bare_number", re.compile(r"\b(\d{2,4})\b"), False),
]


def _is_document_number(value: str) -> bool:
    return value != _DATE_HEADER and "/" in value


def extract_document_number(text: str) -> str | None:
    """Find the document number (``549/s`` style) in OCR text.

    Args:
        text: Raw OCR text of one document.

    Returns:
        The first capture accepted by the rule cascade, the first
        three-digit run when no slash token qualifies, or ``None``.
    """
    for rule in DOCUMENT_NUMBER_RULES:
        match = rule.pattern.search(text)
        if match is None:
            continue
        value = match.group(1).strip()
        if _is_document_number(value):
            logger.debug("Document number %r matched rule %s", value, rule.name)
            return value
        logger.debug("Rule %s rejected candidate %r", rule.name, value)

    for run in re.findall(r"\d+", text):
        if len(run) == 3:
            logger.debug("Document number %r taken from three-digit fallback", run)
            return run

    return None


def _parse_decimal(value: str) -> float | None:
    try:
        return float(value.replace(",", "."))
    except ValueError:
        return None


def _plausible(value: float, rule: QuantityRule, config: ExtractionConfig) -> bool:
    if rule.anchored:
        low, high = config.anchored_quantity_range
        return low < value <= high
    low, high = config.generic_quantity_range
    return low <= value <= high


def extract_quantity(text: str, config: ExtractionConfig | None = None) -> str | None:
    """Find the quantity (decimal-comma length or count) in OCR text.

    Each rule collects every plausible capture; a value inside the
    preferred range beats the others, otherwise the first plausible one
    is used. The first rule with any plausible capture decides.

    Args:
        text: Raw OCR text of one document.
        config: Tuning ranges. Defaults to ``ExtractionConfig()``.

    Returns:
        The quantity exactly as written in the text, a fallback digit run
        with ``.00`` appended, or ``None``.
    """
    config = config or ExtractionConfig()
    preferred_low, preferred_high = config.preferred_quantity_range

    for rule in QUANTITY_RULES:
        candidates: list[tuple[str, float]] = []
        for match in rule.pattern.finditer(text):
            raw = match.group(1).strip()
            value = _parse_decimal(raw)
            if value is not None and _plausible(value, rule, config):
                candidates.append((raw, value))

        if not candidates:
            continue

        for raw, value in candidates:
            if preferred_low <= value <= preferred_high:
                logger.debug("Quantity %r (preferred range) via rule %s", raw, rule.name)
                return raw

        raw = candidates[0][0]
        logger.debug("Quantity %r via rule %s", raw, rule.name)
        return raw

    fallback_low, fallback_high = config.fallback_quantity_range
    max_digits = len(str(fallback_high))
    for run in re.findall(r"\d+", text):
        if len(run.lstrip("0")) > max_digits:
            continue
        if fallback_low <= int(run) <= fallback_high:
            logger.debug("Quantity %r taken from digit-run fallback", run)
            return f"{run}.00"

    return None


def extract_fields(text: str, config: ExtractionConfig | None = None) -> ExtractedFields:
    """Extract every recognizable field from one document's OCR text.

    A miss on one field never affects the others; unrecognized fields are
    simply left out of the result.

    Args:
        text: Raw OCR text.
        config: Extraction tuning constants.

    Returns:
        Mapping with zero to three of ``document_number``, ``quantity``
        and ``description``.
    """
    config = config or ExtractionConfig()
    fields: ExtractedFields = {}

    document_number = extract_document_number(text)
    if document_number:
        fields[DOCUMENT_NUMBER] = document_number

    quantity = extract_quantity(text, config)
    if quantity:
        fields[QUANTITY] = quantity

    description = match_description(text, threshold=config.description_threshold)
    if description:
        fields[DESCRIPTION] = description

    logger.info(
        "Extracted %d/3 fields from %d characters: %s",
        len(fields),
        len(text),
        sorted(fields),
    )
    return fields
