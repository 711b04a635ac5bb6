"""Business rewriting of extracted fields before they are stored.

The quantity gets the ``N'`` unit-count prefix and the description gets
the ``DDT`` document-type suffix. Both rules only add markers that are
not already there, so formatting a formatted record is a no-op.
"""

import re

from ddt_digitizer.utils.logger import get_logger

from .fields import DESCRIPTION, QUANTITY, ExtractedFields

logger = get_logger(__name__)

QUANTITY_PREFIX = "N'"
DESCRIPTION_SUFFIX = "DDT"

# "A SCORCIARE" not already preceded by "D".
_SHORTEN_PATTERN = re.compile(r"\bA SCORCIARE")
_SHORTEN_REPLACEMENT = "DA SCORCIARE"


def format_quantity(quantity: str) -> str:
    value = quantity.strip()
    if value.startswith(QUANTITY_PREFIX):
        return value
    return f"{QUANTITY_PREFIX} {value}"


def format_description(description: str) -> str:
    value = _SHORTEN_PATTERN.sub(_SHORTEN_REPLACEMENT, description.strip())
    if not value.endswith(f" {DESCRIPTION_SUFFIX}"):
        value = f"{value} {DESCRIPTION_SUFFIX}"
    return value


def format_fields(fields: ExtractedFields) -> ExtractedFields:
    """Apply the quantity and description rules to a copy of ``fields``.

    Args:
        fields: Extracted (or already formatted) fields.

    Returns:
        A new mapping; keys other than quantity and description are
        copied unchanged and absent keys stay absent.
    """
    formatted: ExtractedFields = dict(fields)  # type: ignore[assignment]

    for name, rewrite in ((QUANTITY, format_quantity), (DESCRIPTION, format_description)):
        value = formatted.get(name)
        if value is None:
            continue
        if not value.strip():
            # Blank values mean "not recognized".
            del formatted[name]  # type: ignore[misc]
            continue
        formatted[name] = rewrite(value)  # type: ignore[literal-required]

    if formatted != fields:
        logger.debug("Formatted fields: %s -> %s", dict(fields), dict(formatted))
    return formatted
