"""Field names and the closed article vocabulary of the DDT document family."""

from typing import TypedDict

DOCUMENT_NUMBER = "document_number"
QUANTITY = "quantity"
DESCRIPTION = "description"

FIELD_NAMES: tuple[str, ...] = (DOCUMENT_NUMBER, QUANTITY, DESCRIPTION)

# The four article descriptions a recognized document can map onto.
DESCRIPTION_OPTIONS: tuple[str, ...] = (
    "NS .CERNIERE A SCORCIARE",
    "CATENA CONTINUA METALLO MONT,BLOCCHETTO VARIE MIS",
    "CERNIERE A MONTARE CURSORE",
    "CERNIERE A MONTARE TIRETTO",
)


class ExtractedFields(TypedDict, total=False):
    """Fields recognized on one document.

    A missing key means the field was not recognized. Keys are never
    present with an empty value. After formatting the same shape carries
    the business markers (``N'`` quantity prefix, ``DDT`` suffix).
    """

    document_number: str
    quantity: str
    description: str


def clean_fields(raw: dict[str, object]) -> ExtractedFields:
    """Keep only known, non-empty string fields from an untrusted mapping.

    Used where records come back from a client (selected-record export)
    and may carry extra keys or blank placeholders.
    """
    cleaned: ExtractedFields = {}
    for name in FIELD_NAMES:
        value = raw.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            cleaned[name] = text  # type: ignore[literal-required]
    return cleaned
