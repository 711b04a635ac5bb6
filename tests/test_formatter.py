"""Tests for the business formatting of extracted fields."""

from ddt_digitizer.extraction.fields import DESCRIPTION_OPTIONS
from ddt_digitizer.extraction.formatter import (
    format_description,
    format_fields,
    format_quantity,
)


class TestFormatQuantity:
    """Tests for the N' quantity prefix."""

    def test_adds_prefix(self) -> None:
        assert format_quantity("105,00") == "N' 105,00"

    def test_existing_prefix_kept(self) -> None:
        assert format_quantity("N' 105,00") == "N' 105,00"

    def test_strips_whitespace(self) -> None:
        assert format_quantity("  42 ") == "N' 42"


class TestFormatDescription:
    """Tests for the DDT suffix and the SCORCIARE rewrite."""

    def test_adds_suffix(self) -> None:
        assert format_description(DESCRIPTION_OPTIONS[2]) == "CERNIERE A MONTARE CURSORE DDT"

    def test_scorciare_rewrite(self) -> None:
        assert format_description(DESCRIPTION_OPTIONS[0]) == "NS .CERNIERE DA SCORCIARE DDT"

    def test_rewrite_not_applied_twice(self) -> None:
        once = format_description(DESCRIPTION_OPTIONS[0])
        assert format_description(once) == once
        assert "DDA" not in once

    def test_suffix_only_as_separate_word(self) -> None:
        assert format_description("XDDT") == "XDDT DDT"


class TestFormatFields:
    """Tests for format_fields."""

    def test_quantity_only(self) -> None:
        assert format_fields({"quantity": "105,00"}) == {"quantity": "N' 105,00"}

    def test_idempotent(self) -> None:
        once = format_fields({"quantity": "105,00"})
        assert format_fields(once) == once

    def test_every_option_idempotent(self) -> None:
        for option in DESCRIPTION_OPTIONS:
            once = format_fields({"description": option, "quantity": "7"})
            assert format_fields(once) == once

    def test_document_number_unchanged(self) -> None:
        assert format_fields({"document_number": "549/s"}) == {"document_number": "549/s"}

    def test_absent_fields_stay_absent(self) -> None:
        assert format_fields({}) == {}

    def test_blank_values_removed(self) -> None:
        assert format_fields({"quantity": "  ", "document_number": "1/a"}) == {
            "document_number": "1/a"
        }

    def test_input_not_mutated(self) -> None:
        fields = {"quantity": "10"}
        format_fields(fields)
        assert fields == {"quantity": "10"}
