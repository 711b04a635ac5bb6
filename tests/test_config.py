"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from ddt_digitizer.utils.config import (
    AppConfig,
    ExportConfig,
    ExtractionConfig,
    OCRConfig,
    load_config,
)


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "ita"
        assert cfg.psm == 3
        assert cfg.pdf_dpi == 300
        assert cfg.tesseract_cmd is None
        assert cfg.camera_retries > cfg.max_retries

    def test_override(self) -> None:
        cfg = OCRConfig(default_lang="eng", timeout_s=5)
        assert cfg.default_lang == "eng"
        assert cfg.timeout_s == 5.0


class TestExtractionConfig:
    """Tests for ExtractionConfig defaults."""

    def test_defaults(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.description_threshold == 0.15
        assert cfg.preferred_quantity_range == (100.0, 300.0)
        assert cfg.fallback_quantity_range == (50, 999)


class TestExportConfig:
    """Tests for ExportConfig validation."""

    def test_defaults(self) -> None:
        cfg = ExportConfig()
        assert cfg.start_row == 12
        assert (cfg.quantity_column, cfg.description_column, cfg.document_number_column) == (
            "A",
            "B",
            "G",
        )

    def test_columns_uppercased(self) -> None:
        assert ExportConfig(quantity_column="c").quantity_column == "C"

    def test_invalid_column(self) -> None:
        with pytest.raises(ValidationError):
            ExportConfig(description_column="B2")


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_data = {
            "ocr": {"default_lang": "eng", "psm": 6},
            "export": {"template_path": "custom.xlsx", "start_row": 14},
            "log_level": "DEBUG",
        }
        config_file.write_text(yaml.dump(config_data))

        cfg = load_config(config_file)
        assert cfg.ocr.default_lang == "eng"
        assert cfg.ocr.psm == 6
        assert cfg.export.template_path == "custom.xlsx"
        assert cfg.export.start_row == 14
        assert cfg.log_level == "DEBUG"
        assert cfg.pdf.soffice_cmd == "soffice"

    def test_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        cfg = load_config(tmp_path / "nonexistent.yaml")
        assert cfg == AppConfig()

    def test_empty_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert load_config(config_file) == AppConfig()

    def test_project_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert cfg.ocr.default_lang == "ita"
        assert cfg.export.start_row == 12
