"""Configuration management for the DDT digitizer.

Loads a YAML file into pydantic models. Every business constant of the
document family (target cells, canonical vocabulary thresholds, quantity
ranges) lives here with its production default so a different template
revision only needs a config change.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class OCRConfig(BaseModel):
    """Tesseract settings and retry policy for recognition."""

    tesseract_cmd: str | None = None
    default_lang: str = "ita"
    psm: int = 3
    pdf_dpi: int = 300
    pdf_max_pages: int | None = None
    timeout_s: float = 30.0
    max_retries: int = 2
    camera_retries: int = 3
    min_text_length: int = 10


class PreprocessingConfig(BaseModel):
    """Image cleanup applied to phone photos before OCR."""

    enabled: bool = True
    apply_to_uploads: bool = False
    denoise_enabled: bool = True
    denoise_strength: int = 10
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    binarize_method: str = "adaptive"


class ExtractionConfig(BaseModel):
    """Empirical tuning constants of the field extractor."""

    description_threshold: float = 0.15
    anchored_quantity_range: tuple[float, float] = (1.0, 999.0)
    generic_quantity_range: tuple[float, float] = (10.0, 999.0)
    preferred_quantity_range: tuple[float, float] = (100.0, 300.0)
    fallback_quantity_range: tuple[int, int] = (50, 999)


class ExportConfig(BaseModel):
    """Template location and the data block it receives."""

    template_path: str = "templates/output.xlsx"
    export_dir: str = "exports"
    sheet_name: str | None = None
    start_row: int = 12
    quantity_column: str = "A"
    description_column: str = "B"
    document_number_column: str = "G"

    @field_validator("quantity_column", "description_column", "document_number_column")
    @classmethod
    def _upper_column(cls, value: str) -> str:
        if not value.isalpha():
            raise ValueError(f"Column must be a letter reference, got {value!r}")
        return value.upper()


class PdfConfig(BaseModel):
    """LibreOffice headless conversion settings."""

    soffice_cmd: str = "soffice"
    timeout_s: float = 120.0


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    pdf: PdfConfig = Field(default_factory=PdfConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration, or defaults when the
        file does not exist.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
