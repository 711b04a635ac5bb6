"""Recognition of an uploaded DDT (photo, scan or PDF) into plain text.

This is the OCR collaborator of the extraction pipeline: it owns image
loading, photo cleanup, Tesseract calls and the retry policy, and hands
back only ``text`` and ``confidence``.
"""

import io
import time
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pytesseract
from PIL import Image, UnidentifiedImageError

from ddt_digitizer.preprocessing.pipeline import PreprocessingPipeline
from ddt_digitizer.utils.config import AppConfig
from ddt_digitizer.utils.logger import get_logger

from .pdf_handler import PDFHandler, is_pdf
from .tesseract_engine import OCRResult, TesseractEngine

logger = get_logger(__name__)

_PAGE_SEPARATOR = "\n\n--- Page Break ---\n\n"


class OCRError(RuntimeError):
    """Raised when a document could not be recognized."""


@dataclass
class RecognitionResult:
    """Text of a whole document and the mean confidence of its pages."""

    text: str
    confidence: float
    page_count: int = 1


class DocumentRecognizer:
    """Loads a document, cleans photos up, and OCRs every page.

    Args:
        config: Application configuration (OCR and preprocessing sections).
        retry_delay_s: Pause between attempts after a transient failure.
    """

    def __init__(self, config: AppConfig, retry_delay_s: float = 1.0) -> None:
        self.config = config
        self.retry_delay_s = retry_delay_s
        self.pdf_handler = PDFHandler(dpi=config.ocr.pdf_dpi, max_pages=config.ocr.pdf_max_pages)
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
            psm=config.ocr.psm,
            timeout_s=config.ocr.timeout_s,
        )

    def recognize(
        self,
        source: Path | bytes,
        filename: str = "document",
        source_kind: str = "upload",
        enhanced: bool = False,
    ) -> RecognitionResult:
        """Recognize a document from a path or raw bytes.

        Args:
            source: Image/PDF path or file bytes.
            filename: Display name for logs and errors.
            source_kind: ``"camera"`` for phone photos, ``"upload"`` otherwise.
            enhanced: Whether the client already cleaned up the photo.

        Returns:
            Combined text of all pages and their mean confidence.

        Raises:
            OCRError: If the file cannot be decoded, every attempt fails,
                or the recognized text is too short to be a DDT.
        """
        try:
            images = self._load_images(source)
        except (UnidentifiedImageError, FileNotFoundError, RuntimeError) as exc:
            raise OCRError(f"Cannot read {filename}: {exc}") from exc

        if self.preprocessing.should_process(source_kind, enhanced):
            images = [self.preprocessing.process(img) for img in images]

        max_retries = (
            self.config.ocr.camera_retries if source_kind == "camera" else self.config.ocr.max_retries
        )
        pages = [self._recognize_page(img, filename, max_retries) for img in images]

        text = _PAGE_SEPARATOR.join(p.text for p in pages)
        if len(text.strip()) < self.config.ocr.min_text_length:
            raise OCRError(
                f"Recognized text of {filename} is too short ({len(text.strip())} chars)"
            )

        confidence = sum(p.confidence for p in pages) / len(pages)
        logger.info(
            "Recognized %s: %d pages, %d chars, confidence %.2f",
            filename,
            len(pages),
            len(text),
            confidence,
        )
        return RecognitionResult(text=text, confidence=confidence, page_count=len(pages))

    def _recognize_page(self, image: np.ndarray, filename: str, max_retries: int) -> OCRResult:
        attempts = max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.engine.recognize(image)
            except (pytesseract.TesseractError, RuntimeError) as exc:
                logger.warning(
                    "OCR attempt %d/%d for %s failed: %s", attempt, attempts, filename, exc
                )
                if attempt == attempts:
                    raise OCRError(
                        f"OCR failed for {filename} after {attempts} attempts: {exc}"
                    ) from exc
                time.sleep(self.retry_delay_s)
        raise OCRError(f"OCR failed for {filename}")

    def _load_images(self, source: Path | bytes) -> list[np.ndarray]:
        if isinstance(source, bytes):
            if is_pdf(source):
                return self.pdf_handler.pdf_to_images(source)
            img = Image.open(io.BytesIO(source))
            return [np.array(img.convert("RGB"))]

        path = Path(source)
        if path.suffix.lower() == ".pdf":
            return self.pdf_handler.pdf_to_images(path)

        img = Image.open(path)
        return [np.array(img.convert("RGB"))]
