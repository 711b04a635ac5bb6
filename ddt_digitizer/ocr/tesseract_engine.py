"""Tesseract OCR wrapper returning page text and a mean word confidence."""

from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from ddt_digitizer.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Recognized text of one page."""

    text: str
    confidence: float
    language: str
    word_count: int = 0


class TesseractEngine:
    """Wrapper around Tesseract for DDT pages.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: OCR language code; DDTs are Italian.
        psm: Tesseract page segmentation mode.
        timeout_s: Per-call timeout; Tesseract is killed when exceeded.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "ita",
        psm: int = 3,
        timeout_s: float = 30.0,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.psm = psm
        self.timeout_s = timeout_s

    def recognize(self, image: np.ndarray, lang: str | None = None) -> OCRResult:
        """Recognize text in an image.

        Args:
            image: Page image as a numpy array.
            lang: OCR language code. Defaults to the engine default.

        Returns:
            OCRResult with the full text and mean word confidence (0-1).

        Raises:
            pytesseract.TesseractError: If Tesseract fails.
            RuntimeError: If the call exceeds ``timeout_s``.
        """
        lang = lang or self.default_lang
        config = f"--psm {self.psm}"
        pil_image = Image.fromarray(image)

        text = pytesseract.image_to_string(
            pil_image, lang=lang, config=config, timeout=self.timeout_s
        )
        data = pytesseract.image_to_data(
            pil_image,
            lang=lang,
            config=config,
            timeout=self.timeout_s,
            output_type=pytesseract.Output.DICT,
        )

        confidences = [
            float(conf)
            for conf, word in zip(data["conf"], data["text"])
            if float(conf) > 0 and word.strip()
        ]
        avg_conf = sum(confidences) / len(confidences) / 100.0 if confidences else 0.0

        logger.info(
            "OCR recognized %d words (%d chars) with mean confidence %.2f",
            len(confidences),
            len(text),
            avg_conf,
        )
        return OCRResult(
            text=text,
            confidence=avg_conf,
            language=lang,
            word_count=len(confidences),
        )
