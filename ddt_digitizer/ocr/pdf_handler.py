"""Rasterization of scanned DDT PDFs for OCR."""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path

from ddt_digitizer.utils.logger import get_logger

logger = get_logger(__name__)

_PDF_MAGIC = b"%PDF"


def is_pdf(data: bytes) -> bool:
    """Whether raw upload bytes are a PDF, regardless of the declared type."""
    return data[: len(_PDF_MAGIC)] == _PDF_MAGIC


class PDFHandler:
    """Renders PDF pages to RGB numpy arrays.

    Args:
        dpi: Rendering resolution. 300 DPI keeps the small table digits
            legible for Tesseract.
        max_pages: Render at most this many leading pages; ``None`` renders
            all of them. Scanner batches sometimes append blank back sides.
    """

    def __init__(self, dpi: int = 300, max_pages: int | None = None) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Render a PDF given as a path or as raw bytes.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If poppler cannot render the document.
        """
        options = {"dpi": self.dpi, "last_page": self.max_pages}
        if isinstance(pdf_source, bytes):
            render, source = convert_from_bytes, pdf_source
        else:
            path = Path(pdf_source)
            if not path.exists():
                raise FileNotFoundError(f"PDF file not found: {path}")
            render, source = convert_from_path, str(path)

        try:
            pages = render(source, **options)
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(page.convert("RGB")) for page in pages]
        logger.info("Rendered %d PDF pages at %d DPI", len(images), self.dpi)
        return images
