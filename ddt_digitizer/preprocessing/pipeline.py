"""Cleanup of phone photos before OCR.

Camera shots of DDTs come with uneven lighting and sensor noise that
flatbed scans do not have. The pipeline turns them into a clean binary
page: grayscale, denoise, local contrast (CLAHE), then thresholding.
"""

import cv2
import numpy as np

from ddt_digitizer.utils.config import PreprocessingConfig
from ddt_digitizer.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB/RGBA image to grayscale; grayscale passes through."""
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def binarize(image: np.ndarray, method: str = "adaptive") -> np.ndarray:
    """Threshold a grayscale image with Otsu or adaptive Gaussian thresholding."""
    if method == "otsu":
        _, binary = cv2.threshold(image, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary
    return cv2.adaptiveThreshold(
        image, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 10
    )


class PreprocessingPipeline:
    """Configurable photo cleanup.

    Args:
        config: Which steps to run and their parameters.
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def should_process(self, source_kind: str, enhanced: bool) -> bool:
        """Photos are processed unless the client already enhanced them."""
        if not self.config.enabled or enhanced:
            return False
        return source_kind == "camera" or self.config.apply_to_uploads

    def process(self, image: np.ndarray) -> np.ndarray:
        """Run the enabled steps and return a single-channel uint8 image."""
        result = to_gray(image)
        if result.dtype != np.uint8:
            result = cv2.normalize(result, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)

        if self.config.denoise_enabled:
            result = cv2.fastNlMeansDenoising(result, None, h=self.config.denoise_strength)

        if self.config.contrast_enabled:
            tile = self.config.clahe_tile_size
            clahe = cv2.createCLAHE(
                clipLimit=self.config.clahe_clip_limit, tileGridSize=(tile, tile)
            )
            result = clahe.apply(result)

        result = binarize(result, self.config.binarize_method)
        logger.debug("Preprocessed photo %dx%d", result.shape[1], result.shape[0])
        return result
