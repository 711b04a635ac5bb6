"""Tests for the photo preprocessing pipeline."""

import numpy as np

from ddt_digitizer.preprocessing.pipeline import PreprocessingPipeline, binarize, to_gray
from ddt_digitizer.utils.config import PreprocessingConfig


class TestHelpers:
    """Tests for to_gray and binarize."""

    def test_rgb_to_gray(self, sample_color_image: np.ndarray) -> None:
        gray = to_gray(sample_color_image)
        assert gray.ndim == 2
        assert gray.shape == sample_color_image.shape[:2]

    def test_rgba_to_gray(self) -> None:
        rgba = np.zeros((20, 30, 4), dtype=np.uint8)
        assert to_gray(rgba).shape == (20, 30)

    def test_gray_passthrough(self) -> None:
        gray = np.zeros((20, 30), dtype=np.uint8)
        assert to_gray(gray) is gray

    def test_binarize_methods(self, sample_color_image: np.ndarray) -> None:
        gray = to_gray(sample_color_image)
        for method in ("otsu", "adaptive"):
            binary = binarize(gray, method)
            assert set(np.unique(binary)) <= {0, 255}


class TestPreprocessingPipeline:
    """Tests for PreprocessingPipeline."""

    def test_camera_processed_by_default(self) -> None:
        pipeline = PreprocessingPipeline()
        assert pipeline.should_process("camera", enhanced=False) is True
        assert pipeline.should_process("upload", enhanced=False) is False

    def test_enhanced_skipped(self) -> None:
        assert PreprocessingPipeline().should_process("camera", enhanced=True) is False

    def test_disabled(self) -> None:
        pipeline = PreprocessingPipeline(PreprocessingConfig(enabled=False))
        assert pipeline.should_process("camera", enhanced=False) is False

    def test_uploads_opt_in(self) -> None:
        pipeline = PreprocessingPipeline(PreprocessingConfig(apply_to_uploads=True))
        assert pipeline.should_process("upload", enhanced=False) is True

    def test_process_output(self, sample_color_image: np.ndarray) -> None:
        result = PreprocessingPipeline().process(sample_color_image)
        assert result.ndim == 2
        assert result.dtype == np.uint8
        assert result.shape == sample_color_image.shape[:2]

    def test_process_float_input(self) -> None:
        image = np.random.default_rng(0).random((40, 60))
        config = PreprocessingConfig(denoise_enabled=False, contrast_enabled=False)
        result = PreprocessingPipeline(config).process(image)
        assert result.dtype == np.uint8
