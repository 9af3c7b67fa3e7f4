"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Gamma correction
- 8-bit quantization (clamp, then truncate)
- Plain-text PPM output
- PNG export through Pillow
- RMSE computation

Note: show_preview runs against the non-interactive Agg backend so no
window is opened.
"""

import io

import numpy as np
import pytest
from PIL import Image as PILImage


class TestGamma:
    """Test gamma correction."""

    def test_gamma_two_is_square_root(self):
        from weekend_tracer.preview.display import apply_gamma

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        result = apply_gamma(image, 2.0)

        assert np.allclose(result, 0.5)
        assert result.dtype == np.float32

    def test_gamma_one_is_identity(self):
        from weekend_tracer.preview.display import apply_gamma

        image = np.array([[[1.5, -0.2, 0.3]]], dtype=np.float32)
        result = apply_gamma(image, 1.0)

        assert result is image

    def test_other_gamma(self):
        from weekend_tracer.preview.display import apply_gamma

        image = np.full((1, 1, 3), 0.125, dtype=np.float32)
        assert np.allclose(apply_gamma(image, 3.0), 0.5)

    def test_negative_values_clamped(self):
        from weekend_tracer.preview.display import apply_gamma

        image = np.array([[[-1.0, 0.0, 4.0]]], dtype=np.float32)
        result = apply_gamma(image, 2.0)

        assert not np.any(np.isnan(result))
        assert np.allclose(result, [[[0.0, 0.0, 1.0]]])

    @pytest.mark.parametrize("gamma", [0.0, -2.0])
    def test_invalid_gamma(self, gamma):
        from weekend_tracer.preview.display import apply_gamma

        with pytest.raises(ValueError, match="gamma"):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), gamma)

    def test_process_for_display_does_not_mutate(self):
        from weekend_tracer.preview.display import process_image_for_display

        image = np.full((2, 2, 3), 0.25, dtype=np.float32)
        result = process_image_for_display(image)

        assert np.allclose(result, 0.5)
        assert np.allclose(image, 0.25)


class TestQuantization:
    """Test float -> uint8 conversion."""

    def test_truncation(self):
        from weekend_tracer.preview.export import image_to_uint8

        image = np.array([[[0.0, 0.5, 1.0], [0.25, 0.999, 0.004]]], dtype=np.float32)
        result = image_to_uint8(image)

        assert result.dtype == np.uint8
        assert result.tolist() == [[[0, 127, 255], [63, 254, 1]]]

    def test_clamping_and_nan(self):
        from weekend_tracer.preview.export import image_to_uint8

        image = np.array([[[2.0, -1.0, np.nan]]], dtype=np.float32)
        assert image_to_uint8(image).tolist() == [[[255, 0, 0]]]

    def test_gamma_applied_before_quantization(self):
        from weekend_tracer.preview.export import image_to_uint8

        image = np.full((1, 1, 3), 0.25, dtype=np.float32)
        assert image_to_uint8(image, gamma=2.0).tolist() == [[[127, 127, 127]]]

    def test_bad_shape(self):
        from weekend_tracer.preview.export import image_to_uint8

        with pytest.raises(ValueError, match="shape"):
            image_to_uint8(np.zeros((4, 4), dtype=np.float32))


class TestPPM:
    """Test plain-text PPM output."""

    def test_write_ppm_format(self):
        from weekend_tracer.preview.export import write_ppm

        image = np.array(
            [
                [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
                [[0.0, 0.0, 1.0], [0.5, 0.5, 0.5]],
            ],
            dtype=np.float32,
        )
        stream = io.StringIO()
        write_ppm(stream, image)

        assert stream.getvalue() == (
            "P3\n2 2\n255\n255 0 0 0 255 0 0 0 255 127 127 127 "
        )

    def test_header_is_width_then_height(self):
        from weekend_tracer.preview.export import write_ppm

        stream = io.StringIO()
        write_ppm(stream, np.zeros((3, 5, 3), dtype=np.float32))

        lines = stream.getvalue().split("\n")
        assert lines[:3] == ["P3", "5 3", "255"]
        assert lines[3].split() == ["0"] * 45

    def test_save_ppm(self, tmp_path):
        from weekend_tracer.preview.export import save_ppm

        path = tmp_path / "image.ppm"
        save_ppm(path, np.full((1, 2, 3), 0.25, dtype=np.float32), gamma=2.0)

        assert path.read_text() == "P3\n2 1\n255\n127 127 127 127 127 127 "

    def test_ppm_readable_by_pillow(self, tmp_path):
        from weekend_tracer.preview.export import save_ppm

        image = np.zeros((2, 3, 3), dtype=np.float32)
        image[0, 2] = [1.0, 0.0, 0.0]
        path = tmp_path / "image.ppm"
        save_ppm(path, image)

        with PILImage.open(path) as loaded:
            assert loaded.size == (3, 2)
            assert loaded.getpixel((2, 0)) == (255, 0, 0)


class TestPNG:
    """Test Pillow export."""

    def test_save_png(self, tmp_path):
        from weekend_tracer.preview.export import save_png

        image = np.zeros((4, 6, 3), dtype=np.float32)
        image[0, 0] = [1.0, 0.5, 0.0]
        path = tmp_path / "image.png"
        save_png(path, image)

        with PILImage.open(path) as loaded:
            assert loaded.size == (6, 4)
            assert loaded.mode == "RGB"
            assert loaded.getpixel((0, 0)) == (255, 127, 0)

    @pytest.mark.parametrize("suffix,expected", [(".ppm", "PPM"), (".png", "PNG")])
    def test_save_image_dispatches_on_suffix(self, tmp_path, suffix, expected):
        from weekend_tracer.preview.export import save_image

        path = tmp_path / f"image{suffix}"
        save_image(path, np.zeros((2, 2, 3), dtype=np.float32))

        with PILImage.open(path) as loaded:
            assert loaded.format == expected


class TestRMSE:
    """Test image comparison."""

    def test_identical_images(self):
        from weekend_tracer.preview.export import compute_rmse

        image = np.random.default_rng(0).random((4, 4, 3)).astype(np.float32)
        assert compute_rmse(image, image) == 0.0

    def test_constant_offset(self):
        from weekend_tracer.preview.export import compute_rmse

        a = np.zeros((4, 4, 3), dtype=np.float32)
        b = np.full((4, 4, 3), 0.5, dtype=np.float32)
        assert compute_rmse(a, b) == pytest.approx(0.5)

    def test_shape_mismatch(self):
        from weekend_tracer.preview.export import compute_rmse

        with pytest.raises(ValueError, match="must match"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))


class TestShowPreview:
    """show_preview against a headless backend."""

    def test_show_preview(self, monkeypatch):
        matplotlib = pytest.importorskip("matplotlib")
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt

        from weekend_tracer.preview.display import show_preview

        shown = []
        monkeypatch.setattr(plt, "show", lambda block=True: shown.append(block))

        show_preview(np.full((4, 8, 3), 0.25, dtype=np.float32), block=False)

        assert shown == [False]
        assert plt.gca().get_title() == "Render Preview - 8x4"
        plt.close("all")
