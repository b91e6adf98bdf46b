"""
Tests for the preprocessor module (page count, rasterization, cropping).

poppler is never run: pdf2image is patched.
"""

from unittest.mock import patch

import cv2
import numpy as np
import pytest
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
)

from precedent_txt import config
from precedent_txt.preprocessor import (
    count_pages,
    crop_box,
    crop_page,
    expected_page_image,
    pages_dir,
    rasterize_pdf,
)
from precedent_txt.utils import MissingArtifactError, ParseError, ToolInvocationError

PDFINFO = {
    "Title": "判決",
    "Producer": "Acrobat Distiller",
    "Pages": 12,
    "Encrypted": "no",
}


def _fake_convert(names):
    """Side effect that writes the images pdftoppm would write and returns their paths."""

    def convert(pdf_path, output_folder=None, **kwargs):
        paths = []
        for name in names:
            path = f"{output_folder}/{name}"
            with open(path, "wb") as f:
                f.write(b"jpeg")
            paths.append(path)
        return paths

    return convert


class TestCountPages:
    @patch("precedent_txt.preprocessor.pdfinfo_from_path")
    def test_reads_pages_field(self, mock_info, tmp_path):
        mock_info.return_value = PDFINFO
        pdf = tmp_path / "case.pdf"

        assert count_pages(pdf, timeout=9) == 12
        assert mock_info.call_args[0][0] == str(pdf)
        assert mock_info.call_args.kwargs["timeout"] == 9

    @patch("precedent_txt.preprocessor.pdfinfo_from_path")
    def test_default_timeout(self, mock_info, tmp_path):
        mock_info.return_value = PDFINFO

        count_pages(tmp_path / "case.pdf")
        assert mock_info.call_args.kwargs["timeout"] == config.TOOL_TIMEOUT_SECONDS

    @patch("precedent_txt.preprocessor.pdfinfo_from_path")
    def test_broken_pdf_raises_parse_error(self, mock_info, tmp_path):
        mock_info.side_effect = PDFPageCountError("Unable to get page count.\nSyntax Error")
        with pytest.raises(ParseError):
            count_pages(tmp_path / "case.pdf")

    @patch("precedent_txt.preprocessor.pdfinfo_from_path")
    def test_missing_poppler_raises_parse_error(self, mock_info, tmp_path):
        mock_info.side_effect = PDFInfoNotInstalledError("Unable to get page count. Is poppler installed and in PATH?")
        with pytest.raises(ParseError):
            count_pages(tmp_path / "case.pdf")

    @patch("precedent_txt.preprocessor.pdfinfo_from_path")
    def test_missing_pages_field(self, mock_info, tmp_path):
        mock_info.return_value = {"Title": "x"}
        with pytest.raises(ParseError):
            count_pages(tmp_path / "case.pdf")


class TestRasterizePdf:
    @patch("precedent_txt.preprocessor.convert_from_path")
    def test_maps_pages_to_images(self, mock_convert, tmp_path):
        names = [f"case0001-{n:02d}.jpg" for n in range(1, 13)]
        mock_convert.side_effect = _fake_convert(names)
        base = tmp_path / "case"

        images = rasterize_pdf(tmp_path / "case.pdf", base)

        out_dir = tmp_path / "case_pages"
        assert sorted(images) == list(range(1, 13))
        assert images[1] == out_dir / "case0001-01.jpg"
        assert images[12] == out_dir / "case0001-12.jpg"

        kwargs = mock_convert.call_args.kwargs
        assert kwargs["output_folder"] == str(out_dir)
        assert kwargs["fmt"] == "jpeg"
        assert kwargs["paths_only"] is True
        assert kwargs["dpi"] == config.TARGET_DPI
        assert kwargs["timeout"] == config.TOOL_TIMEOUT_SECONDS

    @patch("precedent_txt.preprocessor.convert_from_path")
    def test_stale_images_removed(self, mock_convert, tmp_path):
        base = tmp_path / "case"
        out_dir = pages_dir(base)
        out_dir.mkdir()
        (out_dir / "case0001-3.jpg").write_bytes(b"old")
        mock_convert.side_effect = _fake_convert(["case0001-1.jpg", "case0001-2.jpg"])

        images = rasterize_pdf(tmp_path / "case.pdf", base)

        assert sorted(images) == [1, 2]
        assert not (out_dir / "case0001-3.jpg").exists()

    @patch("precedent_txt.preprocessor.convert_from_path")
    def test_timeout_raises_tool_error(self, mock_convert, tmp_path):
        mock_convert.side_effect = PDFPopplerTimeoutError("Run poppler timeout.")
        with pytest.raises(ToolInvocationError):
            rasterize_pdf(tmp_path / "case.pdf", tmp_path / "case", timeout=1)

    def test_expected_page_image(self, tmp_path):
        assert expected_page_image(tmp_path / "case", 3) == tmp_path / "case_pages" / "case-3.jpg"


class TestCropBox:
    def test_full_geometry(self):
        assert crop_box(2000, 3000) == (150, 150, 1150, 1625)

    def test_clamped_to_image(self):
        assert crop_box(800, 1000) == (150, 150, 800, 1000)

    def test_offset_outside_image(self):
        with pytest.raises(ToolInvocationError):
            crop_box(100, 100)


class TestCropPage:
    def test_crops_in_place(self, tmp_path):
        path = tmp_path / "case-1.jpg"
        img = np.ones((2000, 1400, 3), dtype=np.uint8) * 255
        img[300:320, 200:900] = 0
        assert cv2.imwrite(str(path), img)

        assert crop_page(path) == path
        cropped = cv2.imread(str(path))
        assert cropped.shape == (1475, 1000, 3)

    def test_small_image_is_clamped(self, tmp_path):
        path = tmp_path / "case-1.jpg"
        img = np.ones((600, 500, 3), dtype=np.uint8) * 255
        assert cv2.imwrite(str(path), img)

        crop_page(path)
        assert cv2.imread(str(path)).shape == (450, 350, 3)

    def test_missing_image(self, tmp_path):
        with pytest.raises(MissingArtifactError):
            crop_page(tmp_path / "case-9.jpg")

    def test_undecodable_image(self, tmp_path):
        path = tmp_path / "case-1.jpg"
        path.write_bytes(b"not an image")
        with pytest.raises(MissingArtifactError):
            crop_page(path)
