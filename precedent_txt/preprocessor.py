"""
preprocessor.py

Page preparation for the OCR path: page counting, rasterization
and cropping.

Pages are rasterized once per document with pdf2image (poppler) into a
per-case folder and then cropped one by one with OpenCV. The crop
removes the margins that carry page numbers and line numbers in court
decision PDFs.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import cv2
import numpy as np
from pdf2image import convert_from_path, pdfinfo_from_path
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from . import config
from .utils import MissingArtifactError, ParseError, ToolInvocationError, missing_file_message

logger = logging.getLogger(__name__)

# pdftoppm names pages "<prefix>-<n>.jpg", zero-padding n to the width of the last page
IMAGE_PAGE_RE = re.compile(r"-(\d+)\.jpg$")


def count_pages(pdf_path: Union[str, Path], timeout: Optional[float] = None) -> int:
    """
    Return the page count reported by pdfinfo for the cached PDF.

    Raises:
        ParseError: If pdfinfo cannot be run or reports no page count.
    """
    if timeout is None:
        timeout = config.TOOL_TIMEOUT_SECONDS

    try:
        info = pdfinfo_from_path(
            str(pdf_path), poppler_path=config.POPPLER_PATH, timeout=timeout
        )
    except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as e:
        raise ParseError(f"page count unavailable for {pdf_path}: {e}") from e

    try:
        return int(info["Pages"])
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"{pdf_path}: page count not found in pdfinfo output") from e


def pages_dir(base: Union[str, Path]) -> Path:
    """Folder holding the raster images of one case."""
    base = Path(base)
    return base.with_name(f"{base.name}{config.PAGES_DIR_SUFFIX}")


def expected_page_image(base: Union[str, Path], page: int) -> Path:
    """Nominal image path for a page pdftoppm did not produce."""
    base = Path(base)
    return pages_dir(base) / f"{base.name}-{page}{config.IMAGE_SUFFIX}"


def rasterize_pdf(
    pdf_path: Union[str, Path],
    base: Union[str, Path],
    timeout: Optional[float] = None,
) -> Dict[int, Path]:
    """
    Convert every page to a JPEG in ``pages_dir(base)``.

    Images left over from an earlier run are removed first, so a page
    that is not produced this time is reported as missing.

    Returns:
        Mapping of 1-based page number to image path.

    Raises:
        ToolInvocationError: If poppler is missing, fails or times out.
    """
    if timeout is None:
        timeout = config.TOOL_TIMEOUT_SECONDS

    base = Path(base)
    out_dir = pages_dir(base)
    out_dir.mkdir(parents=True, exist_ok=True)
    for stale in out_dir.glob(f"*{config.IMAGE_SUFFIX}"):
        stale.unlink()

    try:
        paths = convert_from_path(
            str(pdf_path),
            dpi=config.TARGET_DPI,
            output_folder=str(out_dir),
            fmt="jpeg",
            output_file=base.name,
            paths_only=True,
            poppler_path=config.POPPLER_PATH,
            timeout=timeout,
        )
    except (
        PDFInfoNotInstalledError,
        PDFPageCountError,
        PDFPopplerTimeoutError,
        PDFSyntaxError,
        OSError,
    ) as e:
        raise ToolInvocationError(f"rasterization failed for {Path(pdf_path).name}: {e}") from e

    images: Dict[int, Path] = {}
    for path in paths:
        match = IMAGE_PAGE_RE.search(Path(path).name)
        if match is None:
            logger.warning("Unexpected raster image name: %s", path)
            continue
        images[int(match.group(1))] = Path(path)

    logger.debug("Rasterized %d page(s) of %s", len(images), Path(pdf_path).name)
    return images


def crop_box(image_width: int, image_height: int) -> Tuple[int, int, int, int]:
    """
    Clamp the configured crop rectangle to the image bounds.

    Returns:
        (x0, y0, x1, y1) in pixel coordinates.

    Raises:
        ToolInvocationError: If the offset lies outside the image.
    """
    x0, y0 = config.CROP_OFFSET_X, config.CROP_OFFSET_Y
    if x0 >= image_width or y0 >= image_height:
        raise ToolInvocationError(
            f"crop offset +{x0}+{y0} outside image {image_width}x{image_height}"
        )
    x1 = min(image_width, x0 + config.CROP_WIDTH)
    y1 = min(image_height, y0 + config.CROP_HEIGHT)
    return x0, y0, x1, y1


def crop_image(image: np.ndarray) -> np.ndarray:
    h, w = image.shape[:2]
    x0, y0, x1, y1 = crop_box(w, h)
    return image[y0:y1, x0:x1]


def crop_page(image_path: Union[str, Path]) -> Path:
    """
    Crop a page image in place.

    Raises:
        MissingArtifactError: If the image does not exist or cannot be decoded.
        ToolInvocationError: If the crop is impossible or the write fails.
    """
    path = Path(image_path)
    if not path.exists():
        raise MissingArtifactError(missing_file_message(path))

    image = cv2.imread(str(path))
    if image is None:
        raise MissingArtifactError(f"'{path}': cannot decode image")

    cropped = crop_image(image)
    if not cv2.imwrite(str(path), cropped):
        raise ToolInvocationError(f"'{path}': failed to write cropped image")

    logger.debug("Cropped %s to %dx%d", path.name, cropped.shape[1], cropped.shape[0])
    return path
