"""
engine.py

Recognition strategies that turn a cached PDF into raw text.

Two interchangeable engines share one interface:
1. TextLayerRecognizer - pdftotext over the whole document, followed by
   boilerplate filtering
2. TesseractRecognizer - per-page OCR over cropped raster images

Neither engine raises for per-page or per-file problems: tool errors
and missing intermediate files are collected as diagnostics on the
ExtractionOutcome and the remaining work continues.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union

import pytesseract
from PIL import Image

from . import config
from .postprocessor import filter_boilerplate, join_page_files, join_text
from .preprocessor import crop_page, expected_page_image, rasterize_pdf
from .schemas import ExtractionOutcome, PageArtifact
from .tools import run_tool
from .utils import (
    MissingArtifactError,
    ToolInvocationError,
    missing_file_message,
    write_text_atomic,
)

logger = logging.getLogger(__name__)

MODES = ("p2t", "text-layer", "ocr")


class Recognizer:
    """
    Base class for recognition strategies.

    Subclasses implement extract() and join(). ``needs_page_count``
    tells the case processor whether to run pdfinfo first.
    """

    name = "base"
    needs_page_count = False

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = config.TOOL_TIMEOUT_SECONDS if timeout is None else timeout

    def extract(
        self,
        pdf_path: Path,
        base: Path,
        page_count: Optional[int] = None,
    ) -> ExtractionOutcome:
        raise NotImplementedError

    def join(self, outcome: ExtractionOutcome) -> str:
        raise NotImplementedError


class TextLayerRecognizer(Recognizer):
    """Extracts the embedded text layer with ``pdftotext -raw``."""

    name = "p2t"

    def extract(
        self,
        pdf_path: Path,
        base: Path,
        page_count: Optional[int] = None,
    ) -> ExtractionOutcome:
        outcome = ExtractionOutcome()
        generated = Path(pdf_path).with_suffix(config.TEXT_SUFFIX)
        generated.unlink(missing_ok=True)

        try:
            result = run_tool([config.PDFTOTEXT_CMD, pdf_path, "-raw"], timeout=self.timeout)
            stderr = result.stderr.strip()
            if stderr:
                outcome.diagnostics.append(stderr)
        except ToolInvocationError as e:
            outcome.diagnostics.append(str(e))

        try:
            text = generated.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            logger.warning("pdftotext produced no output for %s", Path(pdf_path).name)
            outcome.diagnostics.append(missing_file_message(generated))
            return outcome

        outcome.raw_text = filter_boilerplate(text)
        return outcome

    def join(self, outcome: ExtractionOutcome) -> str:
        return join_text(outcome.raw_text)


class TesseractRecognizer(Recognizer):
    """
    Rasterizes the PDF once, then crops and OCRs each page in order.

    Every page in 1..page_count is attempted even if an earlier stage
    for that page failed.
    """

    name = "ocr"
    needs_page_count = True

    def __init__(self, language: Optional[str] = None, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.language = language or config.OCR_LANGUAGE
        if config.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = config.TESSERACT_CMD

    def extract(
        self,
        pdf_path: Path,
        base: Path,
        page_count: Optional[int] = None,
    ) -> ExtractionOutcome:
        if page_count is None:
            raise ValueError("TesseractRecognizer requires a page count")

        outcome = ExtractionOutcome()
        base = Path(base)

        images: Dict[int, Path] = {}
        try:
            images = rasterize_pdf(pdf_path, base, timeout=self.timeout)
        except ToolInvocationError as e:
            logger.warning("Rasterization failed for %s: %s", base.name, e)
            outcome.diagnostics.append(str(e))

        for page in range(1, page_count + 1):
            logger.debug("Processing page %d/%d of %s", page, page_count, base.name)
            image_path = images.get(page) or expected_page_image(base, page)
            text_path = base.with_name(f"{base.name}-{page}{config.TEXT_SUFFIX}")
            outcome.pages.append(
                PageArtifact(
                    page_index=page,
                    raster_path=image_path,
                    cropped_path=image_path,
                    recognized_text_path=text_path,
                )
            )

            try:
                crop_page(image_path)
            except (MissingArtifactError, ToolInvocationError) as e:
                outcome.diagnostics.append(f"page {page}: crop: {e}")

            try:
                text = self.recognize_page(image_path, text_path)
            except (MissingArtifactError, ToolInvocationError) as e:
                outcome.diagnostics.append(f"page {page}: ocr: {e}")
                continue

            # tesseract's "Empty page!!" warning is not surfaced by pytesseract
            if not text.strip():
                outcome.diagnostics.append(f"page {page}: ocr: empty page")

        return outcome

    def recognize_page(self, image_path: Union[str, Path], text_path: Union[str, Path]) -> str:
        """
        OCR one cropped page image and write the text next to it.

        A stale text file from an earlier run is removed first so a
        failed page is reported as missing rather than silently reused.

        Raises:
            MissingArtifactError: If the image does not exist.
            ToolInvocationError: If Tesseract fails, times out, or the image is unreadable.
        """
        image_path = Path(image_path)
        text_path = Path(text_path)
        text_path.unlink(missing_ok=True)

        try:
            with Image.open(image_path) as image:
                text = pytesseract.image_to_string(
                    image, lang=self.language, timeout=self.timeout
                )
        except FileNotFoundError as e:
            raise MissingArtifactError(missing_file_message(image_path)) from e
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            raise ToolInvocationError(f"tesseract failed on {image_path.name}: {e}") from e

        write_text_atomic(text_path, text)
        return text

    def join(self, outcome: ExtractionOutcome) -> str:
        text, missing = join_page_files([p.recognized_text_path for p in outcome.pages])
        outcome.diagnostics.extend(missing)
        return text


def get_recognizer(
    mode: str,
    language: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Recognizer:
    """
    Build the recognizer for a --mode value.

    Args:
        mode: ``p2t`` / ``text-layer`` for pdftotext, ``ocr`` for Tesseract.
        language: Tesseract language code (OCR only).
        timeout: Per-invocation timeout in seconds.

    Raises:
        ValueError: For an unknown mode.
    """
    key = mode.lower()
    if key in ("p2t", "text-layer"):
        return TextLayerRecognizer(timeout=timeout)
    if key == "ocr":
        return TesseractRecognizer(language=language, timeout=timeout)
    raise ValueError(f"Unknown extraction mode '{mode}'. Expected one of: {', '.join(MODES)}")

