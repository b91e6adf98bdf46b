"""
Precedent text conversion

Downloads Japanese court decision PDFs listed by listup_precedent and
converts them to plain text, either from the embedded text layer
(pdftotext) or by OCR (pdftoppm + crop + Tesseract).

Public API:
    process_case      - Process a single case entry
    process_batch     - Process many cases with per-case error isolation
    load_case_entries - Read the JSON case list
    get_recognizer    - Build a recognition strategy for a mode
    join_text         - Re-flow recognized text into paragraphs
"""

from .engine import Recognizer, TesseractRecognizer, TextLayerRecognizer, get_recognizer
from .pipeline import process_batch, process_case
from .postprocessor import join_text
from .schemas import BatchReport, CaseRecord, CaseResult, ConversionOptions
from .utils import load_case_entries

__all__ = [
    "process_case",
    "process_batch",
    "load_case_entries",
    "get_recognizer",
    "join_text",
    "Recognizer",
    "TextLayerRecognizer",
    "TesseractRecognizer",
    "BatchReport",
    "CaseRecord",
    "CaseResult",
    "ConversionOptions",
]
