"""
utils.py

File I/O, record loading, and error types for the conversion pipeline.

Handles:
- The exception taxonomy shared by every stage
- Loading the case list JSON (keyed mapping or plain list)
- Validating raw entries into CaseRecord objects
- Per-case file path layout in the tmp and output directories
"""

import json
import logging
import os
from pathlib import Path
from typing import List, NamedTuple, Union

from pydantic import ValidationError

from . import config
from .schemas import CaseRecord, RawCase

logger = logging.getLogger(__name__)


class Pdf2TxtError(Exception):
    """Base class for all pipeline errors."""

    pass


class SchemaError(Pdf2TxtError):
    """Raised when a case record lacks a required field."""

    pass


class NetworkError(Pdf2TxtError):
    """Raised when a PDF cannot be fetched."""

    pass


class ParseError(Pdf2TxtError):
    """Raised when the page count cannot be read from pdfinfo output."""

    pass


class ToolInvocationError(Pdf2TxtError):
    """Raised when an external process cannot be spawned or times out."""

    pass


class MissingArtifactError(Pdf2TxtError):
    """An expected intermediate file does not exist."""

    pass


class CasePaths(NamedTuple):
    base: Path  # tmp/{name}, the prefix handed to pdftoppm
    pdf: Path
    generated_text: Path  # written by pdftotext next to the PDF
    output_text: Path
    error_log: Path


def case_paths(name: str, tmp_dir: Union[str, Path], output_dir: Union[str, Path]) -> CasePaths:
    """Lay out every file belonging to one case."""
    base = Path(tmp_dir) / name
    return CasePaths(
        base=base,
        pdf=base.with_name(name + config.PDF_SUFFIX),
        generated_text=base.with_name(name + config.TEXT_SUFFIX),
        output_text=Path(output_dir) / (name + config.TEXT_SUFFIX),
        error_log=base.with_name(name + config.ERROR_LOG_SUFFIX),
    )


def missing_file_message(path: Union[str, Path]) -> str:
    return f"'{path}': No such file or directory"


def load_case_entries(file_path: Union[str, Path]) -> List[RawCase]:
    """
    Load the case list produced by listup_precedent.

    Two layouts are accepted:
    - a mapping ``{"<name>": {"case_number": ..., "full_pdf_link": ...}}``
    - a list ``[{"case_number": ..., "full_pdf_link": ..., "date": {...}}]``

    Entries are returned unvalidated so that a malformed entry only fails
    its own case.

    Raises:
        SchemaError: If the top-level JSON value is neither an object nor an array.
    """
    path = Path(file_path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        entries = [
            RawCase(label=str(name), payload=_as_payload(value), keyed=True)
            for name, value in data.items()
        ]
    elif isinstance(data, list):
        entries = [
            RawCase(label=_list_label(i, value), payload=_as_payload(value), keyed=False)
            for i, value in enumerate(data)
        ]
    else:
        raise SchemaError(
            f"{path}: expected a JSON object or array, got {type(data).__name__}"
        )

    logger.info("Loaded %d case(s) from %s", len(entries), path)
    return entries


def _as_payload(value) -> dict:
    return value if isinstance(value, dict) else {}


def _list_label(index: int, value) -> str:
    """Best-effort label for logging; the real name is built by parse_case_record."""
    if isinstance(value, dict) and isinstance(value.get("case_number"), str):
        return value["case_number"]
    return f"#{index}"


def parse_case_record(entry: RawCase) -> CaseRecord:
    """
    Validate a raw entry into a CaseRecord.

    Raises:
        SchemaError: If case_number is missing, or a list entry has no usable date.
    """
    payload = dict(entry.payload)
    case_number = payload.get("case_number")
    if not isinstance(case_number, str):
        raise SchemaError(f"{entry.label}: case_number field is missing")

    if entry.keyed:
        name = entry.label
    else:
        date = payload.get("date")
        try:
            name = f"{case_number}_{date['year']}_{date['month']}_{date['day']}"
        except (TypeError, KeyError) as e:
            raise SchemaError(f"{entry.label}: date field is missing or incomplete") from e

    payload["name"] = name
    try:
        return CaseRecord.model_validate(payload)
    except ValidationError as e:
        raise SchemaError(f"{entry.label}: {e}") from e


def write_text_atomic(path: Union[str, Path], text: str) -> None:
    """Write text through a sibling temp file so readers never see a partial file."""
    path = Path(path)
    part = path.with_name(path.name + ".part")
    with open(part, "w", encoding="utf-8") as f:
        f.write(text)
        f.flush()
        os.fsync(f.fileno())
    os.replace(part, path)
