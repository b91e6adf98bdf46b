"""
postprocessor.py

Text clean-up applied after recognition.

Handles:
- Dropping pagination noise from pdftotext output
- Re-flowing lines broken by the page layout into paragraphs
- Joining per-page OCR files into one text

Japanese decisions have no spaces between words, so lines are fused
without a separator. A blank line is the only paragraph boundary.
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .utils import missing_file_message

logger = logging.getLogger(__name__)

# Either a line starting with a page/line number ("- 12 -", "42"), or a line
# ending in whitespace. Only the first alternative is anchored at the start,
# so numbered body lines ("3 of the ...") are dropped as well. Best-effort.
BOILERPLATE_RE = re.compile(r"^(\s*-?\s*\d+\s*-?\s*)|(\s+)$")


def split_lines(text: str) -> List[str]:
    """
    Split on line feeds only.

    str.splitlines() would also break on the form feed pdftotext puts at
    every page end, turning each page boundary into a blank line. A
    trailing carriage return is removed and a final empty piece after the
    last line feed is not a line.
    """
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def is_boilerplate_line(line: str) -> bool:
    return BOILERPLATE_RE.search(line) is not None


def filter_boilerplate(text: str) -> str:
    """Drop boilerplate lines; every kept line ends with a line break."""
    lines = split_lines(text)
    kept = [line for line in lines if not is_boilerplate_line(line)]
    dropped = len(lines) - len(kept)
    if dropped:
        logger.debug("Dropped %d boilerplate line(s)", dropped)
    return "".join(line + "\n" for line in kept)


def join_lines(lines: Iterable[str]) -> str:
    """
    Fuse lines into paragraphs.

    Non-empty lines are trimmed and appended with no separator. Any run
    of blank lines becomes a single line break before the next
    non-empty line; trailing blank lines produce nothing.
    """
    parts: List[str] = []
    pending_break = False

    for line in lines:
        text = line.strip()
        if not text:
            pending_break = True
            continue
        if pending_break:
            parts.append("\n")
        parts.append(text)
        pending_break = False

    return "".join(parts)


def join_text(text: str) -> str:
    return join_lines(split_lines(text))


def join_page_texts(page_texts: Sequence[str]) -> str:
    """Trim each page, concatenate in order with no separator, then re-flow."""
    return join_text("".join(t.strip() for t in page_texts))


def join_page_files(
    file_paths: Sequence[Union[str, Path]],
) -> Tuple[str, List[str]]:
    """
    Read per-page text files in order and re-flow them into one text.

    Missing pages are skipped so one failed page does not lose the rest.

    Returns:
        (joined_text, diagnostics) where diagnostics lists missing files.
    """
    page_texts: List[str] = []
    diagnostics: List[str] = []

    for file_path in file_paths:
        text = _read_optional(file_path)
        if text is None:
            diagnostics.append(missing_file_message(file_path))
            continue
        page_texts.append(text)

    return join_page_texts(page_texts), diagnostics


def _read_optional(file_path: Union[str, Path]) -> Optional[str]:
    try:
        return Path(file_path).read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
