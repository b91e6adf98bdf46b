"""
run_pdf2txt.py

CLI to download judgment PDFs listed by listup_precedent and convert
them to text.

Usage:
    python -m precedent_txt.run_pdf2txt --input input.json
    python -m precedent_txt.run_pdf2txt --input input.json --mode ocr --tmp tmp --output out
    python -m precedent_txt.run_pdf2txt --input input.json --force-re-run --json

Requires poppler-utils (pdfinfo, pdftoppm, pdftotext) and, for
``--mode ocr``, Tesseract with the jpn language pack.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .engine import MODES
from .pipeline import process_batch
from .schemas import ConversionOptions
from .utils import SchemaError, load_case_entries

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf2txt-precedent",
        description="Download court decision PDFs and convert them to plain text",
    )
    parser.add_argument(
        "-i", "--input",
        required=True,
        help="Path to the JSON case list",
    )
    parser.add_argument(
        "-t", "--tmp",
        default=config.DEFAULT_TMP_DIR,
        help="Directory for downloaded PDFs and intermediate files (default: %(default)s)",
    )
    parser.add_argument(
        "-o", "--output",
        default=config.DEFAULT_OUTPUT_DIR,
        help="Directory for the generated text files (default: %(default)s)",
    )
    parser.add_argument(
        "-m", "--mode",
        choices=MODES,
        default="p2t",
        help="Text extraction method: pdftotext (p2t / text-layer) or OCR (default: %(default)s)",
    )
    parser.add_argument(
        "--do-not-use-cache",
        action="store_true",
        help="Download PDFs again even if they are already in the tmp directory",
    )
    parser.add_argument(
        "--force-re-run", "--force-re-ocr",
        dest="force_re_run",
        action="store_true",
        help="Process cases even if their text file already exists",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=config.BATCH_WORKERS,
        help="Number of cases processed concurrently (default: %(default)s)",
    )
    parser.add_argument(
        "--lang",
        default=None,
        help=f"Tesseract language code for --mode ocr (default: {config.OCR_LANGUAGE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Timeout in seconds per external tool call (default: {config.TOOL_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop the batch at the first failed case",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the batch report as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )

    if not os.path.exists(args.input):
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    tmp_dir = Path(args.tmp)
    output_dir = Path(args.output)
    tmp_dir.mkdir(parents=True, exist_ok=True)
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        entries = load_case_entries(args.input)
    except (SchemaError, ValueError) as e:
        print(f"Error: Cannot read case list {args.input}: {e}", file=sys.stderr)
        return 1

    options = ConversionOptions(
        tmp_dir=tmp_dir,
        output_dir=output_dir,
        mode=args.mode,
        language=args.lang,
        timeout=args.timeout,
        reuse_cache=not args.do_not_use_cache,
        force_rerun=args.force_re_run,
    )
    report = process_batch(
        entries,
        options,
        max_workers=args.workers,
        fail_fast=args.fail_fast,
    )

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(f"Done: {report.done}  Skipped: {report.skipped}  Failed: {report.failed}")
        for result in report.results:
            if result.status == "failed":
                print(f"  {result.name}: {result.error}")

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
