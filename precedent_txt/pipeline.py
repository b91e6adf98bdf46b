"""
pipeline.py

Main orchestrator for the conversion pipeline.

Coordinates one case at a time: cache check -> download -> page count
(OCR only) -> extraction -> joining -> output. Supports sequential and
pooled batch processing; a failing case is reported in the batch
report and never stops its siblings unless fail_fast is requested.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional, Sequence

from . import config
from .cache import decide_cache, inspect_cache
from .engine import Recognizer, get_recognizer
from .fetcher import download_pdf
from .preprocessor import count_pages
from .schemas import (
    BatchReport,
    CaseEvent,
    CaseResult,
    CaseStage,
    ConversionOptions,
    RawCase,
)
from .utils import (
    Pdf2TxtError,
    SchemaError,
    case_paths,
    parse_case_record,
    write_text_atomic,
)

logger = logging.getLogger(__name__)

EventCallback = Callable[[CaseEvent], None]


class _CaseTracker:
    """Records stage transitions on a CaseResult and forwards them as events."""

    def __init__(self, result: CaseResult, on_event: Optional[EventCallback]):
        self.result = result
        self.on_event = on_event

    def enter(self, stage: CaseStage, message: str = "") -> None:
        self.result.stages.append(stage)
        if message:
            logger.info("%s", message)
        if self.on_event is not None:
            self.on_event(CaseEvent(name=self.result.name, stage=stage, message=message))


def process_case(
    entry: RawCase,
    options: ConversionOptions,
    recognizer: Optional[Recognizer] = None,
    on_event: Optional[EventCallback] = None,
) -> CaseResult:
    """
    Process a single case through the full pipeline.

    Args:
        entry: Raw input entry; validated here so schema problems stay
            local to this case.
        options: Directories, mode and cache flags for the run.
        recognizer: Strategy to use. Built from options.mode if omitted.
        on_event: Optional callback receiving a CaseEvent per stage.

    Returns:
        CaseResult with status ``done``, ``skipped`` or ``failed``.
    """
    result = CaseResult(name=entry.label)
    tracker = _CaseTracker(result, on_event)
    tracker.enter(CaseStage.PENDING)

    try:
        record = parse_case_record(entry)
        result.name = record.name
        logger.info("case_number: %s", record.case_number)

        paths = case_paths(record.name, options.tmp_dir, options.output_dir)
        result.output_path = paths.output_text
        state = inspect_cache(paths.pdf, paths.output_text)
        decision = decide_cache(
            reuse_cache=options.reuse_cache,
            force_rerun=options.force_rerun,
            pdf_cache_exists=state.pdf_cached,
            output_text_exists=state.text_produced,
        )

        if not decision.should_run:
            tracker.enter(
                CaseStage.SKIPPED_CACHED,
                f"[Hit Text Cache] {record.name}({paths.output_text})",
            )
            result.status = "skipped"
            return result

        if not record.source_url:
            raise SchemaError(f"{record.name}: full_pdf_link field is missing")

        if recognizer is None:
            recognizer = get_recognizer(options.mode, options.language, options.timeout)

        logger.info("[START] write: %s", record.name)

        if decision.should_download:
            tracker.enter(CaseStage.DOWNLOADING, f"[START] download: {record.source_url}")
            download_pdf(record.source_url, paths.pdf)
            logger.info("[END] download: %s", record.source_url)
        else:
            logger.info("[Hit PDF Cache] %s", paths.pdf)

        page_count = None
        if recognizer.needs_page_count:
            tracker.enter(CaseStage.COUNTING)
            page_count = count_pages(paths.pdf, timeout=recognizer.timeout)
            logger.info("%s: %d page(s)", record.name, page_count)

        tracker.enter(CaseStage.EXTRACTING)
        outcome = recognizer.extract(paths.pdf, paths.base, page_count=page_count)

        tracker.enter(CaseStage.JOINING)
        outcome.joined_text = recognizer.join(outcome)

        write_text_atomic(paths.output_text, outcome.joined_text)
        _write_diagnostics(paths.error_log, outcome.diagnostics)
        result.diagnostics = list(outcome.diagnostics)
        result.status = "done"
        tracker.enter(CaseStage.DONE, f"[END] write: {record.name}")

    except (Pdf2TxtError, OSError) as e:
        logger.error("Failed to process %s: %s", result.name, e)
        result.status = "failed"
        result.error = f"{type(e).__name__}: {e}"
        tracker.enter(CaseStage.FAILED)

    return result


def _write_diagnostics(error_log, diagnostics: List[str]) -> None:
    """Write the sidecar only when there is something to say; drop a stale one otherwise."""
    if not diagnostics:
        error_log.unlink(missing_ok=True)
        return
    logger.warning("%d diagnostic(s) written to %s", len(diagnostics), error_log)
    write_text_atomic(error_log, "".join(d.rstrip("\n") + "\n" for d in diagnostics))


def _process_isolated(
    entry: RawCase,
    options: ConversionOptions,
    recognizer: Recognizer,
    on_event: Optional[EventCallback],
) -> CaseResult:
    try:
        return process_case(entry, options, recognizer=recognizer, on_event=on_event)
    except Exception as e:
        logger.error("Failed to process %s: %s", entry.label, e, exc_info=True)
        return CaseResult(
            name=entry.label,
            status="failed",
            stages=[CaseStage.FAILED],
            error=f"Processing failed: {e}",
        )


def process_batch(
    entries: Sequence[RawCase],
    options: ConversionOptions,
    max_workers: Optional[int] = None,
    fail_fast: bool = False,
    on_event: Optional[EventCallback] = None,
) -> BatchReport:
    """
    Process multiple cases.

    Args:
        entries: Raw case entries in input order.
        options: Shared run options.
        max_workers: Concurrent cases. Defaults to config.BATCH_WORKERS;
            1 processes cases strictly one after another.
        fail_fast: Stop starting new cases after the first failure.
        on_event: Optional progress callback (may be called from worker threads).

    Returns:
        BatchReport with one CaseResult per processed entry, in input order.
    """
    if max_workers is None:
        max_workers = config.BATCH_WORKERS

    recognizer = get_recognizer(options.mode, options.language, options.timeout)
    logger.info(
        "Processing %d case(s) with %s (workers=%d)", len(entries), recognizer.name, max_workers
    )

    results: List[Optional[CaseResult]] = [None] * len(entries)

    if len(entries) <= 1 or max_workers <= 1:
        for i, entry in enumerate(entries):
            results[i] = _process_isolated(entry, options, recognizer, on_event)
            if fail_fast and results[i].status == "failed":
                logger.error("Stopping batch after failure of %s", results[i].name)
                break
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_index = {
                executor.submit(_process_isolated, entry, options, recognizer, on_event): i
                for i, entry in enumerate(entries)
            }

            for future in as_completed(future_to_index):
                if future.cancelled():
                    continue
                i = future_to_index[future]
                results[i] = future.result()
                if fail_fast and results[i].status == "failed":
                    logger.error("Stopping batch after failure of %s", results[i].name)
                    for pending in future_to_index:
                        pending.cancel()

    report = BatchReport(results=[r for r in results if r is not None])
    logger.info(
        "Batch finished: %d done, %d skipped, %d failed",
        report.done,
        report.skipped,
        report.failed,
    )
    return report
