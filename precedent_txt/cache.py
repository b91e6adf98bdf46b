"""
cache.py

Decides whether a case needs a download and/or an extraction run.

The decision itself is a pure function over booleans so it can be
tested without touching the filesystem; inspect_cache does the
existence checks.
"""

from pathlib import Path
from typing import Union

from .schemas import CacheDecision, CacheState


def decide_cache(
    reuse_cache: bool,
    force_rerun: bool,
    pdf_cache_exists: bool,
    output_text_exists: bool,
) -> CacheDecision:
    """
    Args:
        reuse_cache: False when --do-not-use-cache was given.
        force_rerun: True when --force-re-run was given.
        pdf_cache_exists: The PDF is already in the tmp directory.
        output_text_exists: The final text file already exists.

    Returns:
        CacheDecision with should_download and should_run.
    """
    return CacheDecision(
        should_download=not reuse_cache or not pdf_cache_exists,
        should_run=force_rerun or not output_text_exists,
    )


def inspect_cache(pdf_path: Union[str, Path], output_path: Union[str, Path]) -> CacheState:
    return CacheState(
        pdf_cached=Path(pdf_path).exists(),
        text_produced=Path(output_path).exists(),
    )
