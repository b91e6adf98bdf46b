"""
fetcher.py

Downloads a decision PDF into the tmp directory.

One attempt per document: no retries and no rate limiting.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import requests

from . import config
from .utils import NetworkError

logger = logging.getLogger(__name__)


def download_pdf(
    url: str,
    dest: Union[str, Path],
    timeout: Optional[float] = None,
    session: Optional[requests.Session] = None,
) -> int:
    """
    Fetch ``url`` and store the body at ``dest``.

    The body is written to ``<dest>.part`` and renamed over ``dest`` only
    after it has been flushed, so an interrupted download never leaves a
    truncated PDF that the cache check would accept.

    Args:
        url: Source location of the PDF.
        dest: Cache path in the tmp directory.
        timeout: Request timeout in seconds. Defaults to config.FETCH_TIMEOUT_SECONDS.
        session: Optional requests session to reuse connections.

    Returns:
        Number of bytes written.

    Raises:
        NetworkError: On transport failure, or a non-2xx status when
            config.VALIDATE_HTTP_STATUS is set.
    """
    if timeout is None:
        timeout = config.FETCH_TIMEOUT_SECONDS
    getter = session.get if session is not None else requests.get

    try:
        response = getter(url, timeout=timeout, headers={"User-Agent": config.USER_AGENT})
        if config.VALIDATE_HTTP_STATUS:
            response.raise_for_status()
        body = response.content
    except requests.HTTPError as e:
        raise NetworkError(f"GET {url} returned HTTP {e.response.status_code}") from e
    except requests.RequestException as e:
        raise NetworkError(f"GET {url} failed: {e}") from e

    dest = Path(dest)
    part = dest.with_name(dest.name + ".part")
    try:
        with open(part, "wb") as f:
            f.write(body)
            f.flush()
            os.fsync(f.fileno())
        os.replace(part, dest)
    except OSError:
        part.unlink(missing_ok=True)
        raise

    logger.debug("Saved %d bytes from %s to %s", len(body), url, dest)
    return len(body)
