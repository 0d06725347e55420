# scraper/utils.py
import json
import logging
import os
import tempfile
from decimal import ROUND_HALF_UP, Decimal
import httpx
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_incrementing,
    retry_if_exception_type,
)

from .errors import ScrapeError

logger = logging.getLogger("scraper.utils")


def clean_text(value):
    """Strip whitespace; empty strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def round_half_up(value):
    """Round to the nearest integer, halves away from zero (44.5 -> 45)."""
    return int(Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def dedup_key(beer):
    """
    Build the run-level uniqueness key for a beer record.

    The same beer may legitimately be listed once per menu section, so the
    key combines the beer URL with its category and subcategory rather than
    using the URL alone.

    Args:
        beer (BeerRecord): record to key

    Returns:
        str: ``"<beer_url>||<category>||<subcategory or ''>"``
    """
    return f"{beer.beer_url}||{beer.category}||{beer.subcategory or ''}"


def network_retrying(attempts=3, base_delay=1.0, before_sleep=None, sleep=None):
    """
    Create a tenacity AsyncRetrying controller for menu page fetches.

    Args:
        attempts (int): Total number of attempts, first one included.
        base_delay (float): Delay unit in seconds. The wait after attempt
            ``n`` is ``base_delay * n``.
        before_sleep (callable, optional): tenacity hook run before each wait,
            used for logging.
        sleep (coroutine function, optional): replaces tenacity's sleep
            between attempts.

    Returns:
        tenacity.AsyncRetrying: iterate it with ``async for attempt in ...``

    Retry Behavior:
        - Retries transport errors (timeouts, connection failures) and
          non-2xx responses raised via ``raise_for_status()``
        - Retries ScrapeError raised by the attempt itself (e.g. a slot that
          stayed rate limited)
        - Does not reraise; the caller receives tenacity.RetryError and
          wraps it in a FetchError
    """
    kwargs = {"sleep": sleep} if sleep is not None else {}
    return AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=base_delay, increment=base_delay),
        retry=retry_if_exception_type((httpx.HTTPError, ScrapeError)),
        before_sleep=before_sleep,
        **kwargs,
    )


def write_json_atomic(path, data):
    """
    Write ``data`` as pretty-printed JSON, replacing ``path`` atomically.

    The document is written to a temporary file in the same directory and
    moved over the target with ``os.replace``, so readers see either the old
    or the new file and never a partial one.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        prefix=".tmp-", suffix=".json", dir=directory
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


def read_json_list(path, key=None):
    """
    Read a JSON array (or the array under ``key``) from ``path``.

    A missing file yields an empty list. A corrupt file also yields an empty
    list so that a rolling log can always be rewritten.
    """
    if not os.path.exists(path):
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable {path}: {e}")
        return []
    if key is not None:
        data = data.get(key, []) if isinstance(data, dict) else []
    return data if isinstance(data, list) else []
