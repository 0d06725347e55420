# scraper/fetcher.py
import asyncio
import logging
from httpx import AsyncClient
from tenacity import RetryError

from .config import (
    FETCH_BASE_DELAY,
    FETCH_MAX_THROTTLE_WAITS,
    FETCH_RETRIES,
    FETCH_TIMEOUT,
    REQUEST_HEADERS,
)
from .errors import FetchError, ScrapeError
from .utils import network_retrying

logger = logging.getLogger("scraper.fetch")


class Fetcher:
    def __init__(
        self,
        timeout=FETCH_TIMEOUT,
        max_retries=FETCH_RETRIES,
        base_delay=FETCH_BASE_DELAY,
        max_throttle_waits=FETCH_MAX_THROTTLE_WAITS,
        client=None,
        sleep=asyncio.sleep,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_throttle_waits = max_throttle_waits
        self.sleep = sleep
        self.client = client or AsyncClient(
            timeout=timeout, headers=REQUEST_HEADERS, follow_redirects=True
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def fetch(self, url, max_retries=None):
        """
        Fetch a menu page, retrying transient failures with linear backoff.

        Args:
            url (str): page to fetch
            max_retries (int, optional): total attempts for this call.
                Defaults to the fetcher's configured budget.

        Returns:
            str: response body

        Raises:
            FetchError: after every attempt failed. The last underlying
                exception is chained as ``__cause__``.

        Retry Behavior:
            - Every request is cut off after ``timeout`` seconds in total, a
              slow trickling body included; a timeout is a failed attempt
            - Non-2xx (other than 429) and transport errors wait
              ``base_delay * attempt`` before the next attempt
            - 429 responses are absorbed inside the current attempt (see
              ``_attempt``) and do not use up the budget
        """
        attempts = self.max_retries if max_retries is None else max_retries
        retrying = network_retrying(
            attempts=attempts,
            base_delay=self.base_delay,
            before_sleep=self._log_retry(url),
            sleep=self.sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._attempt(
                        url, attempt.retry_state.attempt_number
                    )
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error(f"Giving up on {url} after {attempts} attempts: {last}")
            raise FetchError(url, attempts, reason=str(last)) from last

    async def _attempt(self, url, attempt_number):
        # 429 keeps the same attempt slot, bounded by max_throttle_waits
        throttled = 0
        while True:
            resp = await self._get(url)
            if resp.status_code != 429:
                resp.raise_for_status()
                return resp.text
            throttled += 1
            if throttled > self.max_throttle_waits:
                raise ScrapeError(
                    f"Still rate limited on {url} after {self.max_throttle_waits} waits"
                )
            delay = self.base_delay * attempt_number * 2
            logger.warning(
                f"Rate limited on {url} (attempt {attempt_number}), waiting {delay:.1f}s"
            )
            await self.sleep(delay)

    async def _get(self, url):
        # httpx timeouts apply per read, not to the whole response
        try:
            return await asyncio.wait_for(self.client.get(url), self.timeout)
        except asyncio.TimeoutError:
            raise ScrapeError(f"Timed out after {self.timeout}s fetching {url}") from None

    def _log_retry(self, url):
        def before_sleep(retry_state):
            exc = retry_state.outcome.exception()
            logger.warning(
                f"Fetch error {url}: {exc!r} attempt {retry_state.attempt_number}"
            )

        return before_sleep
