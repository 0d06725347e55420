# scraper/errors.py


class ScrapeError(Exception):
    """Base class for errors raised by the scrape pipeline."""


class FetchError(ScrapeError):
    """A menu page could not be fetched within the retry budget."""

    def __init__(self, url, attempts, reason=None):
        self.url = url
        self.attempts = attempts
        self.reason = reason
        msg = f"Failed to fetch {url} after {attempts} attempts"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SnapshotError(Exception):
    """The snapshot file exists but cannot be read or parsed."""


class SnapshotNotFound(SnapshotError):
    """No snapshot has been written yet."""
