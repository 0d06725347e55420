# scraper/pipeline.py
import asyncio
import logging
import sys
import time
import traceback
from datetime import datetime, timezone

from .aggregator import scrape_menus
from .changelog import detect_changes
from .config import LOG_LEVEL, MENU_PAGES, VENUE_URL
from .errors import SnapshotError, SnapshotNotFound
from .fetcher import Fetcher
from .models import RunLogEntry, ScrapeSnapshot
from .store import ChangelogStore, RunLog, SnapshotStore
from utils.alerts import send_alert

logger = logging.getLogger("scraper")
logger.setLevel(LOG_LEVEL)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)


def _load_previous(snapshots):
    try:
        return snapshots.load()
    except SnapshotNotFound:
        return None
    except SnapshotError as e:
        logger.warning(f"Previous snapshot unusable, skipping changelog: {e}")
        return None


async def run_pipeline(
    pages=None,
    fetcher=None,
    snapshots=None,
    run_log=None,
    changelog=None,
    source=VENUE_URL,
):
    """
    Run one scrape: fetch all menus, merge, persist, record the run.

    Args:
        pages (list[tuple[str, str]], optional): ``(category, url)`` pairs.
            Defaults to MENU_PAGES.
        fetcher (Fetcher, optional): created (and closed) here when omitted
        snapshots (SnapshotStore, optional)
        run_log (RunLog, optional)
        changelog (ChangelogStore, optional)
        source (str): venue URL stored in the snapshot

    Returns:
        int: process exit status, 0 on success and 1 on failure

    Flow:
        1. Keep the previous snapshot in memory for the changelog diff
        2. Fetch and extract every page concurrently, then merge
        3. Replace the snapshot file
        4. Record a changelog entry if anything changed
        5. Prepend a success entry to the run log

    Failure:
        Failed pages only show up in ``stats.errors``. Any other exception
        is logged with its stack trace, written to the run log as a failure
        entry and mailed to the operator when SMTP is configured.
    """
    pages = pages or MENU_PAGES
    snapshots = snapshots or SnapshotStore()
    run_log = run_log or RunLog()
    changelog = changelog or ChangelogStore()
    owns_fetcher = fetcher is None
    fetcher = fetcher or Fetcher()

    started = time.monotonic()
    stats = None
    try:
        previous = _load_previous(snapshots)

        beers, stats = await scrape_menus(pages, fetcher)
        duration = round(time.monotonic() - started, 2)

        snapshot = ScrapeSnapshot(
            source=source,
            fetched_at=datetime.now(timezone.utc),
            count=len(beers),
            scrape_duration_seconds=duration,
            stats=stats,
            beers=beers,
        )
        snapshots.save(snapshot)

        if previous is not None:
            entry = detect_changes(previous.beers, beers, snapshot.fetched_at)
            if entry is not None:
                changelog.record(entry)

        run_log.append(
            RunLogEntry(
                timestamp=datetime.now(timezone.utc),
                success=True,
                duration_seconds=duration,
                beers_count=len(beers),
                stats=stats,
            )
        )
        logger.info(f"Scrape finished in {duration}s with {len(beers)} beers")
        return 0
    except Exception as e:
        duration = round(time.monotonic() - started, 2)
        logger.exception(f"Scrape run failed: {e}")
        try:
            run_log.append(
                RunLogEntry(
                    timestamp=datetime.now(timezone.utc),
                    success=False,
                    duration_seconds=duration,
                    error=str(e),
                    stack=traceback.format_exc(),
                    stats=stats,
                )
            )
        except OSError:
            logger.exception("Could not write failure entry to run log")
        send_alert(
            "[Beer menu] Scrape run failed",
            f"The scrape run failed after {duration}s.\n\n{traceback.format_exc()}",
        )
        return 1
    finally:
        if owns_fetcher:
            await fetcher.close()


def main():
    sys.exit(asyncio.run(run_pipeline()))


if __name__ == "__main__":
    main()
