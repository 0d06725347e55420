# scraper/aggregator.py
import asyncio
import logging

from .errors import ScrapeError
from .extractor import extract_beers_from_page
from .models import ScrapeStats
from .utils import dedup_key

logger = logging.getLogger("scraper.aggregate")


async def scrape_page(fetcher, category, url):
    """
    Fetch and extract one menu page.

    Returns:
        list[BeerRecord] or None: None when the page could not be fetched
            within the retry budget. Anything other than a ScrapeError
            propagates.
    """
    logger.info(f"Fetching: {category}")
    try:
        html = await fetcher.fetch(url)
    except ScrapeError as e:
        logger.error(f"Skipping {category} ({url}): {e}")
        return None
    beers = extract_beers_from_page(html, category, url)
    logger.info(f"  -> {category}: found {len(beers)}")
    return beers


def merge_pages(page_results):
    """
    Merge per-page results into one list and compute run statistics.

    Args:
        page_results (list[tuple[str, list[BeerRecord] | None]]): one
            ``(category, beers)`` pair per configured page, in configured
            order. ``beers`` is None for a page that failed.

    Returns:
        tuple[list[BeerRecord], ScrapeStats]

    Dedup:
        Key is ``beer_url||category||subcategory``; the first occurrence in
        page order wins, later ones are counted in ``duplicates_removed``.
    """
    stats = ScrapeStats()
    merged = []
    seen = set()
    for category, beers in page_results:
        stats.by_category.setdefault(category, 0)
        if beers is None:
            stats.errors += 1
            continue
        stats.total_fetched += len(beers)
        for beer in beers:
            key = dedup_key(beer)
            if key in seen:
                stats.duplicates_removed += 1
                continue
            seen.add(key)
            merged.append(beer)
            stats.by_category[beer.category] = stats.by_category.get(beer.category, 0) + 1
    stats.total_valid = len(merged)
    return merged, stats


async def scrape_menus(pages, fetcher):
    """
    Scrape all configured menu pages concurrently and merge them.

    Every page is fetched at once; a page that exhausts its retries adds
    zero beers and one error but does not stop the others.
    Any other exception is re-raised once all pages have finished.

    Args:
        pages (list[tuple[str, str]]): ``(category, url)`` pairs
        fetcher (Fetcher): shared fetcher

    Returns:
        tuple[list[BeerRecord], ScrapeStats]
    """
    tasks = [scrape_page(fetcher, category, url) for category, url in pages]
    # every page settles before an unexpected error propagates
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for res in results:
        if isinstance(res, BaseException):
            raise res
    beers, stats = merge_pages(
        [(category, res) for (category, _), res in zip(pages, results)]
    )
    logger.info(
        f"Merged {stats.total_valid} beers "
        f"({stats.duplicates_removed} duplicates, {stats.errors} failed pages)"
    )
    return beers, stats
