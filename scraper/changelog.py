# scraper/changelog.py
import logging

from .models import ChangeSummary, ChangelogEntry

logger = logging.getLogger("scraper.changelog")

TRACKED_FIELDS = ["abv", "ibu", "rating", "container", "category"]


def _by_url(beers):
    # later entries win, same as building a dict from the list
    return {b.beer_url: b for b in beers}


def detect_changes(old_beers, new_beers, now):
    """
    Compare two snapshots' beer lists by beer_url.

    A beer listed under several categories is compared by its last listing
    in each snapshot and reported once.

    Args:
        old_beers (list[BeerRecord]): beers from the previous snapshot
        new_beers (list[BeerRecord]): beers from the snapshot just written
        now (datetime): timestamp for the entry

    Returns:
        ChangelogEntry or None: None when nothing was added, removed or
            updated. An update is any difference in abv, ibu, rating,
            container or category for a beer_url present in both lists.
    """
    old_map = _by_url(old_beers)
    new_map = _by_url(new_beers)

    added, removed, updated = [], [], []

    for beer in new_map.values():
        old = old_map.get(beer.beer_url)
        if old is None:
            added.append(
                {
                    "name": beer.name,
                    "beer_url": beer.beer_url,
                    "category": beer.category,
                    "subcategory": beer.subcategory,
                    "brewery": beer.brewery,
                    "style": beer.style,
                    "abv": beer.abv,
                    "image_url": beer.image_url,
                }
            )
            continue
        changes = {}
        for field in TRACKED_FIELDS:
            old_val, new_val = getattr(old, field), getattr(beer, field)
            if old_val != new_val:
                changes[field] = {"old": old_val, "new": new_val}
        if changes:
            updated.append(
                {"name": beer.name, "beer_url": beer.beer_url, "changes": changes}
            )

    for beer in old_map.values():
        if beer.beer_url not in new_map:
            removed.append(
                {
                    "name": beer.name,
                    "beer_url": beer.beer_url,
                    "category": beer.category,
                    "subcategory": beer.subcategory,
                    "brewery": beer.brewery,
                }
            )

    if not (added or removed or updated):
        logger.info("No changes detected")
        return None

    logger.info(
        f"Changes detected: +{len(added)} -{len(removed)} ~{len(updated)} "
        f"({len(new_beers)} beers)"
    )
    return ChangelogEntry(
        date=now,
        summary=ChangeSummary(
            added=len(added),
            removed=len(removed),
            updated=len(updated),
            total_beers=len(new_beers),
        ),
        added=added,
        removed=removed,
        updated=updated,
    )
