# scraper/validator.py
import logging
from urllib.parse import urlparse

from .config import BASE_URL
from .utils import clean_text, round_half_up

logger = logging.getLogger("scraper.validate")

EXPECTED_HOST = urlparse(BASE_URL).hostname

BOUNDS = {
    "abv": (0, 100),
    "ibu": (0, 200),
    "rating": (0, 5),
}

OPTIONAL_TEXT_FIELDS = (
    "image_url",
    "style",
    "brewery",
    "brewery_url",
    "subcategory",
    "container",
)


def validate(beer):
    """
    Check a beer record against sanity rules.

    Violations never raise and never remove the record; out-of-range numbers
    are reported but left as they are.

    Args:
        beer (BeerRecord): record to check

    Returns:
        list[str]: human readable warnings, empty when the record is clean
    """
    warnings = []
    if not beer.name or len(beer.name.strip()) < 2:
        warnings.append(f"name too short: {beer.name!r}")
    if not beer.beer_url:
        warnings.append("missing beer_url")
    elif urlparse(beer.beer_url).hostname != EXPECTED_HOST:
        warnings.append(f"beer_url not on {EXPECTED_HOST}: {beer.beer_url}")
    for field, (low, high) in BOUNDS.items():
        value = getattr(beer, field)
        if value is not None and not low <= value <= high:
            warnings.append(f"{field} out of range {low}-{high}: {value}")
    return warnings


def normalize(beer):
    """Return a trimmed, rounded copy of ``beer``."""
    update = {
        "name": beer.name.strip(),
        "beer_url": beer.beer_url.strip(),
        "category": beer.category.strip(),
        "source_menu_url": beer.source_menu_url.strip(),
    }
    for field in OPTIONAL_TEXT_FIELDS:
        update[field] = clean_text(getattr(beer, field))
    if beer.abv is not None:
        update["abv"] = round(beer.abv, 2)
    if beer.ibu is not None:
        update["ibu"] = round_half_up(beer.ibu)
    if beer.rating is not None:
        update["rating"] = round(beer.rating, 2)
    return beer.model_copy(update=update)


def check(beer):
    """Normalize ``beer`` and log any validation warnings for it."""
    beer = normalize(beer)
    for warning in validate(beer):
        logger.warning(f"{beer.category}: {beer.name}: {warning}")
    return beer
