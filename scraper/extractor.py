# scraper/extractor.py
import logging
import math
import re
from urllib.parse import urljoin
from bs4 import BeautifulSoup

from .config import BASE_URL, SECTIONED_CATEGORIES
from .models import BeerRecord
from .utils import clean_text, round_half_up
from .validator import check

logger = logging.getLogger("scraper.extract")

ABV_RE = re.compile(r"(\d+(?:\.\d+)?)%\s*ABV", re.IGNORECASE)
IBU_RE = re.compile(r"(\d+(?:\.\d+)?)\s*IBU", re.IGNORECASE)
ITEM_COUNT_RE = re.compile(r"\(\d+\s*Items?\)\s*$", re.IGNORECASE)

ACTIVITY_CLASS = "venue-activity"
ACTIVITY_ID = "venue-activity"


def strip_item_count(header_text):
    """'Trappist (12 Items)' -> 'Trappist'"""
    return clean_text(ITEM_COUNT_RE.sub("", header_text.strip()))


def _inside_activity(node):
    for el in [node, *node.parents]:
        if ACTIVITY_CLASS in (el.get("class") or []) or el.get("id") == ACTIVITY_ID:
            return True
    return False


def _to_float(value):
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


class MenuLayout:
    """
    Extraction rule for one shape of menu page.

    Subclasses yield ``(menu_item_node, subcategory)`` pairs in document
    order; the per-item field extraction is shared.
    """

    name = "base"

    def iter_items(self, soup):
        raise NotImplementedError


class FlatLayout(MenuLayout):
    """All ``li.menu-item`` nodes on the page, minus the activity feed."""

    name = "flat"

    def iter_items(self, soup):
        for item in soup.select("li.menu-item"):
            if _inside_activity(item):
                continue
            yield item, None


class SectionedLayout(MenuLayout):
    """
    Items grouped under ``.menu-section`` blocks with a header each.

    The header text (minus its "(N Items)" suffix) becomes the subcategory of
    every item in that section. A section without a header inherits the
    subcategory of the previous one.
    """

    name = "sectioned"

    def iter_items(self, soup):
        current = None
        for section in soup.select(".menu-section"):
            header = section.select_one(".menu-section-header h4")
            if header is not None:
                current = strip_item_count(header.get_text())
            for item in section.select("li.menu-item"):
                yield item, current


DEFAULT_LAYOUT = FlatLayout()
_CATEGORY_LAYOUTS = {category: SectionedLayout() for category in SECTIONED_CATEGORIES}


def register_layout(category, layout):
    """Use ``layout`` for pages of ``category`` from now on."""
    _CATEGORY_LAYOUTS[category] = layout


def layout_for(category):
    return _CATEGORY_LAYOUTS.get(category, DEFAULT_LAYOUT)


def extract_beer_from_menu_item(menu_item, category, page_url, subcategory=None):
    """
    Pull one beer out of a ``li.menu-item`` node.

    Args:
        menu_item (bs4.Tag): the menu item node
        category (str): menu label the page belongs to
        page_url (str): page the node came from, kept as provenance
        subcategory (str, optional): section header the item sits under

    Returns:
        BeerRecord or None: None when the node is not a beer (no info block,
            no detail link, or a name shorter than 2 characters). Every other
            missing field is simply left as None.

    Fields:
        - name / beer_url: first ``a[href^="/b/"]`` inside ``.beer-info``
        - image_url: ``.beer-label img`` src
        - style: first ``em``
        - brewery / brewery_url: ``a[href^="/w/"]`` or ``a[href^="/brewery/"]``
        - abv / ibu: "<n>% ABV" and "<n> IBU" in the info block text
        - rating: ``.caps[data-rating]`` attribute
        - container: first ``.beer-containers p`` of the menu item
    """
    beer_info = menu_item.select_one(".beer-info")
    if beer_info is None:
        return None

    beer_link = beer_info.select_one('a[href^="/b/"]')
    if beer_link is None or not beer_link.get("href"):
        return None

    name = beer_link.get_text().strip()
    if len(name) < 2:
        return None

    img = beer_info.select_one(".beer-label img")
    style = beer_info.select_one("em")
    brewery_link = beer_info.select_one('a[href^="/w/"], a[href^="/brewery/"]')
    brewery_href = brewery_link.get("href") if brewery_link is not None else None

    text = beer_info.get_text()
    abv_match = ABV_RE.search(text)
    ibu_match = IBU_RE.search(text)
    ibu = _to_float(ibu_match.group(1)) if ibu_match else None

    rating_el = beer_info.select_one(".caps[data-rating]")
    container = menu_item.select_one(".beer-containers p")

    return BeerRecord(
        name=name,
        beer_url=urljoin(BASE_URL, beer_link["href"]),
        image_url=img.get("src") if img is not None else None,
        style=style.get_text() if style is not None else None,
        brewery=brewery_link.get_text() if brewery_link is not None else None,
        brewery_url=urljoin(BASE_URL, brewery_href) if brewery_href else None,
        category=category,
        subcategory=subcategory,
        abv=_to_float(abv_match.group(1)) if abv_match else None,
        ibu=round_half_up(ibu) if ibu is not None else None,
        rating=_to_float(rating_el.get("data-rating")) if rating_el is not None else None,
        container=container.get_text() if container is not None else None,
        source_menu_url=page_url,
    )


def extract_beers_from_page(html, category, page_url, layout=None):
    """
    Extract every beer on one menu page.

    The layout rule is picked by category unless one is passed in. Records
    are normalized and validated on the way out, and deduplicated by
    beer_url within the page (first occurrence wins).

    Args:
        html (str): page markup
        category (str): menu label
        page_url (str): page URL, stored on each record
        layout (MenuLayout, optional): override the registered rule

    Returns:
        list[BeerRecord]: beers in document order
    """
    soup = BeautifulSoup(html, "lxml")
    layout = layout or layout_for(category)

    beers = []
    seen = set()
    for item, subcategory in layout.iter_items(soup):
        beer = extract_beer_from_menu_item(item, category, page_url, subcategory)
        if beer is None:
            continue
        if beer.beer_url in seen:
            continue
        seen.add(beer.beer_url)
        beers.append(check(beer))

    logger.debug(f"{category}: {len(beers)} beers via {layout.name} layout")
    return beers
