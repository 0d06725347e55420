# tests/conftest.py
import sys
import os

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT_DIR)

from datetime import datetime, timedelta, timezone
import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from api.main import app, get_changelog_store, get_run_log, get_snapshot_store
from scraper.fetcher import Fetcher
from scraper.models import BeerRecord, ScrapeSnapshot, ScrapeStats
from scraper.store import ChangelogStore, RunLog, SnapshotStore


def build_menu_item(
    name,
    href,
    style=None,
    brewery=None,
    brewery_href=None,
    abv=None,
    ibu=None,
    rating=None,
    container=None,
    image=None,
):
    """Markup for one ``li.menu-item`` shaped like an Untappd venue menu."""
    label = f'<div class="beer-label"><img src="{image}"></div>' if image else ""
    em = f" <em>{style}</em>" if style else ""
    numbers = []
    if abv is not None:
        numbers.append(f"{abv}% ABV")
    if ibu is not None:
        numbers.append(f"{ibu} IBU")
    brewery_html = f'<a href="{brewery_href}">{brewery}</a>' if brewery else ""
    rating_html = (
        f'<span class="rating"><div class="caps" data-rating="{rating}"></div></span>'
        if rating is not None
        else ""
    )
    container_html = (
        f'<div class="beer-containers"><p>{container}</p></div>' if container else ""
    )
    return f"""
    <li class="menu-item">
      <div class="beer-info">
        {label}
        <div class="beer-details">
          <h5><a href="{href}">{name}</a>{em}</h5>
          <h6><span>{" &bull; ".join(numbers)}</span> {brewery_html}</h6>
          {rating_html}
        </div>
      </div>
      {container_html}
    </li>
    """


def build_page(body):
    return f"<html><body><div class='menu-area'>{body}</div></body></html>"


@pytest.fixture
def menu_item():
    return build_menu_item


@pytest.fixture
def page():
    return build_page


@pytest.fixture
def flat_page_html():
    """
    A flat menu page: three beers, one entry without a detail link, one
    repeated beer and one beer inside the venue activity feed.
    """
    items = "".join(
        [
            build_menu_item(
                "Tripel Karmeliet",
                "/b/bosteels-tripel-karmeliet/6511",
                style="Belgian Tripel",
                brewery="Brouwerij Bosteels",
                brewery_href="/w/brouwerij-bosteels/1024",
                abv=8.4,
                ibu=20,
                rating="3.87",
                container="33cl Bottle",
                image="https://assets.untappd.com/site/beer_logos/tripel.jpeg",
            ),
            build_menu_item(
                "Westmalle Dubbel",
                "/b/westmalle-dubbel/7223",
                style="Belgian Dubbel",
                brewery="Brouwerij Westmalle",
                brewery_href="/brewery/westmalle/2012",
                abv=7,
                rating="3.71",
            ),
            '<li class="menu-item"><div class="beer-info"><h5>Huiswijn rood</h5></div></li>',
            build_menu_item("Hommel Bier", "/b/van-eecke-hommel-bier/4001"),
            build_menu_item(
                "Tripel Karmeliet", "/b/bosteels-tripel-karmeliet/6511", abv=8.4
            ),
        ]
    )
    activity = (
        '<div id="venue-activity"><ul>'
        + build_menu_item("Checked In Beer", "/b/some-checkin/9999", abv=5)
        + "</ul></div>"
    )
    return build_page(f"<ul class='menu-items'>{items}</ul>{activity}")


@pytest.fixture
def sectioned_page_html():
    sections = [
        (
            "Trappist (2 Items)",
            [
                build_menu_item("Orval", "/b/orval/1", abv=6.2),
                build_menu_item("Rochefort 10", "/b/rochefort-10/2", abv=11.3),
            ],
        ),
        (
            "Lambiek & Geuze (1 Item)",
            [build_menu_item("Oude Geuze Boon", "/b/oude-geuze-boon/3", abv=7)],
        ),
        (None, [build_menu_item("Oude Kriek Boon", "/b/oude-kriek-boon/4", abv=6.5)]),
    ]
    body = ""
    for header, items in sections:
        header_html = (
            f'<div class="menu-section-header"><h4>{header}</h4></div>' if header else ""
        )
        body += f'<div class="menu-section">{header_html}<ul>{"".join(items)}</ul></div>'
    return build_page(body)


def mock_fetcher(handler, **kwargs):
    """Fetcher backed by an httpx.MockTransport, without backoff delays."""
    kwargs.setdefault("base_delay", 0)
    client = AsyncClient(transport=httpx.MockTransport(handler))
    return Fetcher(client=client, **kwargs)


@pytest.fixture
def make_fetcher():
    return mock_fetcher


@pytest.fixture
def sample_beers():
    """
    Beers for API tests.

    - Orval: Trappist subcategory, 6.2%, rated 3.9
    - Hommel Bier: tap, 7.5%, 40 IBU, rated 3.7
    - Zinnebir: tap, 5.8%, no rating
    - Rochefort 10: Trappist subcategory, 11.3%, rated 4.3
    """
    venue = "https://untappd.com/v/biertaverne-de-gouverneur/1826909"
    return [
        BeerRecord(
            name="Orval",
            beer_url="https://untappd.com/b/orval/1",
            style="Belgian Pale Ale",
            brewery="Brasserie d'Orval",
            category="Bierbijbel",
            subcategory="Trappist",
            abv=6.2,
            ibu=36,
            rating=3.9,
            container="33cl Bottle",
            source_menu_url=f"{venue}?menu_id=141985",
        ),
        BeerRecord(
            name="Hommel Bier",
            beer_url="https://untappd.com/b/hommel/2",
            style="Belgian Strong Golden Ale",
            brewery="Brouwerij Van Eecke",
            category="Vaste bieren van de tap",
            abv=7.5,
            ibu=40,
            rating=3.7,
            source_menu_url=f"{venue}?menu_id=141694",
        ),
        BeerRecord(
            name="Zinnebir",
            beer_url="https://untappd.com/b/zinnebir/3",
            style="Belgian Blonde",
            brewery="Brasserie de la Senne",
            category="Vaste bieren van de tap",
            abv=5.8,
            source_menu_url=f"{venue}?menu_id=141694",
        ),
        BeerRecord(
            name="Rochefort 10",
            beer_url="https://untappd.com/b/rochefort-10/4",
            style="Belgian Quadrupel",
            brewery="Brasserie de Rochefort",
            category="Bierbijbel",
            subcategory="Trappist",
            abv=11.3,
            ibu=27,
            rating=4.3,
            container="33cl Bottle",
            source_menu_url=f"{venue}?menu_id=141985",
        ),
    ]


@pytest.fixture
def make_snapshot(sample_beers):
    def _make(beers=None, fetched_at=None):
        beers = sample_beers if beers is None else beers
        return ScrapeSnapshot(
            source="https://untappd.com/v/biertaverne-de-gouverneur/1826909",
            fetched_at=fetched_at or datetime.now(timezone.utc) - timedelta(hours=1),
            count=len(beers),
            scrape_duration_seconds=4.2,
            stats=ScrapeStats(total_fetched=len(beers), total_valid=len(beers)),
            beers=beers,
        )

    return _make


@pytest.fixture
def stores(tmp_path):
    return {
        "snapshots": SnapshotStore(str(tmp_path / "beers.json")),
        "run_log": RunLog(str(tmp_path / "scrape-log.json")),
        "changelog": ChangelogStore(str(tmp_path / "changelog.json")),
    }


@pytest.fixture
async def client(stores):
    """
    Async test client with every store redirected to a temp directory.

    Tests write the files they need through ``stores`` before calling the
    API; nothing is written up front.
    """
    app.dependency_overrides[get_snapshot_store] = lambda: stores["snapshots"]
    app.dependency_overrides[get_run_log] = lambda: stores["run_log"]
    app.dependency_overrides[get_changelog_store] = lambda: stores["changelog"]

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
