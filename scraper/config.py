# scraper/config.py
import os
from dotenv import load_dotenv

load_dotenv()

VENUE_URL = os.getenv(
    "VENUE_URL", "https://untappd.com/v/biertaverne-de-gouverneur/1826909"
)
BASE_URL = os.getenv("BASE_URL", "https://untappd.com")

# (category label, menu page url); the vintage menu is left out on purpose
MENU_PAGES = [
    ("Wisseltap bieren", f"{VENUE_URL}?menu_id=141695"),
    ("Op=Op kaart", f"{VENUE_URL}?menu_id=141692"),
    ("Vaste bieren van de tap", f"{VENUE_URL}?menu_id=141694"),
    ("Bierbijbel", f"{VENUE_URL}?menu_id=141985"),
]

# categories whose page nests items under headed subsections
SECTIONED_CATEGORIES = [
    c.strip()
    for c in os.getenv("SECTIONED_CATEGORIES", "Bierbijbel").split(",")
    if c.strip()
]

REQUEST_HEADERS = {
    "User-Agent": os.getenv(
        "USER_AGENT", "BeerMenuBot/1.0 (contact: you@example.com)"
    ),
    "Accept-Language": "nl-NL,nl;q=0.9,en;q=0.8",
}

FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "30"))
FETCH_RETRIES = int(os.getenv("FETCH_RETRIES", "3"))
FETCH_BASE_DELAY = float(os.getenv("FETCH_BASE_DELAY", "1.0"))
FETCH_MAX_THROTTLE_WAITS = int(os.getenv("FETCH_MAX_THROTTLE_WAITS", "5"))

SNAPSHOT_PATH = os.getenv("SNAPSHOT_PATH", "beers.json")
RUN_LOG_PATH = os.getenv("RUN_LOG_PATH", "scrape-log.json")
CHANGELOG_PATH = os.getenv("CHANGELOG_PATH", "changelog.json")
RUN_LOG_MAX_ENTRIES = int(os.getenv("RUN_LOG_MAX_ENTRIES", "100"))
CHANGELOG_MAX_ENTRIES = int(os.getenv("CHANGELOG_MAX_ENTRIES", "30"))

STALE_AFTER_HOURS = float(os.getenv("STALE_AFTER_HOURS", "48"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
