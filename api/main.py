# api/main.py
from fastapi import FastAPI, Depends, Query, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime, timezone
from typing import Optional
import os
from dotenv import load_dotenv
from .rate_limit import register_rate_limit, limiter, API_RATE_LIMIT
from .query import SORT_FIELDS, filter_beers, paginate, sort_beers
from .stats import compute_stats
from scraper.config import STALE_AFTER_HOURS
from scraper.errors import SnapshotError, SnapshotNotFound
from scraper.store import ChangelogStore, RunLog, SnapshotStore
import logging

load_dotenv()
API_PORT = int(os.getenv("API_PORT", "8000"))

PUBLIC_CACHE = "s-maxage=3600, stale-while-revalidate"

app = FastAPI(title="Beer Menu API", version="1.0")

register_rate_limit(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

logger = logging.getLogger("api")
logger.setLevel(logging.INFO)


def get_snapshot_store():
    return SnapshotStore()


def get_run_log():
    return RunLog()


def get_changelog_store():
    return ChangelogStore()


def load_snapshot(store):
    """
    Load the current snapshot or raise the matching HTTP error.

    Raises:
        HTTPException: 503 if no snapshot has been written yet, 500 if the
            file is unreadable or malformed
    """
    try:
        return store.load()
    except SnapshotNotFound:
        raise HTTPException(status_code=503, detail="Beer data not available")
    except SnapshotError as e:
        logger.error(f"Failed to load beer data: {e}")
        raise HTTPException(status_code=500, detail="Failed to load beer data")


@app.get("/beers")
@limiter.limit(API_RATE_LIMIT)
async def list_beers(
    request: Request,
    response: Response,
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_abv: Optional[float] = Query(None),
    max_abv: Optional[float] = Query(None),
    min_rating: Optional[float] = Query(None),
    sort_by: Optional[str] = Query(None, pattern="^(" + "|".join(SORT_FIELDS) + ")$"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    page_size: int = Query(500, ge=1, le=500),
    store: SnapshotStore = Depends(get_snapshot_store),
):
    """
    List beers with optional filtering, sorting, and pagination.

    Args:
        category (str, optional): exact menu label
        subcategory (str, optional): exact subcategory
        search (str, optional): case-insensitive match on name, brewery, style
        min_abv / max_abv (float, optional): inclusive ABV range
        min_rating (float, optional): inclusive lower rating bound
        sort_by (str, optional): one of name, abv, ibu, rating, brewery.
            Without it beers keep snapshot order.
        order (str): 'asc' or 'desc'; beers missing the field sort last
        page (int): 1-based page number
        page_size (int): 1-500, defaults to 500

    Returns:
        dict:
            - source, fetched_at: copied from the snapshot
            - count: number of beers matching the filters
            - total: number of beers in the snapshot
            - page, page_size
            - beers: the requested page

    Raises:
        HTTPException: 503 without a snapshot, 500 if it is unreadable
    """
    snapshot = load_snapshot(store)

    beers = filter_beers(
        snapshot.beers,
        category=category,
        subcategory=subcategory,
        search=search,
        min_abv=min_abv,
        max_abv=max_abv,
        min_rating=min_rating,
    )
    if sort_by:
        beers = sort_beers(beers, sort_by, order)

    response.headers["Cache-Control"] = PUBLIC_CACHE
    return {
        "source": snapshot.source,
        "fetched_at": snapshot.model_dump(mode="json", include={"fetched_at"})["fetched_at"],
        "count": len(beers),
        "total": snapshot.count,
        "page": page,
        "page_size": page_size,
        "beers": [b.model_dump() for b in paginate(beers, page, page_size)],
    }


@app.get("/stats")
@limiter.limit(API_RATE_LIMIT)
async def get_stats(
    request: Request,
    response: Response,
    store: SnapshotStore = Depends(get_snapshot_store),
):
    """Aggregate statistics for the current snapshot."""
    snapshot = load_snapshot(store)
    response.headers["Cache-Control"] = PUBLIC_CACHE
    return {
        "fetched_at": snapshot.model_dump(mode="json", include={"fetched_at"})["fetched_at"],
        "stats": compute_stats(snapshot.beers),
    }


@app.get("/changelog")
@limiter.limit(API_RATE_LIMIT)
async def get_changelog(
    request: Request,
    response: Response,
    limit: int = Query(10, ge=1),
    changelog: ChangelogStore = Depends(get_changelog_store),
):
    """Most recent snapshot diffs, newest first."""
    changes = changelog.read()
    response.headers["Cache-Control"] = PUBLIC_CACHE
    return {"changes": changes[:limit], "total": len(changes)}


@app.get("/logs")
@limiter.limit(API_RATE_LIMIT)
async def get_logs(
    request: Request,
    response: Response,
    limit: int = Query(10),
    run_log: RunLog = Depends(get_run_log),
):
    """
    Most recent scrape runs, newest first.

    ``limit`` is clamped to 1-100 rather than rejected.
    """
    logs = run_log.read()
    limit = min(100, max(1, limit))
    response.headers["Cache-Control"] = "s-maxage=300, stale-while-revalidate"
    return {"logs": logs[:limit], "total": len(logs)}


@app.get("/health")
async def health(
    store: SnapshotStore = Depends(get_snapshot_store),
    run_log: RunLog = Depends(get_run_log),
):
    """
    Report whether the snapshot is present and fresh.

    Returns:
        JSONResponse:
            - 200 ``healthy``: snapshot younger than STALE_AFTER_HOURS and
              non-empty
            - 503 ``degraded``: snapshot stale or empty
            - 503 ``unhealthy``: no snapshot at all
            - 500 ``error``: snapshot unreadable
    """
    now = datetime.now(timezone.utc)
    headers = {"Cache-Control": "no-cache"}

    try:
        snapshot = store.load()
    except SnapshotNotFound:
        return JSONResponse(
            status_code=503,
            headers=headers,
            content={
                "status": "unhealthy",
                "error": "beers.json not found",
                "timestamp": now.isoformat(),
            },
        )
    except SnapshotError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=500,
            headers=headers,
            content={"status": "error", "error": str(e), "timestamp": now.isoformat()},
        )

    fetched_at = snapshot.fetched_at
    if fetched_at.tzinfo is None:
        fetched_at = fetched_at.replace(tzinfo=timezone.utc)
    hours_since = (now - fetched_at).total_seconds() / 3600

    last_scrape_status = None
    last = run_log.read(limit=1)
    if last:
        last_scrape_status = {
            k: last[0].get(k)
            for k in ["timestamp", "success", "duration_seconds", "beers_count"]
        }

    healthy = hours_since < STALE_AFTER_HOURS and snapshot.count > 0
    return JSONResponse(
        status_code=200 if healthy else 503,
        headers=headers,
        content={
            "status": "healthy" if healthy else "degraded",
            "data": {
                "last_fetch": snapshot.model_dump(mode="json", include={"fetched_at"})["fetched_at"],
                "hours_since_last_fetch": round(hours_since, 2),
                "beers_count": snapshot.count,
                "last_scrape_duration": snapshot.scrape_duration_seconds,
                "last_scrape_status": last_scrape_status,
            },
            "timestamp": now.isoformat(),
        },
    )


# Run uvicorn externally or here
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=API_PORT)
