# scraper/models.py
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import datetime


class BeerRecord(BaseModel):
    name: str
    beer_url: str
    image_url: Optional[str] = None
    style: Optional[str] = None
    brewery: Optional[str] = None
    brewery_url: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    abv: Optional[float] = None  # 0-100
    ibu: Optional[int] = None  # 0-200
    rating: Optional[float] = None  # 0-5
    container: Optional[str] = None
    source_menu_url: str


class ScrapeStats(BaseModel):
    total_fetched: int = 0
    total_valid: int = 0
    duplicates_removed: int = 0
    errors: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)


class ScrapeSnapshot(BaseModel):
    source: str
    fetched_at: datetime
    count: int
    scrape_duration_seconds: float
    stats: ScrapeStats
    beers: List[BeerRecord]


class RunLogEntry(BaseModel):
    timestamp: datetime
    success: bool
    duration_seconds: float
    beers_count: Optional[int] = None
    error: Optional[str] = None
    stack: Optional[str] = None
    stats: Optional[ScrapeStats] = None


class ChangeSummary(BaseModel):
    added: int
    removed: int
    updated: int
    total_beers: int


class ChangelogEntry(BaseModel):
    date: datetime
    summary: ChangeSummary
    added: List[dict] = Field(default_factory=list)
    removed: List[dict] = Field(default_factory=list)
    updated: List[dict] = Field(default_factory=list)
