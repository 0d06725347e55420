# api/stats.py
import math
import pandas as pd

INF = math.inf

ABV_BUCKETS = (
    [-INF, 4, 5.5, 7, 9, INF],
    [
        "low (0-4%)",
        "session (4-5.5%)",
        "standard (5.5-7%)",
        "strong (7-9%)",
        "very_strong (9%+)",
    ],
)
IBU_BUCKETS = (
    [-INF, 20, 40, 60, INF],
    ["low (0-20)", "medium (20-40)", "high (40-60)", "very_high (60+)"],
)
RATING_BUCKETS = (
    [-INF, 2.5, 3.25, 3.75, 4.25, INF],
    [
        "poor (0-2.5)",
        "fair (2.5-3.25)",
        "good (3.25-3.75)",
        "very_good (3.75-4.25)",
        "excellent (4.25-5)",
    ],
)

COLUMNS = ["name", "category", "subcategory", "brewery", "style", "container", "abv", "ibu", "rating"]


def _counts(series):
    # first-appearance order, missing values dropped
    values = series.dropna()
    counts = values.groupby(values, sort=False).size()
    return {str(k): int(v) for k, v in counts.items()}


def _top(series, n=10):
    counts = series.dropna().value_counts()
    return {
        "total": int(counts.size),
        "top_10": [{"name": str(k), "count": int(v)} for k, v in counts.head(n).items()],
    }


def _numeric(series, buckets, as_int=False):
    bins, labels = buckets
    values = pd.to_numeric(series, errors="coerce").dropna()
    summary = {
        "min": None,
        "max": None,
        "average": None,
        "distribution": {label: 0 for label in labels},
    }
    if values.empty:
        return summary

    cast = int if as_int else float
    summary["min"] = cast(values.min())
    summary["max"] = cast(values.max())
    summary["average"] = round(float(values.mean()), 2)

    # lower bound inclusive: abv 4.0 is "session", not "low"
    binned = pd.cut(values, bins=bins, labels=labels, right=False)
    counts = binned.value_counts()
    summary["distribution"] = {label: int(counts.get(label, 0)) for label in labels}
    return summary


def compute_stats(beers):
    """
    Aggregate statistics over a snapshot's beers.

    Args:
        beers (list[BeerRecord]): beers to summarize

    Returns:
        dict: ``total_beers``, ``by_category``, ``by_subcategory``,
            ``containers``, ``breweries`` and ``styles`` (total distinct plus
            top 10 by count), and ``abv`` / ``ibu`` / ``rating`` summaries
            (min, max, average rounded to 2 decimals, bucket distribution).
    """
    df = pd.DataFrame([b.model_dump() for b in beers], columns=COLUMNS)

    return {
        "total_beers": len(df),
        "by_category": _counts(df["category"]),
        "by_subcategory": _counts(df["subcategory"]),
        "breweries": _top(df["brewery"]),
        "styles": _top(df["style"]),
        "abv": _numeric(df["abv"], ABV_BUCKETS),
        "ibu": _numeric(df["ibu"], IBU_BUCKETS, as_int=True),
        "rating": _numeric(df["rating"], RATING_BUCKETS),
        "containers": _counts(df["container"]),
    }
