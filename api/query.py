# api/query.py
SORT_FIELDS = ("name", "abv", "ibu", "rating", "brewery")
TEXT_FIELDS = ("name", "brewery")


def filter_beers(
    beers,
    category=None,
    subcategory=None,
    search=None,
    min_abv=None,
    max_abv=None,
    min_rating=None,
):
    """
    Filter BeerRecords with simple AND-combined conditions.

    ``search`` is a case-insensitive substring match on name, brewery and
    style. Numeric bounds are inclusive; a beer without a value never matches
    a numeric bound.
    """
    result = list(beers)
    if category:
        result = [b for b in result if b.category == category]
    if subcategory:
        result = [b for b in result if b.subcategory == subcategory]
    if search:
        needle = search.lower()
        result = [
            b
            for b in result
            if needle in b.name.lower()
            or (b.brewery and needle in b.brewery.lower())
            or (b.style and needle in b.style.lower())
        ]
    if min_abv is not None:
        result = [b for b in result if b.abv is not None and b.abv >= min_abv]
    if max_abv is not None:
        result = [b for b in result if b.abv is not None and b.abv <= max_abv]
    if min_rating is not None:
        result = [b for b in result if b.rating is not None and b.rating >= min_rating]
    return result


def sort_beers(beers, sort_by, order="asc"):
    """Sort by one field; beers missing that field always go last."""
    present = [b for b in beers if getattr(b, sort_by) is not None]
    missing = [b for b in beers if getattr(b, sort_by) is None]
    if sort_by in TEXT_FIELDS:
        key = lambda b: getattr(b, sort_by).lower()
    else:
        key = lambda b: getattr(b, sort_by)
    present.sort(key=key, reverse=(order == "desc"))
    return present + missing


def paginate(items, page, page_size):
    start = (page - 1) * page_size
    return items[start : start + page_size]
