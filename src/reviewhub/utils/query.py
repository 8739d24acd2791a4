"""Query helpers."""

PAGE_SIZE = 100


def fetch_all(queryset, page_size: int = PAGE_SIZE) -> list:
    """Materialize every row matched by `queryset`.

    Protean query sets apply a default limit, so derived values computed over
    a whole population page through the results explicitly.
    """
    items = []
    offset = 0
    while True:
        page = queryset.offset(offset).limit(page_size).all().items
        items.extend(page)
        if len(page) < page_size:
            return items
        offset += page_size
