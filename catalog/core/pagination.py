import math


def compute_total_pages(total_items: int, page_size: int) -> int:
    """ceil(total / limit); an empty result has zero pages"""
    safe_total = max(0, int(total_items))
    safe_page_size = max(1, int(page_size))
    return math.ceil(safe_total / safe_page_size)


def compute_skip(page: int, page_size: int) -> int:
    return (max(1, int(page)) - 1) * max(1, int(page_size))
