import math

from flask import request

from coachhub.utils.formatting import parse_int


def page_params(default_limit=10, max_limit=100):
    page = parse_int(request.args.get("page"), 1, minimum=1)
    limit = parse_int(request.args.get("limit"), default_limit, minimum=1, maximum=max_limit)
    return page, limit


def pagination(page, limit, total):
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_previous_page": page > 1,
    }


def display_datetime(value):
    """``Jan 5, 2025, 3:30 PM`` style, or N/A."""
    if not value:
        return "N/A"
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{value.strftime('%b')} {value.day}, {value.year}, {hour}:{value.minute:02d} {suffix}"
