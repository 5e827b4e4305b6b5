from __future__ import annotations

from collections.abc import Mapping
from typing import Literal, TypedDict, cast

from .errors import ValidationError

__all__ = [
    "PageRequest",
    "SortRequest",
    "parse_page_params",
    "parse_sort_params",
]


class PageRequest(TypedDict):
    limit: int
    offset: int


class SortRequest(TypedDict):
    sort: str
    order: Literal["asc", "desc"]


DEFAULT_LIMIT = 50
MAX_LIMIT = 200


def parse_page_params(
    args: Mapping[str, str | None],
    *,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
    clamp: bool = False,
) -> PageRequest:
    """Parse ``limit``/``offset`` query params.

    With ``clamp`` an oversized limit is silently capped, otherwise it is
    rejected with ``INVALID_LIMIT``.
    """
    limit_raw = args.get("limit")
    offset_raw = args.get("offset")
    try:
        limit = int(limit_raw) if limit_raw not in (None, "") else default_limit
    except ValueError as e:
        raise ValidationError("INVALID_LIMIT", f"limit must be an integer between 1 and {max_limit}") from e
    try:
        offset = int(offset_raw) if offset_raw not in (None, "") else 0
    except ValueError as e:
        raise ValidationError("INVALID_OFFSET", "offset must be a non-negative integer") from e
    if limit < 1:
        raise ValidationError("INVALID_LIMIT", f"limit must be an integer between 1 and {max_limit}")
    if limit > max_limit:
        if not clamp:
            raise ValidationError("INVALID_LIMIT", f"limit must be an integer between 1 and {max_limit}")
        limit = max_limit
    if offset < 0:
        raise ValidationError("INVALID_OFFSET", "offset must be a non-negative integer")
    return PageRequest(limit=limit, offset=offset)


def parse_sort_params(
    args: Mapping[str, str | None], allowed: Mapping[str, object], *, default: str = "createdAt"
) -> SortRequest:
    """Resolve ``sort``/``order`` against a whitelist of camelCase field names."""
    sort = args.get("sort") or default
    if sort not in allowed:
        raise ValidationError("INVALID_SORT_FIELD", f"Sort field must be one of: {', '.join(allowed)}")
    order_raw = (args.get("order") or "desc").lower()
    if order_raw not in ("asc", "desc"):
        raise ValidationError("INVALID_ORDER", 'Order must be either "asc" or "desc"')
    return SortRequest(sort=sort, order=cast(Literal["asc", "desc"], order_raw))
