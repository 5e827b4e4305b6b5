from __future__ import annotations

import pytest

from hcontrol.errors import ValidationError
from hcontrol.pagination import parse_page_params, parse_sort_params

SORTABLE = {"createdAt": None, "name": None}


def test_pagination_defaults():
    assert parse_page_params({}) == {"limit": 50, "offset": 0}


def test_pagination_custom_params():
    req = parse_page_params({"limit": "5", "offset": "10"}, default_limit=100)
    assert req == {"limit": 5, "offset": 10}


def test_pagination_clamps_when_asked():
    assert parse_page_params({"limit": "900"}, max_limit=500, clamp=True)["limit"] == 500


@pytest.mark.parametrize(
    "args, code",
    [
        ({"limit": "900"}, "INVALID_LIMIT"),
        ({"limit": "0"}, "INVALID_LIMIT"),
        ({"limit": "ten"}, "INVALID_LIMIT"),
        ({"offset": "-1"}, "INVALID_OFFSET"),
        ({"offset": "x"}, "INVALID_OFFSET"),
    ],
)
def test_pagination_invalid(args, code):
    with pytest.raises(ValidationError) as exc:
        parse_page_params(args)
    assert exc.value.code == code


def test_sort_defaults_and_order():
    assert parse_sort_params({}, SORTABLE) == {"sort": "createdAt", "order": "desc"}
    assert parse_sort_params({"sort": "name", "order": "ASC"}, SORTABLE) == {"sort": "name", "order": "asc"}


def test_sort_rejects_unknown_values():
    with pytest.raises(ValidationError) as exc:
        parse_sort_params({"sort": "password"}, SORTABLE)
    assert exc.value.code == "INVALID_SORT_FIELD"
    with pytest.raises(ValidationError) as exc:
        parse_sort_params({"order": "up"}, SORTABLE)
    assert exc.value.code == "INVALID_ORDER"
