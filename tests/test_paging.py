import pytest

from backoffice.application.paging import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE,
    MAX_PAGE_SIZE,
    contains_pattern,
    escape_like,
    is_descending,
    normalize_page,
    resolve_sort,
)

@pytest.mark.parametrize(
    "page, page_size, expected",
    [
        (None, None, (1, DEFAULT_PAGE_SIZE)),
        (0, 0, (1, DEFAULT_PAGE_SIZE)),
        (-3, -10, (1, DEFAULT_PAGE_SIZE)),
        (2, 10, (2, 10)),
        (1, 100, (1, 100)),
        (1, 101, (1, MAX_PAGE_SIZE)),
        (7, 10_000, (7, MAX_PAGE_SIZE)),
        (10 ** 20, 25, (MAX_PAGE, 25)),
    ],
)
def test_normalize_page_bounds(page, page_size, expected):
    assert normalize_page(page, page_size) == expected

def test_normalized_values_always_in_range():
    for page in range(-5, 6):
        for size in (-1, 0, 1, 50, 100, 101, 500):
            p, s = normalize_page(page, size)
            assert 1 <= p <= MAX_PAGE
            assert 1 <= s <= MAX_PAGE_SIZE

@pytest.mark.parametrize("token", ["desc", "DESC", "Desc"])
def test_desc_token_is_case_insensitive(token):
    assert is_descending(token) is True

@pytest.mark.parametrize("token", ["asc", "", "descending", " desc", "down"])
def test_anything_but_desc_is_ascending(token):
    assert is_descending(token) is False

def test_absent_direction_uses_default():
    assert is_descending(None) is False
    assert is_descending(None, default=True) is True
    assert is_descending("asc", default=True) is False

def test_resolve_sort_falls_back_to_default():
    columns = {"name": "NAME", "email": "EMAIL", "birthdate": "BIRTH"}
    assert resolve_sort("Email", columns, "name") == "EMAIL"
    assert resolve_sort("birthDate", columns, "name") == "BIRTH"
    assert resolve_sort("shoe_size", columns, "name") == "NAME"
    assert resolve_sort(None, columns, "name") == "NAME"

def test_escape_like_escapes_wildcards_and_backslash():
    assert escape_like("100%") == "100\\%"
    assert escape_like("a_b") == "a\\_b"
    assert escape_like("c:\\temp") == "c:\\\\temp"
    assert escape_like("\\%") == "\\\\\\%"

def test_contains_pattern():
    assert contains_pattern(None) is None
    assert contains_pattern("   ") is None
    assert contains_pattern("  wayne ") == "%wayne%"
    assert contains_pattern("50%_off") == "%50\\%\\_off%"

def test_largest_page_offset_fits_in_64_bits():
    page, size = normalize_page(10 ** 30, MAX_PAGE_SIZE)
    assert (page - 1) * size <= 2 ** 63 - 1
