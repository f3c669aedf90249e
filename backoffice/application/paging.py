"""Listing helpers shared by the query services.

Page bounds, sort-key resolution and the escaped ``ILIKE`` search
predicate. Everything here builds SQLAlchemy expressions; nothing
touches the session.
"""

from typing import Optional, Mapping, Tuple
from sqlalchemy import or_
from sqlalchemy.orm import Query

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100
LIKE_ESCAPE = "\\"
# Keeps (page - 1) * page_size inside a signed 64-bit OFFSET
MAX_PAGE = (2 ** 63 - 1) // MAX_PAGE_SIZE

def normalize_page(page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
    """Clamp a requested page/page size into ``1 <= page <= MAX_PAGE`` and ``1 <= page_size <= 100``."""
    normalized_page = min(page, MAX_PAGE) if page is not None and page >= 1 else 1
    if page_size is None or page_size <= 0:
        normalized_size = DEFAULT_PAGE_SIZE
    else:
        normalized_size = min(page_size, MAX_PAGE_SIZE)
    return normalized_page, normalized_size

def is_descending(sort_order: Optional[str], default: bool = False) -> bool:
    """Only ``desc`` (any case) selects descending; an absent token uses ``default``."""
    if sort_order is None:
        return default
    return sort_order.lower() == "desc"

def resolve_sort(sort_by: Optional[str], columns: Mapping[str, object], default: str):
    """Return the sort expression for ``sort_by``, falling back to ``default`` for unknown keys."""
    key = (sort_by or "").strip().lower()
    return columns.get(key, columns[default])

def ordering(column, descending: bool, *tie_breaks) -> tuple:
    primary = column.desc() if descending else column.asc()
    return (primary, *tie_breaks)

def escape_like(value: str) -> str:
    # Backslash first, otherwise the escapes added for % and _ get doubled
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )

def contains_pattern(term: Optional[str]) -> Optional[str]:
    """``%term%`` with wildcards escaped, or None for a blank term."""
    if term is None or not term.strip():
        return None
    return f"%{escape_like(term.strip())}%"

def contains_any(pattern: str, *columns):
    """Case-insensitive substring match of ``pattern`` against any of ``columns``."""
    return or_(*(column.ilike(pattern, escape=LIKE_ESCAPE) for column in columns))

def paginate(query: Query, page: int, page_size: int) -> Query:
    return query.offset((page - 1) * page_size).limit(page_size)
