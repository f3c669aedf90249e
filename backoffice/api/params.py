from dataclasses import dataclass
from datetime import datetime
from fastapi import Query
from typing import Optional

def _as_int(value: Optional[str]) -> Optional[int]:
    # Unparseable paging values fall back to the defaults instead of failing the request
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None

@dataclass
class ListQuery:
    term: Optional[str] = None
    page: Optional[int] = None
    page_size: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

def list_query(
    term: Optional[str] = Query(None, description="Case-insensitive substring search"),
    page: Optional[str] = Query(None, description="1-based page number"),
    page_size: Optional[str] = Query(None, alias="pageSize", description="Items per page (max 100)"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Sort key"),
    sort_order: Optional[str] = Query(None, alias="sortOrder", description="asc or desc"),
) -> ListQuery:
    return ListQuery(
        term=term,
        page=_as_int(page),
        page_size=_as_int(page_size),
        sort_by=sort_by,
        sort_order=sort_order,
    )

@dataclass
class ReportQuery:
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

def report_query(
    start_date: Optional[datetime] = Query(None, alias="startDate", description="Inclusive lower bound (UTC if no offset)"),
    end_date: Optional[datetime] = Query(None, alias="endDate", description="Inclusive upper bound (UTC if no offset)"),
) -> ReportQuery:
    return ReportQuery(start_date=start_date, end_date=end_date)
