from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional
import uuid
from backoffice.infrastructure.db import get_db
from backoffice.application.reports import ReportService, parse_group_by
from backoffice.application.schemas import CustomerSalesDetail, CustomerSalesRollup, RevenueBucket
from .params import ReportQuery, report_query

router = APIRouter(prefix="/v1/reports", tags=["reports"])

# A startDate later than endDate is swapped by the report service, never rejected.

@router.get("/sales-by-customer", response_model=list[CustomerSalesRollup])
def sales_by_customers(query: ReportQuery = Depends(report_query), db: Session = Depends(get_db)):
    """Per-customer sales rollup, sorted by total amount (desc) then customer name."""
    return ReportService(db).sales_by_customers(query.start_date, query.end_date)

@router.get("/sales-by-customer/{customer_id}", response_model=CustomerSalesDetail)
def sales_by_customer(
    customer_id: uuid.UUID,
    query: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
):
    """Order-level sales detail for one customer."""
    report = ReportService(db).sales_by_customer(customer_id, query.start_date, query.end_date)
    if report is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return report

@router.get("/revenue-by-period", response_model=list[RevenueBucket])
def revenue_by_period(
    group_by: Optional[str] = Query("day", alias="groupBy", description="day, month or year"),
    query: ReportQuery = Depends(report_query),
    db: Session = Depends(get_db),
):
    period = parse_group_by(group_by)
    return ReportService(db).revenue_by_period(query.start_date, query.end_date, period)
