"""Sales and revenue reports.

Orders in the requested window are loaded with their lines and
aggregated in memory. Money aggregates are rounded once, at the end,
to two places (half away from zero); timestamps leave as UTC whole
seconds through the response schemas.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Tuple
import uuid
from sqlalchemy.orm import Session, selectinload
from backoffice.core.logging_config import get_logger
from backoffice.domain.models import Customer, Order, OrderLine
from .errors import InvalidReportParameterError
from .schemas import (
    CustomerSalesDetail,
    CustomerSalesRollup,
    RevenueBucket,
    RevenuePeriod,
    SalesOrder,
    SalesOrderLine,
    as_utc,
)

logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0")

def round_currency(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def parse_group_by(value: Optional[str]) -> RevenuePeriod:
    """``day``/``month``/``year`` in any case; empty or missing means ``day``."""
    token = (value or "").strip().lower()
    if not token:
        return RevenuePeriod.DAY
    try:
        return RevenuePeriod(token)
    except ValueError:
        raise InvalidReportParameterError("Invalid groupBy value. Use day, month or year.") from None

def normalize_range(
    start: Optional[datetime], end: Optional[datetime]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """UTC bounds, swapped when given in reverse order."""
    start = as_utc(start) if start is not None else None
    end = as_utc(end) if end is not None else None
    if start is not None and end is not None and start > end:
        return end, start
    return start, end

def period_start(timestamp: datetime, period: RevenuePeriod) -> datetime:
    utc = as_utc(timestamp)
    if period is RevenuePeriod.YEAR:
        return utc.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    if period is RevenuePeriod.MONTH:
        return utc.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return utc.replace(hour=0, minute=0, second=0, microsecond=0)

def period_end(start: datetime, period: RevenuePeriod) -> datetime:
    """Inclusive end: the next period's start minus the smallest tick."""
    if period is RevenuePeriod.YEAR:
        following = start.replace(year=start.year + 1)
    elif period is RevenuePeriod.MONTH:
        if start.month == 12:
            following = start.replace(year=start.year + 1, month=1)
        else:
            following = start.replace(month=start.month + 1)
    else:
        following = start + timedelta(days=1)
    return following - timedelta(microseconds=1)

def _order_total(order: Order) -> Decimal:
    return sum((line.total for line in order.lines), ZERO)

def _order_items(order: Order) -> int:
    return sum(line.quantity for line in order.lines)

class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def _orders(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        customer_id: Optional[uuid.UUID] = None,
        with_products: bool = False,
    ) -> list[Order]:
        lines = selectinload(Order.lines)
        if with_products:
            lines = lines.selectinload(OrderLine.product)
        query = self.db.query(Order).options(lines)
        if customer_id is not None:
            query = query.filter(Order.customer_id == customer_id)
        if start is not None:
            query = query.filter(Order.created_at >= start)
        if end is not None:
            query = query.filter(Order.created_at <= end)
        return query.order_by(Order.created_at.desc(), Order.id.desc()).all()

    def sales_by_customer(
        self,
        customer_id: uuid.UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Optional[CustomerSalesDetail]:
        """Order-level sales detail for one customer, newest order first; None if the customer is unknown."""
        customer = self.db.get(Customer, customer_id)
        if customer is None:
            return None

        start, end = normalize_range(start, end)
        orders = []
        raw_total = ZERO
        for order in self._orders(start, end, customer_id=customer_id, with_products=True):
            order_total = _order_total(order)
            raw_total += order_total
            lines = [
                SalesOrderLine(
                    id=line.id,
                    product_id=line.product_id,
                    product_title=line.product.title if line.product else "",
                    product_description=line.product.description if line.product else "",
                    product_price=round_currency(line.product.price if line.product else ZERO),
                    quantity=line.quantity,
                    total=round_currency(line.total),
                )
                for line in order.lines
            ]
            orders.append(
                SalesOrder(
                    id=order.id,
                    total=round_currency(order_total),
                    created_at=order.created_at,
                    updated_at=order.updated_at,
                    lines=lines,
                )
            )

        return CustomerSalesDetail(
            customer_id=customer.id,
            customer_name=customer.name,
            customer_email=customer.email,
            customer_phone=customer.phone,
            orders_count=len(orders),
            total_items=sum(line.quantity for order in orders for line in order.lines),
            total_amount=round_currency(raw_total),
            orders=orders,
        )

    def sales_by_customers(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[CustomerSalesRollup]:
        """One rollup row per customer with orders in the window, biggest spender first."""
        start, end = normalize_range(start, end)
        by_customer: dict[uuid.UUID, list[Order]] = defaultdict(list)
        for order in self._orders(start, end):
            by_customer[order.customer_id].append(order)
        if not by_customer:
            return []

        customers = {
            customer.id: customer
            for customer in self.db.query(Customer).filter(Customer.id.in_(list(by_customer))).all()
        }

        rows = []
        for customer_id, orders in by_customer.items():
            customer = customers.get(customer_id)
            totals = [_order_total(order) for order in orders]
            created = [as_utc(order.created_at) for order in orders]
            raw_total = sum(totals, ZERO)
            rows.append((
                raw_total,
                CustomerSalesRollup(
                    customer_id=customer_id,
                    customer_name=customer.name if customer else "",
                    customer_email=customer.email if customer else "",
                    orders_count=len(orders),
                    total_items=sum(_order_items(order) for order in orders),
                    total_amount=round_currency(raw_total),
                    average_ticket=round_currency(raw_total / len(orders)),
                    largest_order_total=round_currency(max(totals)),
                    smallest_order_total=round_currency(min(totals)),
                    first_order_at=min(created),
                    last_order_at=max(created),
                ),
            ))

        # Names compare case-insensitively
        rows.sort(key=lambda row: (-row[0], row[1].customer_name.casefold()))
        return [row for _, row in rows]

    def revenue_by_period(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        group_by: RevenuePeriod = RevenuePeriod.DAY,
    ) -> list[RevenueBucket]:
        """Orders grouped into UTC day/month/year buckets, oldest bucket first."""
        start, end = normalize_range(start, end)
        buckets: dict[datetime, list[Order]] = defaultdict(list)
        for order in self._orders(start, end):
            buckets[period_start(order.created_at, group_by)].append(order)

        result = [self._bucket(key, group_by, orders) for key, orders in sorted(buckets.items())]
        logger.debug(
            "Revenue report computed",
            extra={"extra_fields": {"group_by": group_by.value, "buckets": len(result)}},
        )
        return result

    def _bucket(self, start: datetime, group_by: RevenuePeriod, orders: Iterable[Order]) -> RevenueBucket:
        orders = list(orders)
        totals = [_order_total(order) for order in orders]
        raw_total = sum(totals, ZERO)
        return RevenueBucket(
            period_start=start,
            period_end=period_end(start, group_by),
            total_amount=round_currency(raw_total),
            orders_count=len(orders),
            total_items=sum(_order_items(order) for order in orders),
            average_ticket=round_currency(raw_total / len(orders)),
            largest_order_total=round_currency(max(totals)),
            smallest_order_total=round_currency(min(totals)),
        )
