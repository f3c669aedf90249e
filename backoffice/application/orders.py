from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload
from typing import Optional
import uuid
from backoffice.core.logging_config import get_logger
from backoffice.domain.models import Customer, Order, OrderLine, Product, utcnow
from .errors import OrderRejectedError
from .paging import contains_any, contains_pattern, is_descending, normalize_page, ordering, paginate, resolve_sort
from .schemas import OrderCreate, OrderLineRead, OrderRead, OrderSummary, Page

logger = get_logger(__name__)

# Derived order total, correlated to the outer orders row
ORDER_TOTAL = (
    select(func.coalesce(func.sum(OrderLine.total), 0))
    .where(OrderLine.order_id == Order.id)
    .correlate(Order)
    .scalar_subquery()
)

SORT_COLUMNS = {
    "createdat": Order.created_at,
    "updatedat": Order.updated_at,
    "total": ORDER_TOTAL,
}
DEFAULT_SORT = "createdat"

def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None

def _line_read(line: OrderLine, product_title: Optional[str] = None) -> OrderLineRead:
    if product_title is None:
        product_title = line.product.title if line.product else ""
    return OrderLineRead(
        id=line.id,
        product_id=line.product_id,
        product_title=product_title,
        quantity=line.quantity,
        total=line.total,
    )

def _order_read(order: Order) -> OrderRead:
    return OrderRead(
        id=order.id,
        customer_id=order.customer_id,
        total=order.total,
        created_at=order.created_at,
        updated_at=order.updated_at,
        lines=[_line_read(line) for line in order.lines],
    )

class OrderService:
    """Order lookup, search and creation. Orders are append-only: no update or delete."""

    def __init__(self, db: Session):
        self.db = db

    def _with_graph(self):
        return self.db.query(Order).options(
            selectinload(Order.customer),
            selectinload(Order.lines).selectinload(OrderLine.product),
        )

    def get(self, order_id: uuid.UUID) -> Optional[OrderRead]:
        order = self._with_graph().filter(Order.id == order_id).first()
        return _order_read(order) if order else None

    def search(
        self,
        term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[OrderSummary]:
        page, page_size = normalize_page(page, page_size)
        query = self.db.query(Order)
        pattern = contains_pattern(term)
        if pattern:
            conditions = [
                Order.customer.has(contains_any(pattern, Customer.name, Customer.email, Customer.phone)),
                Order.lines.any(
                    OrderLine.product.has(contains_any(pattern, Product.title, Product.description, Product.slug))
                ),
            ]
            identifier = _parse_uuid(term.strip())
            if identifier is not None:
                conditions += [Order.id == identifier, Order.customer_id == identifier]
            query = query.filter(or_(*conditions))

        total = query.count()
        column = resolve_sort(sort_by, SORT_COLUMNS, DEFAULT_SORT)
        # Newest first unless the caller asks for a direction explicitly
        descending = is_descending(sort_order, default=True)
        query = query.order_by(*ordering(column, descending, Order.created_at.desc(), Order.id.desc()))
        query = query.options(
            selectinload(Order.customer),
            selectinload(Order.lines).selectinload(OrderLine.product),
        )

        items = []
        for order in paginate(query, page, page_size).all():
            summary = _order_read(order).model_dump()
            summary["customer_name"] = order.customer.name if order.customer else ""
            items.append(OrderSummary(**summary))
        return Page[OrderSummary](items=items, total=total, page=page, page_size=page_size)

    def create(self, data: OrderCreate) -> OrderRead:
        """
        Create an order with its lines in a single commit.

        Everything is validated before anything is added to the session:
        at least one line, positive quantities, an existing customer and
        every referenced product resolvable. Line totals are the product
        price at this moment times the quantity.
        """
        lines = data.lines or []
        if not lines:
            self._reject("Order must contain at least one line", data)
        if any(line.quantity <= 0 for line in lines):
            self._reject("Line quantities must be greater than zero", data)
        if self.db.get(Customer, data.customer_id) is None:
            self._reject("Customer not found", data)

        product_ids = {line.product_id for line in lines}
        products = {
            product.id: product
            for product in self.db.query(Product).filter(Product.id.in_(product_ids)).all()
        }
        if len(products) != len(product_ids):
            self._reject("One or more products not found", data)

        now = utcnow()
        order = Order(id=uuid.uuid4(), customer_id=data.customer_id, created_at=now, updated_at=now)
        for position, line in enumerate(lines):
            product = products[line.product_id]
            order.lines.append(
                OrderLine(
                    id=uuid.uuid4(),
                    position=position,
                    product_id=product.id,
                    quantity=line.quantity,
                    total=product.price * line.quantity,
                )
            )
        self.db.add(order)
        self.db.commit()
        logger.info(
            "Order created",
            extra={"extra_fields": {"order_id": str(order.id), "lines": len(order.lines), "total": str(order.total)}},
        )

        return OrderRead(
            id=order.id,
            customer_id=order.customer_id,
            total=order.total,
            created_at=order.created_at,
            updated_at=order.updated_at,
            lines=[_line_read(line, products[line.product_id].title) for line in order.lines],
        )

    def _reject(self, reason: str, data: OrderCreate) -> None:
        logger.warning(
            f"Order rejected: {reason}",
            extra={"extra_fields": {"customer_id": str(data.customer_id)}},
        )
        raise OrderRejectedError(reason)
