from sqlalchemy.orm import Session
from typing import Optional
import uuid
from backoffice.core.logging_config import get_logger
from backoffice.domain.models import Customer
from .cache import CustomerCache
from .paging import contains_any, contains_pattern, is_descending, normalize_page, ordering, paginate, resolve_sort
from .schemas import CustomerCreate, CustomerRead, Page, as_utc

logger = get_logger(__name__)

SORT_COLUMNS = {
    "name": Customer.name,
    "email": Customer.email,
    "birthdate": Customer.birth_date,
}
DEFAULT_SORT = "name"

class CustomerService:
    """Customer CRUD and search. Reads go through the customer cache; writes invalidate it."""

    def __init__(self, db: Session, cache: CustomerCache):
        self.db = db
        self.cache = cache

    def search(
        self,
        term: Optional[str] = None,
        page: Optional[int] = None,
        page_size: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Page[CustomerRead]:
        page, page_size = normalize_page(page, page_size)
        key = (term, page, page_size, sort_by, sort_order)
        return self.cache.search(key, lambda: self._search(term, page, page_size, sort_by, sort_order))

    def _search(self, term, page, page_size, sort_by, sort_order) -> Page[CustomerRead]:
        query = self.db.query(Customer)
        pattern = contains_pattern(term)
        if pattern:
            query = query.filter(contains_any(pattern, Customer.name, Customer.email, Customer.phone))

        total = query.count()
        column = resolve_sort(sort_by, SORT_COLUMNS, DEFAULT_SORT)
        query = query.order_by(
            *ordering(column, is_descending(sort_order), Customer.name.asc(), Customer.id.asc())
        )
        items = [CustomerRead.model_validate(c) for c in paginate(query, page, page_size).all()]
        return Page[CustomerRead](items=items, total=total, page=page, page_size=page_size)

    def get(self, customer_id: uuid.UUID) -> Optional[CustomerRead]:
        return self.cache.detail(customer_id, lambda: self._get(customer_id))

    def _get(self, customer_id: uuid.UUID) -> Optional[CustomerRead]:
        customer = self.db.get(Customer, customer_id)
        return CustomerRead.model_validate(customer) if customer else None

    def create(self, data: CustomerCreate) -> CustomerRead:
        obj = Customer(
            id=uuid.uuid4(),
            name=data.name,
            email=data.email,
            phone=data.phone,
            birth_date=as_utc(data.birth_date),
        )
        self.db.add(obj)
        self.db.commit()
        self.cache.invalidate()
        logger.info("Customer created", extra={"extra_fields": {"customer_id": str(obj.id)}})
        return CustomerRead.model_validate(obj)

    def update(self, customer_id: uuid.UUID, data: CustomerCreate) -> Optional[CustomerRead]:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            return None
        customer.name = data.name
        customer.email = data.email
        customer.phone = data.phone
        customer.birth_date = as_utc(data.birth_date)
        self.db.commit()
        self.cache.invalidate()
        logger.info("Customer updated", extra={"extra_fields": {"customer_id": str(customer_id)}})
        return CustomerRead.model_validate(customer)

    def delete(self, customer_id: uuid.UUID) -> bool:
        customer = self.db.get(Customer, customer_id)
        if not customer:
            return False
        self.db.delete(customer)
        self.db.commit()
        self.cache.invalidate()
        logger.info("Customer deleted", extra={"extra_fields": {"customer_id": str(customer_id)}})
        return True
