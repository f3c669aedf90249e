from pydantic import BaseModel, AfterValidator, PlainSerializer
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Generic, Optional, TypeVar
import uuid

def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive timestamps, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def normalize_timestamp(value: datetime) -> datetime:
    """UTC with fractional seconds dropped, as rendered to API callers."""
    return as_utc(value).replace(microsecond=0)

# Rendered as a JSON number rather than pydantic's default decimal string
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Timestamp = Annotated[datetime, AfterValidator(normalize_timestamp)]

T = TypeVar("T")

class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class Page(CamelModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

# Customers

class CustomerCreate(CamelModel):
    name: str
    email: str
    phone: str
    birth_date: datetime

class CustomerRead(CamelModel):
    id: uuid.UUID
    name: str
    email: str
    phone: str
    birth_date: Timestamp

# Products

class ProductCreate(CamelModel):
    title: str
    description: str
    slug: str
    price: Decimal

class ProductRead(CamelModel):
    id: uuid.UUID
    title: str
    description: str
    slug: str
    price: Money

# Orders

class OrderLineCreate(CamelModel):
    product_id: uuid.UUID
    quantity: int

class OrderCreate(CamelModel):
    customer_id: uuid.UUID
    lines: Optional[list[OrderLineCreate]] = None

class OrderLineRead(CamelModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_title: str
    quantity: int
    total: Money

class OrderRead(CamelModel):
    id: uuid.UUID
    customer_id: uuid.UUID
    total: Money
    created_at: Timestamp
    updated_at: Timestamp
    lines: list[OrderLineRead]

class OrderSummary(OrderRead):
    customer_name: str

# Reports

class RevenuePeriod(str, Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"

class SalesOrderLine(CamelModel):
    id: uuid.UUID
    product_id: uuid.UUID
    product_title: str
    product_description: str
    product_price: Money
    quantity: int
    total: Money

class SalesOrder(CamelModel):
    id: uuid.UUID
    total: Money
    created_at: Timestamp
    updated_at: Timestamp
    lines: list[SalesOrderLine]

class CustomerSalesDetail(CamelModel):
    customer_id: uuid.UUID
    customer_name: str
    customer_email: str
    customer_phone: str
    orders_count: int
    total_items: int
    total_amount: Money
    orders: list[SalesOrder]

class CustomerSalesRollup(CamelModel):
    customer_id: uuid.UUID
    customer_name: str
    customer_email: str
    orders_count: int
    total_items: int
    total_amount: Money
    average_ticket: Money
    largest_order_total: Money
    smallest_order_total: Money
    first_order_at: Timestamp
    last_order_at: Timestamp

class RevenueBucket(CamelModel):
    period_start: Timestamp
    period_end: Timestamp
    total_amount: Money
    orders_count: int
    total_items: int
    average_ticket: Money
    largest_order_total: Money
    smallest_order_total: Money
