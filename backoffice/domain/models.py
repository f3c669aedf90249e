from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Text, ForeignKey, Numeric, DateTime, Uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
import uuid

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Base(DeclarativeBase):
    pass

class Customer(Base):
    __tablename__ = "customers"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), index=True)
    email: Mapped[str] = mapped_column(String(255))
    phone: Mapped[str] = mapped_column(String(50))
    birth_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))

class Product(Base):
    __tablename__ = "products"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(Text)
    # Intended unique per catalog; uniqueness is left to the data owner
    slug: Mapped[str] = mapped_column(String(200), index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Plain reference (no FK): deleting a customer keeps its order history
    customer_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    lines: Mapped[list["OrderLine"]] = relationship(
        "OrderLine", back_populates="order", cascade="all, delete-orphan", order_by="OrderLine.position"
    )
    customer: Mapped[Optional[Customer]] = relationship(
        Customer, primaryjoin="foreign(Order.customer_id) == Customer.id", viewonly=True
    )

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.lines), Decimal("0"))

class OrderLine(Base):
    __tablename__ = "order_lines"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    # Insertion order of the line within its order
    position: Mapped[int] = mapped_column(default=0)
    # Plain reference (no FK): product deletion is guarded by the service instead
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True)
    quantity: Mapped[int]
    # Price x quantity captured at order creation time
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    order: Mapped[Order] = relationship("Order", back_populates="lines")
    product: Mapped[Optional[Product]] = relationship(
        Product, primaryjoin="foreign(OrderLine.product_id) == Product.id", viewonly=True
    )
