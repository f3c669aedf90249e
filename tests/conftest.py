import os

# Must be set before backoffice is imported: the module-level engine reads it
os.environ["DATABASE_URL"] = "sqlite://"

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.main import app
from backoffice.application.cache import CustomerCache, get_customer_cache
from backoffice.domain.models import Customer, Order, OrderLine, Product
from backoffice.infrastructure.db import get_db, init_models

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_models(engine)
    yield engine
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()

@pytest.fixture
def customer_cache():
    return CustomerCache(ttl=60)

@pytest.fixture
def client(session_factory, customer_cache):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_customer_cache] = lambda: customer_cache
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def make_customer(db):
    def _make(name="Bruce Wayne", email=None, phone="+55 11 99999-9999",
              birth_date=datetime(1980, 2, 19, tzinfo=timezone.utc)):
        customer = Customer(
            id=uuid.uuid4(),
            name=name,
            email=email or f"{name.split()[0].lower()}@example.com",
            phone=phone,
            birth_date=birth_date,
        )
        db.add(customer)
        db.commit()
        return customer
    return _make

@pytest.fixture
def make_product(db):
    def _make(title="Batarang", price="10.00", slug=None, description=None):
        product = Product(
            id=uuid.uuid4(),
            title=title,
            description=description or f"{title} description",
            slug=slug or title.lower().replace(" ", "-"),
            price=Decimal(price),
        )
        db.add(product)
        db.commit()
        return product
    return _make

@pytest.fixture
def make_order(db):
    """Insert an order directly; ``lines`` holds (product_id, quantity, line_total) tuples."""
    def _make(customer_id, lines, created_at=None):
        created_at = created_at or datetime.now(timezone.utc)
        order = Order(id=uuid.uuid4(), customer_id=customer_id, created_at=created_at, updated_at=created_at)
        for position, (product_id, quantity, total) in enumerate(lines):
            order.lines.append(
                OrderLine(
                    id=uuid.uuid4(),
                    position=position,
                    product_id=product_id,
                    quantity=quantity,
                    total=Decimal(str(total)),
                )
            )
        db.add(order)
        db.commit()
        return order
    return _make
