"""Shared fixtures: a fresh in-memory database per test and a small catalog."""

import os

# must be set before storefront.utils.settings is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DUPLICATE_GUARD_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import storefront.data.models  # noqa: F401
from storefront.api import create_app
from storefront.api.dependencies import get_duplicate_guard, get_notifier
from storefront.data.database import Base, build_engine, get_db
from storefront.services.cart_service import CartService
from storefront.services.duplicate_guard import InMemoryDuplicateGuard
from storefront.services.order_status_service import OrderStatusService
from storefront.services.purchase_service import PurchaseService
from tests.fakes import FakeClock, FakeNotifier, add_product


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def catalog(db):
    """
    product 1 "Mysore Pak": variant 12 (50.00, stock 10), variant 9 (30.00, stock 5)
    product 2 "Kaju Katli": variant 5 (120.00, stock 3)
    """
    add_product(db, 1, "Mysore Pak", [(12, "500", "50.00", 10), (9, "250", "30.00", 5)])
    add_product(db, 2, "Kaju Katli", [(5, "1", "120.00", 3, "kg")])
    db.commit()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def guard(clock):
    return InMemoryDuplicateGuard(window=1.5, clock=clock)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def cart_service(db):
    return CartService(db)


@pytest.fixture
def status_service(db):
    return OrderStatusService(db)


@pytest.fixture
def purchase_service(db, guard, notifier):
    return PurchaseService(db=db, guard=guard, notifier=notifier)


@pytest.fixture
def client(db, guard, notifier):
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_duplicate_guard] = lambda: guard
    app.dependency_overrides[get_notifier] = lambda: notifier
    return TestClient(app)
