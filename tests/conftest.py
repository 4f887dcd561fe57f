"""Shared test fixtures."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ.pop("CHAPA_SECRET_KEY", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from storefront.database import get_session
from storefront.main import app
from storefront.models.order import Order  # noqa: F401
from storefront.routes.orders import get_payment_gateway


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_payment_gateway] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def cart_items():
    return [
        {
            "id": "espresso-01",
            "name": "Espresso",
            "price": 10,
            "quantity": 2,
            "image": "https://example.com/espresso.jpg",
        }
    ]


@pytest.fixture
def billing_form():
    return {
        "fullName": "Abebe Bikila",
        "email": "abebe@example.com",
        "phone": "+251 911 234567",
        "address": "12 Bole Road",
        "city": "Addis Ababa",
        "postalCode": "10001",
    }


@pytest.fixture
def order_payload(billing_form, cart_items):
    return {
        **billing_form,
        "shippingOption": "standard",
        "paymentMethod": "pending",
        "cartItems": cart_items,
        "subtotal": 20,
        "discount": 2,
        "tax": 1.8,
        "shippingCost": 5,
        "total": 24.8,
    }
