from datetime import datetime, timedelta
from itertools import count

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.database import build_engine, get_engine
from app.dependencies.orders import get_notifier
from app.main import app
from app.models import Order, OrderItem

_numbers = count(1)


class FakeSender:
    """Records every order it is asked to confirm."""

    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.sent = []

    def send(self, order):
        self.sent.append(order.order_number)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture()
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def sender():
    return FakeSender()


@pytest.fixture()
def client(engine, sender):
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_notifier] = lambda: sender
    yield TestClient(app)
    app.dependency_overrides.clear()


def order_payload(**overrides):
    payload = {
        "customer": {
            "fullName": "Amira Ben Salah",
            "phone": "+216 20 123 456",
            "email": "amira@example.com",
            "city": "Tunis",
            "postalCode": "1002",
            "address": "12 Rue de Marseille",
        },
        "products": [
            {"productId": "basil-01", "name": "Basil", "price": 10, "quantity": 2, "image": "basil.png"},
        ],
    }
    payload.update(overrides)
    return payload


def make_order(
    session,
    *,
    status="pending",
    email="client@example.com",
    city="Tunis",
    payment_method="cash_on_delivery",
    order_date=None,
    created_at=None,
    updated_at=None,
    items=(("Basil", 10.0, 2),),
    delivery_fee=7.0,
    commit=True,
):
    """Insert an order directly, bypassing ingestion, with full control over dates."""
    order_date = order_date or datetime(2026, 10, 1, 12, 0)
    created_at = created_at or order_date
    products = [
        OrderItem(
            position=position,
            product_id=f"p-{position}",
            name=name,
            price=price,
            quantity=quantity,
            subtotal=price * quantity,
        )
        for position, (name, price, quantity) in enumerate(items)
    ]
    products_total = sum(p.subtotal for p in products)
    order = Order(
        order_number=f"TEST{next(_numbers)}",
        customer_full_name="Test Client",
        customer_phone="123",
        customer_email=email,
        customer_city=city,
        customer_address="1 Street",
        products_total=products_total,
        delivery_fee=delivery_fee,
        total_price=products_total + delivery_fee,
        total_items=sum(p.quantity for p in products),
        status=status,
        order_date=order_date,
        payment_method=payment_method,
        delivery_city=city,
        delivery_address="1 Street",
        estimated_delivery=order_date + timedelta(days=3),
        created_at=created_at,
        updated_at=updated_at or created_at,
        products=products,
    )
    session.add(order)
    if commit:
        session.commit()
        session.refresh(order)
    return order
