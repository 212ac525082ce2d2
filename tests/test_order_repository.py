from datetime import datetime

import pytest
from sqlalchemy import DateTime
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from app.exceptions import DuplicateKeyError, NotFoundError, StoreError, ValidationError
from app.models import Order, OrderItem
from app.services.order_repository import OrderFilter, OrderRepository, SortSpec
from conftest import make_order


@pytest.fixture()
def repository(session):
    return OrderRepository(session)


def test_filters_combine(session, repository):
    make_order(session, status="pending", city="Tunis", order_date=datetime(2026, 10, 1))
    make_order(session, status="pending", city="La Marsa", order_date=datetime(2026, 10, 5))
    make_order(session, status="shipped", city="Tunis", order_date=datetime(2026, 10, 5))
    make_order(session, status="pending", city="tunis nord", order_date=datetime(2026, 10, 9))

    assert repository.count(OrderFilter(status="pending")) == 3
    assert repository.count(OrderFilter(city="TUN")) == 3
    assert repository.count(OrderFilter(exclude_status="pending")) == 1
    window = OrderFilter(start_date=datetime(2026, 10, 2), end_date=datetime(2026, 10, 6))
    assert repository.count(window) == 2
    both = OrderFilter(status="pending", city="tunis", start_date=datetime(2026, 10, 2))
    assert [o.customer_city for o in repository.find(both)] == ["tunis nord"]


def test_default_sort_is_newest_order_date_first(session, repository):
    older = make_order(session, order_date=datetime(2026, 10, 1))
    newer = make_order(session, order_date=datetime(2026, 10, 2))

    assert [o.id for o in repository.find()] == [newer.id, older.id]
    ascending = repository.find(sort=SortSpec("orderDate", descending=False))
    assert [o.id for o in ascending] == [older.id, newer.id]


def test_sort_by_nested_field(session, repository):
    cheap = make_order(session, items=(("Basil", 1.0, 1),))
    pricey = make_order(session, items=(("Rose", 90.0, 1),))

    result = repository.find(sort=SortSpec("orderSummary.totalPrice", descending=True))

    assert [o.id for o in result] == [pricey.id, cheap.id]


def test_unknown_sort_field_is_rejected(repository):
    with pytest.raises(ValidationError):
        repository.find(sort=SortSpec("customer.favouriteColour"))


def test_offset_and_limit(session, repository):
    for day in range(1, 6):
        make_order(session, order_date=datetime(2026, 10, day))

    page = repository.find(offset=2, limit=2)

    assert [o.order_date.day for o in page] == [3, 2]


def test_find_by_id_missing(repository):
    with pytest.raises(NotFoundError):
        repository.find_by_id(12345)


def test_update_many_status_counts_real_changes(session, repository):
    a = make_order(session, status="pending")
    b = make_order(session, status="confirmed")
    c = make_order(session, status="pending")

    modified = repository.update_many_status([a.id, b.id, 999], "confirmed")

    assert modified == 1
    session.expire_all()
    assert repository.find_by_id(a.id).status == "confirmed"
    assert repository.find_by_id(c.id).status == "pending"


def test_update_many_status_with_no_ids(repository):
    assert repository.update_many_status([], "shipped") == 0


def test_delete_cascades_to_line_items(session, repository):
    order = make_order(session, items=(("Basil", 10.0, 1), ("Mint", 2.0, 3)))

    repository.delete_by_id(order.id)

    assert repository.count() == 0
    assert session.exec(select(OrderItem)).all() == []


def test_products_keep_their_submission_order(session, repository):
    order = make_order(session, items=(("Zinnia", 1.0, 1), ("Aloe", 1.0, 1), ("Mint", 1.0, 1)))
    session.expire_all()

    stored = repository.find_by_id(order.id)

    assert [p.name for p in stored.products] == ["Zinnia", "Aloe", "Mint"]


def test_documents_are_camel_case(session, repository):
    make_order(session)

    (doc,) = list(repository.documents())

    assert doc["orderSummary"]["totalPrice"] == 27
    assert doc["products"][0]["name"] == "Basil"
    assert isinstance(doc["orderDate"], datetime)
    assert isinstance(doc["_id"], int)


def test_mark_email_sent(session, repository):
    order = make_order(session)

    repository.mark_email_sent(order.id, datetime(2026, 10, 17, 8, 0))
    session.expire_all()

    stored = session.get(Order, order.id)
    assert stored.email_sent is True
    assert stored.email_sent_at == datetime(2026, 10, 17, 8, 0)


def test_timestamp_columns_store_naive_utc(session, repository):
    for name in ("order_date", "estimated_delivery", "email_sent_at", "created_at", "updated_at"):
        column = Order.__table__.c[name]
        assert type(column.type) is DateTime
        assert column.type.timezone is False

    order = repository.create(make_order(session, order_date=datetime(2026, 10, 1, 12, 30), commit=False))
    session.expire_all()

    stored = repository.find_by_id(order.id)
    assert stored.order_date == datetime(2026, 10, 1, 12, 30)
    assert stored.order_date.tzinfo is None


def test_city_filter_treats_wildcards_literally(session, repository):
    make_order(session, city="Tunis")
    make_order(session, city="Sidi_Bou Said")

    assert repository.count(OrderFilter(city="%")) == 0
    assert repository.count(OrderFilter(city="i_B")) == 1
    assert repository.count(OrderFilter(city="_")) == 1


def test_duplicate_order_number_on_create(session, repository):
    first = make_order(session)
    clash = make_order(session, commit=False)
    clash.order_number = first.order_number

    with pytest.raises(DuplicateKeyError):
        repository.create(clash)


def test_other_integrity_errors_are_store_errors(session, repository):
    order = make_order(session, commit=False)
    order.customer_full_name = None

    with pytest.raises(StoreError) as exc:
        repository.create(order)

    assert exc.value.message == "Error creating order"
    assert repository.count() == 0


def test_read_failures_are_store_errors(repository, monkeypatch):
    def broken_get(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(Session, "get", broken_get)

    with pytest.raises(StoreError) as exc:
        repository.find_by_id(1)

    assert exc.value.message == "Error fetching order"
