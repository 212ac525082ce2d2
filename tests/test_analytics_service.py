from datetime import datetime, timedelta

import pytest
from sqlalchemy import event

from app.constants.order_status import ORDER_STATUSES
from app.services.analytics_service import AnalyticsAggregator
from app.services.order_repository import OrderRepository
from conftest import make_order

NOW = datetime(2026, 10, 17, 12, 0)


@pytest.fixture()
def aggregator(session):
    return AnalyticsAggregator(OrderRepository(session), clock=lambda: NOW)


def test_empty_store_has_no_divisions_by_zero(aggregator):
    snapshot = aggregator.compute_snapshot()

    assert snapshot.total_orders == 0
    assert snapshot.total_revenue == 0
    assert snapshot.avg_order_value == 0
    assert snapshot.customer_retention_rate == 0
    assert snapshot.cancellation_rate == 0
    assert snapshot.avg_order_processing_time == 0
    assert snapshot.top_products == []
    assert snapshot.recent_orders == []
    assert snapshot.orders_over_time == []
    assert snapshot.orders_by_status == {status: 0 for status in ORDER_STATUSES}


def test_status_counts_partition_the_store(session, aggregator):
    for i in range(1000):
        make_order(
            session,
            status=ORDER_STATUSES[i % len(ORDER_STATUSES)],
            email=f"client{i}@example.com",
            items=(),
            commit=False,
        )
    session.commit()

    snapshot = aggregator.compute_snapshot()

    assert snapshot.total_orders == 1000
    counts = [
        snapshot.pending_orders,
        snapshot.confirmed_orders,
        snapshot.preparing_orders,
        snapshot.shipped_orders,
        snapshot.delivered_orders,
        snapshot.cancelled_orders,
    ]
    assert sum(counts) == 1000
    assert snapshot.orders_by_status["pending"] == 167
    assert snapshot.cancelled_orders == 166


def test_revenue_excludes_cancelled_orders(session, aggregator):
    make_order(session, status="delivered", items=(("Basil", 10.0, 2),))
    make_order(session, status="pending", items=(("Mint", 3.0, 1),))
    make_order(session, status="cancelled", items=(("Rose", 50.0, 1),))

    snapshot = aggregator.compute_snapshot()

    assert snapshot.total_revenue == pytest.approx(27 + 10)
    assert snapshot.avg_order_value == pytest.approx(37 / 2)
    assert snapshot.cancellation_rate == pytest.approx(100 / 3)
    assert snapshot.revenue_by_status == {"delivered": 27.0, "pending": 10.0}
    assert "cancelled" not in snapshot.revenue_by_status


def test_revenue_by_payment_method(session, aggregator):
    make_order(session, payment_method="cash_on_delivery")
    make_order(session, payment_method="card")
    make_order(session, payment_method="card")
    make_order(session, payment_method="card", status="cancelled")

    snapshot = aggregator.compute_snapshot()

    assert snapshot.revenue_by_payment_method == {"cash_on_delivery": 27.0, "card": 54.0}


def test_today_figures(session, aggregator):
    make_order(session, order_date=NOW)
    make_order(session, order_date=NOW, status="cancelled")
    make_order(session, order_date=NOW - timedelta(days=2))

    snapshot = aggregator.compute_snapshot()

    # cancelled orders count towards today but not its revenue
    assert snapshot.today_orders == 2
    assert snapshot.today_revenue == 27


def test_customer_retention(session, aggregator):
    make_order(session, email="a@example.com")
    make_order(session, email="a@example.com")
    make_order(session, email="b@example.com")

    snapshot = aggregator.compute_snapshot()

    assert snapshot.total_customers == 2
    assert snapshot.customer_retention_rate == 50


def test_processing_time_only_counts_shipped_orders(session, aggregator):
    start = datetime(2026, 10, 10, 8, 0)
    make_order(session, status="shipped", created_at=start, updated_at=start + timedelta(hours=5))
    make_order(session, status="shipped", created_at=start, updated_at=start + timedelta(hours=3))
    make_order(session, status="delivered", created_at=start, updated_at=start + timedelta(hours=40))

    snapshot = aggregator.compute_snapshot()

    assert snapshot.avg_order_processing_time == pytest.approx(4)


def test_top_products_are_ranked_by_quantity(session, aggregator):
    make_order(session, items=(("Basil", 10.0, 2), ("Mint", 4.0, 5)))
    make_order(session, items=(("Basil", 10.0, 1),))
    make_order(session, items=(("Rose", 30.0, 1),), status="cancelled")

    snapshot = aggregator.compute_snapshot()

    top = [(p.name, p.total_quantity, p.total_revenue, p.order_count) for p in snapshot.top_products]
    # cancelled orders still count as demand
    assert top == [("Mint", 5, 20.0, 1), ("Basil", 3, 30.0, 2), ("Rose", 1, 30.0, 1)]
    assert snapshot.top_products[0].id == "Mint"


def test_top_products_are_capped_at_ten(session, aggregator):
    make_order(session, items=tuple((f"Plant {i}", 1.0, i + 1) for i in range(12)))

    snapshot = aggregator.compute_snapshot()

    assert len(snapshot.top_products) == 10
    assert snapshot.top_products[0].name == "Plant 11"


def test_recent_orders_are_the_last_five_created(session, aggregator):
    created = [make_order(session, created_at=NOW - timedelta(hours=i)) for i in range(7)]

    snapshot = aggregator.compute_snapshot()

    assert [o.order_number for o in snapshot.recent_orders] == [o.order_number for o in created[:5]]


def test_orders_over_time_buckets_last_thirty_days(session, aggregator):
    make_order(session, order_date=datetime(2026, 10, 15, 9, 0))
    make_order(session, order_date=datetime(2026, 10, 15, 18, 0), status="cancelled")
    make_order(session, order_date=datetime(2026, 10, 1, 9, 0))
    make_order(session, order_date=NOW - timedelta(days=31))

    snapshot = aggregator.compute_snapshot()

    days = [(d.day, d.count, d.revenue) for d in snapshot.orders_over_time]
    assert days == [("2026-10-01", 1, 27.0), ("2026-10-15", 2, 54.0)]
    assert snapshot.orders_over_time[0].id == "2026-10-01"


def test_snapshot_json_uses_camel_case(session, aggregator):
    make_order(session)

    body = aggregator.compute_snapshot().to_json()

    assert body["totalOrders"] == 1
    assert "ordersByStatus" in body
    assert body["recentOrders"][0]["orderSummary"]["totalPrice"] == 27
    assert body["topProducts"][0]["_id"] == "Basil"


def test_snapshot_reads_the_store_once(engine, session, aggregator):
    for i in range(50):
        make_order(
            session,
            status=ORDER_STATUSES[i % len(ORDER_STATUSES)],
            email=f"client{i % 7}@example.com",
            items=(("Basil", 10.0, 1), ("Mint", 4.0, 2)),
            commit=False,
        )
    session.commit()
    session.expire_all()

    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", record)
    try:
        snapshot = aggregator.compute_snapshot()
    finally:
        event.remove(engine, "before_cursor_execute", record)

    # one load of the orders and their line items, whatever the row count
    assert len(statements) <= 3
    assert snapshot.total_orders == 50
    assert sum(snapshot.orders_by_status.values()) == 50
    assert snapshot.total_customers == 7
