import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from app.constants.order_status import OrderStatus, ORDER_STATUSES
from app.schemas.orders_schemas import OrderRead
from app.schemas.summary_schemas import DailyOrders, DashboardSnapshot, TopProduct
from app.services.aggregation import (
    Avg,
    Count,
    Document,
    Group,
    Limit,
    Match,
    Project,
    Sort,
    Sum,
    Unwind,
    all_of,
    eq,
    first_value,
    gte,
    ne,
)
from app.services.order_repository import OrderRepository
from app.utils.time import days_ago, local_midnight_utc, utcnow

logger = logging.getLogger(__name__)

CANCELLED = OrderStatus.cancelled.value
TOP_PRODUCTS_LIMIT = 10
RECENT_ORDERS_LIMIT = 5
ORDERS_OVER_TIME_DAYS = 30


def _ratio(numerator, denominator, scale=1):
    return numerator / denominator * scale if denominator else 0


def _hours_between(doc) -> float:
    return (doc["updatedAt"] - doc["createdAt"]).total_seconds() / 3600


# -------------------------
# PIPELINES
# -------------------------

def revenue_pipeline(*extra_filters):
    return [
        Match(all_of(ne("status", CANCELLED), *extra_filters)),
        Group(None, total=Sum("orderSummary.totalPrice")),
    ]


def revenue_by_pipeline(path: str):
    return [
        Match(ne("status", CANCELLED)),
        Group(path, total=Sum("orderSummary.totalPrice")),
    ]


def top_products_pipeline(limit: int = TOP_PRODUCTS_LIMIT):
    return [
        Unwind("products"),
        Group(
            "products.name",
            totalQuantity=Sum("products.quantity"),
            totalRevenue=Sum("products.subtotal"),
            orderCount=Count(),
        ),
        Sort("totalQuantity", descending=True),
        Limit(limit),
    ]


def orders_over_time_pipeline(since: datetime):
    return [
        Match(gte("orderDate", since)),
        Group(
            lambda doc: doc["orderDate"].strftime("%Y-%m-%d"),
            count=Count(),
            revenue=Sum("orderSummary.totalPrice"),
        ),
        Sort("_id"),
    ]


def status_count_pipeline():
    return [Group("status", count=Count())]


def count_since_pipeline(since: datetime):
    return [
        Match(gte("orderDate", since)),
        Group(None, count=Count()),
    ]


def recent_orders_pipeline(limit: int = RECENT_ORDERS_LIMIT):
    return [
        Sort(lambda doc: (doc["createdAt"], doc["_id"]), descending=True),
        Limit(limit),
    ]


def customer_orders_pipeline():
    return [Group("customer.email", orderCount=Count())]


def processing_time_pipeline():
    return [
        Match(eq("status", OrderStatus.shipped.value)),
        Project(lambda doc: {"processingTime": _hours_between(doc)}),
        Group(None, avgProcessingTime=Avg("processingTime")),
    ]


def _as_mapping(results) -> Dict[str, float]:
    return {item["_id"]: item["total"] for item in results}


class AnalyticsAggregator:
    """
    Read-only dashboard snapshot over the current order collection.

    The collection is read once per snapshot and every figure is a pipeline
    over that same list, so the sub-aggregates always agree with each other.
    """

    def __init__(self, repository: OrderRepository, clock: Callable[[], datetime] = utcnow):
        self.repository = repository
        self.clock = clock

    def status_counts(self, documents: Optional[List[Document]] = None) -> Dict[str, int]:
        counts = {status: 0 for status in ORDER_STATUSES}
        for item in self.repository.aggregate(status_count_pipeline(), documents):
            counts[item["_id"]] = item["count"]
        return counts

    def compute_snapshot(self) -> DashboardSnapshot:
        repo = self.repository
        now = self.clock()

        # one load of the collection, every figure below is derived from it
        docs = repo.documents()

        total_orders = len(docs)
        by_status = self.status_counts(docs)
        cancelled_orders = by_status[CANCELLED]

        total_revenue = first_value(repo.aggregate(revenue_pipeline(), docs), "total")
        revenue_by_status = _as_mapping(repo.aggregate(revenue_by_pipeline("status"), docs))
        revenue_by_payment_method = _as_mapping(repo.aggregate(revenue_by_pipeline("paymentMethod"), docs))

        top_products = [
            TopProduct(
                id=item["_id"],
                name=item["_id"],
                total_quantity=item["totalQuantity"],
                total_revenue=item["totalRevenue"],
                order_count=item["orderCount"],
            )
            for item in repo.aggregate(top_products_pipeline(), docs)
        ]

        recent_orders = [
            OrderRead.model_validate(doc)
            for doc in repo.aggregate(recent_orders_pipeline(), docs)
        ]

        avg_order_value = _ratio(total_revenue, total_orders - cancelled_orders)

        today = local_midnight_utc(now)
        today_orders = first_value(repo.aggregate(count_since_pipeline(today), docs), "count")
        today_revenue = first_value(
            repo.aggregate(revenue_pipeline(gte("orderDate", today)), docs), "total"
        )

        orders_over_time = [
            DailyOrders(id=item["_id"], day=item["_id"], count=item["count"], revenue=item["revenue"])
            for item in repo.aggregate(orders_over_time_pipeline(days_ago(now, ORDERS_OVER_TIME_DAYS)), docs)
        ]

        customers = repo.aggregate(customer_orders_pipeline(), docs)
        total_customers = len(customers)
        repeat_customers = sum(1 for item in customers if item["orderCount"] > 1)
        customer_retention_rate = _ratio(repeat_customers, total_customers, 100)

        avg_order_processing_time = first_value(
            repo.aggregate(processing_time_pipeline(), docs), "avgProcessingTime"
        )

        cancellation_rate = _ratio(cancelled_orders, total_orders, 100)

        logger.debug(f"Dashboard snapshot computed over {total_orders} orders")

        return DashboardSnapshot(
            total_orders=total_orders,
            total_revenue=total_revenue,
            pending_orders=by_status[OrderStatus.pending.value],
            confirmed_orders=by_status[OrderStatus.confirmed.value],
            preparing_orders=by_status[OrderStatus.preparing.value],
            shipped_orders=by_status[OrderStatus.shipped.value],
            delivered_orders=by_status[OrderStatus.delivered.value],
            cancelled_orders=cancelled_orders,
            avg_order_value=avg_order_value,
            today_orders=today_orders,
            today_revenue=today_revenue,
            total_customers=total_customers,
            customer_retention_rate=customer_retention_rate,
            avg_order_processing_time=avg_order_processing_time,
            cancellation_rate=cancellation_rate,
            orders_by_status=by_status,
            revenue_by_status=revenue_by_status,
            revenue_by_payment_method=revenue_by_payment_method,
            top_products=top_products,
            recent_orders=recent_orders,
            orders_over_time=orders_over_time,
        )
