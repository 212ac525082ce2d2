from typing import Dict, List

from pydantic import Field

from app.schemas.orders_schemas import CamelModel, OrderRead


class TopProduct(CamelModel):
    id: str = Field(alias="_id")
    name: str
    total_quantity: int
    total_revenue: float
    order_count: int


class DailyOrders(CamelModel):
    id: str = Field(alias="_id")
    day: str
    count: int
    revenue: float


class DashboardSnapshot(CamelModel):
    """Aggregated analytics consumed by the operational dashboard."""

    total_orders: int
    total_revenue: float
    pending_orders: int
    confirmed_orders: int
    preparing_orders: int
    shipped_orders: int
    delivered_orders: int
    cancelled_orders: int
    avg_order_value: float
    today_orders: int
    today_revenue: float
    total_customers: int
    customer_retention_rate: float
    avg_order_processing_time: float
    cancellation_rate: float
    orders_by_status: Dict[str, int]
    revenue_by_status: Dict[str, float]
    revenue_by_payment_method: Dict[str, float]
    top_products: List[TopProduct]
    recent_orders: List[OrderRead]
    orders_over_time: List[DailyOrders]

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
