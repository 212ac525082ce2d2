from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import StreamingResponse

from app.constants.order_status import OrderStatus
from app.dependencies.orders import (
    get_analytics_aggregator,
    get_dispatcher,
    get_order_ingestor,
    get_order_repository,
)
from app.notifications import ConfirmationDispatcher
from app.schemas.orders_schemas import (
    BulkStatusRequest,
    OrderCreateRequest,
    OrderRead,
    OrderUpdateRequest,
)
from app.services.analytics_export import build_dashboard_workbook
from app.services.analytics_service import AnalyticsAggregator
from app.services.order_ingestor import OrderIngestor
from app.services.order_repository import OrderFilter, OrderRepository, SortSpec
from app.services.order_updates import bulk_update_status, update_order
from app.utils.pagination import paginate
from app.utils.time import to_naive_utc, utcnow

router = APIRouter()


# -------------------------
# LIST / CREATE
# -------------------------

@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 100,
    status: Optional[OrderStatus] = None,
    city: Optional[str] = None,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sort_by: str = Query("orderDate", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    repository: OrderRepository = Depends(get_order_repository),
):
    order_filter = OrderFilter(
        status=status.value if status else None,
        city=city,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
    )
    sort = SortSpec(sort_by, descending=sort_order != "asc")

    return paginate(
        repository=repository,
        order_filter=order_filter,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.post("", status_code=201)
def create_order(
    payload: OrderCreateRequest,
    background_tasks: BackgroundTasks,
    ingestor: OrderIngestor = Depends(get_order_ingestor),
):
    order = ingestor.ingest(payload, background_tasks)
    return {
        "message": "Order created successfully",
        "order": OrderRead.from_model(order).to_json(),
    }


# -------------------------
# DASHBOARD
# -------------------------

@router.get("/stats/dashboard")
def dashboard_stats(aggregator: AnalyticsAggregator = Depends(get_analytics_aggregator)):
    return aggregator.compute_snapshot().to_json()


@router.get("/stats/export")
def export_dashboard(aggregator: AnalyticsAggregator = Depends(get_analytics_aggregator)):
    buffer = build_dashboard_workbook(aggregator.compute_snapshot())
    filename = f"dashboard_{utcnow().date()}.xlsx"

    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.patch("/bulk/status")
def bulk_status(
    payload: BulkStatusRequest,
    repository: OrderRepository = Depends(get_order_repository),
):
    modified = bulk_update_status(repository, payload)
    return {
        "message": f"Updated {modified} orders to status: {payload.status}",
        "modifiedCount": modified,
    }


# -------------------------
# SINGLE ORDER
# -------------------------

@router.get("/{order_id}")
def get_order(order_id: int, repository: OrderRepository = Depends(get_order_repository)):
    return OrderRead.from_model(repository.find_by_id(order_id)).to_json()


@router.put("/{order_id}")
def replace_order(
    order_id: int,
    payload: OrderUpdateRequest,
    repository: OrderRepository = Depends(get_order_repository),
):
    order = update_order(repository, order_id, payload)
    return {
        "message": "Order updated successfully",
        "order": OrderRead.from_model(order).to_json(),
    }


@router.delete("/{order_id}")
def delete_order(order_id: int, repository: OrderRepository = Depends(get_order_repository)):
    repository.delete_by_id(order_id)
    return {"message": "Order deleted successfully"}


@router.post("/{order_id}/resend-email")
def resend_email(
    order_id: int,
    repository: OrderRepository = Depends(get_order_repository),
    dispatcher: ConfirmationDispatcher = Depends(get_dispatcher),
):
    repository.find_by_id(order_id)
    # blocks until the sender answers; failures surface as NotificationError
    dispatcher.send_confirmation(order_id)
    return {"message": "Order confirmation email sent successfully"}
