# app/services/order_updates.py
import logging
from typing import List

from pydantic import ValidationError as PydanticValidationError

from app.constants.order_status import ORDER_STATUSES, is_valid_status
from app.exceptions import ValidationError
from app.models.order import Order
from app.schemas.orders_schemas import (
    BulkStatusRequest,
    LineItemRead,
    OrderRead,
    OrderSummaryRead,
    OrderUpdateRequest,
)
from app.services.order_repository import OrderRepository
from app.utils.time import to_naive_utc

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = {
    "fullName": "customer_full_name",
    "phone": "customer_phone",
    "email": "customer_email",
    "city": "customer_city",
    "postalCode": "customer_postal_code",
    "address": "customer_address",
}
REQUIRED_CUSTOMER_FIELDS = ["fullName", "phone", "email", "city", "address"]

DELIVERY_COLUMNS = {
    "city": "delivery_city",
    "address": "delivery_address",
    "estimated_delivery": "estimated_delivery",
}


def _invalid_status(status) -> ValidationError:
    return ValidationError(
        f"Invalid status: {status}. Expected one of: {', '.join(ORDER_STATUSES)}",
        ["status"],
    )


def _same_snapshot(current: OrderRead, payload: OrderUpdateRequest) -> bool:
    """True when products/orderSummary in the payload match what is stored."""
    try:
        if payload.products is not None:
            products = [LineItemRead.model_validate(p) for p in payload.products]
            if products != current.products:
                return False
        if payload.order_summary is not None:
            if OrderSummaryRead.model_validate(payload.order_summary) != current.order_summary:
                return False
    except (PydanticValidationError, TypeError):
        return False
    return True


def apply_update(order: Order, payload: OrderUpdateRequest) -> None:
    """
    Validate a partial/full replace and copy it onto ``order``.

    Line items and the order summary are a point-in-time snapshot; a payload
    may echo them back unchanged but never alter them.
    """
    errors: List[str] = []

    if payload.order_number is not None and payload.order_number != order.order_number:
        errors.append("orderNumber")

    if not _same_snapshot(OrderRead.from_model(order), payload):
        errors.append("products/orderSummary")

    if errors:
        raise ValidationError(
            f"Immutable fields cannot be modified: {', '.join(errors)}", errors
        )

    if payload.status is not None and not is_valid_status(payload.status):
        raise _invalid_status(payload.status)

    if payload.customer is not None:
        blank = [
            field for field in REQUIRED_CUSTOMER_FIELDS
            if field in payload.customer and not payload.customer[field]
        ]
        if blank:
            raise ValidationError(
                f"Missing required customer fields: {', '.join(blank)}", blank
            )
        for field, column in CUSTOMER_COLUMNS.items():
            if field in payload.customer:
                setattr(order, column, str(payload.customer[field] or ""))

    if payload.delivery_info is not None:
        patch = payload.delivery_info
        for field in patch.model_fields_set:
            value = getattr(patch, field)
            if value is not None:
                setattr(order, DELIVERY_COLUMNS[field], to_naive_utc(value) if field == "estimated_delivery" else value)

    if payload.status is not None:
        order.status = payload.status
    if payload.note is not None:
        order.note = payload.note
    if payload.payment_method:
        order.payment_method = payload.payment_method
    if payload.order_date is not None:
        order.order_date = to_naive_utc(payload.order_date)
    if payload.email_sent is not None:
        order.email_sent = payload.email_sent


def update_order(repository: OrderRepository, order_id: int, payload: OrderUpdateRequest) -> Order:
    order = repository.update_by_id(order_id, lambda o: apply_update(o, payload))
    logger.info(f"Order {order.order_number} updated")
    return order


def bulk_update_status(repository: OrderRepository, payload: BulkStatusRequest) -> int:
    if not payload.order_ids or not payload.status:
        raise ValidationError("Order IDs and status are required", ["orderIds", "status"])
    if not is_valid_status(payload.status):
        raise _invalid_status(payload.status)

    modified = repository.update_many_status(payload.order_ids, payload.status)
    logger.info(f"Updated {modified} orders to status: {payload.status}")
    return modified
