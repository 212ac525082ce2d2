from enum import Enum


class OrderStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    preparing = "preparing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


ORDER_STATUSES = [status.value for status in OrderStatus]

DEFAULT_STATUS = OrderStatus.pending.value


def is_valid_status(value) -> bool:
    return value in ORDER_STATUSES
