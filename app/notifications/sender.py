from typing import Protocol

from app.schemas.orders_schemas import OrderRead


class NotificationSender(Protocol):
    """Delivers the confirmation message for an order; True when delivered."""

    def send(self, order: OrderRead) -> bool:
        ...
