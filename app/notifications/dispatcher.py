import logging
from typing import Callable
from datetime import datetime

from sqlmodel import Session

from app.exceptions import NotFoundError, NotificationError, StoreError
from app.notifications.sender import NotificationSender
from app.schemas.orders_schemas import OrderRead
from app.services.order_repository import OrderRepository
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


class ConfirmationDispatcher:
    """
    Sends the order confirmation and records it on the order.

    Runs in its own session so it can be scheduled after the request that
    created the order has finished.
    """

    def __init__(self, sender: NotificationSender, engine, clock: Callable[[], datetime] = utcnow):
        self.sender = sender
        self.engine = engine
        self.clock = clock

    def send_confirmation(self, order_id: int) -> bool:
        with Session(self.engine) as session:
            repository = OrderRepository(session)
            order = OrderRead.from_model(repository.find_by_id(order_id))

            try:
                sent = self.sender.send(order)
            except Exception as exc:
                logger.exception(f"Confirmation email raised for order {order.order_number}")
                raise NotificationError(detail=str(exc)) from exc

            if not sent:
                raise NotificationError(detail=f"Sender rejected order {order.order_number}")

            # separate write: last write wins against concurrent edits
            repository.mark_email_sent(order_id, self.clock())

        logger.info(f"Order confirmation email sent for order {order.order_number}")
        return True

    def send_in_background(self, order_id: int) -> None:
        try:
            self.send_confirmation(order_id)
        except (NotFoundError, NotificationError, StoreError) as exc:
            logger.error(f"Email sending failed for order {order_id}: {exc.detail or exc.message}")
