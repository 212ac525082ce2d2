from fastapi import Depends, Request
from sqlmodel import Session

from app.database import get_engine, get_session
from app.notifications import ConfirmationDispatcher, NotificationSender
from app.services.analytics_service import AnalyticsAggregator
from app.services.order_ingestor import OrderIngestor, OrderPolicy
from app.services.order_repository import OrderRepository


def get_notifier(request: Request) -> NotificationSender:
    # built once by the lifespan handler in app.main
    return request.app.state.notifier


def get_order_repository(session: Session = Depends(get_session)) -> OrderRepository:
    return OrderRepository(session)


def get_dispatcher(
    notifier: NotificationSender = Depends(get_notifier),
    engine=Depends(get_engine),
) -> ConfirmationDispatcher:
    return ConfirmationDispatcher(notifier, engine)


def get_order_ingestor(
    repository: OrderRepository = Depends(get_order_repository),
    dispatcher: ConfirmationDispatcher = Depends(get_dispatcher),
) -> OrderIngestor:
    return OrderIngestor(repository, dispatcher, OrderPolicy.from_settings())


def get_analytics_aggregator(
    repository: OrderRepository = Depends(get_order_repository),
) -> AnalyticsAggregator:
    return AnalyticsAggregator(repository)
