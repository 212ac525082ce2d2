import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, func, select

from app.exceptions import DuplicateKeyError, NotFoundError, StoreError, ValidationError
from app.models.order import Order
from app.schemas.orders_schemas import OrderRead
from app.services.aggregation import Document, run_pipeline
from app.utils.time import utcnow

logger = logging.getLogger(__name__)


# Document paths that map onto a single column, for sorting.
FIELD_COLUMNS = {
    "orderNumber": Order.order_number,
    "orderDate": Order.order_date,
    "createdAt": Order.created_at,
    "updatedAt": Order.updated_at,
    "status": Order.status,
    "paymentMethod": Order.payment_method,
    "emailSent": Order.email_sent,
    "customer.fullName": Order.customer_full_name,
    "customer.email": Order.customer_email,
    "customer.phone": Order.customer_phone,
    "customer.city": Order.customer_city,
    "orderSummary.productsTotal": Order.products_total,
    "orderSummary.deliveryFee": Order.delivery_fee,
    "orderSummary.totalPrice": Order.total_price,
    "orderSummary.totalItems": Order.total_items,
    "deliveryInfo.estimatedDelivery": Order.estimated_delivery,
}


def _is_order_number_conflict(exc: IntegrityError) -> bool:
    # sqlite names the column, postgres the ix_orders_order_number index
    return "order_number" in str(exc.orig)


def column_for(path: str):
    column = FIELD_COLUMNS.get(path)
    if column is None:
        raise ValidationError(f"Unsupported field: {path}", [path])
    return column


@dataclass
class OrderFilter:
    status: Optional[str] = None
    exclude_status: Optional[str] = None
    city: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def clauses(self) -> list:
        clauses = []
        if self.status:
            clauses.append(Order.status == self.status)
        if self.exclude_status:
            clauses.append(Order.status != self.exclude_status)
        if self.city:
            clauses.append(Order.customer_city.icontains(self.city, autoescape=True))
        if self.start_date:
            clauses.append(Order.order_date >= self.start_date)
        if self.end_date:
            clauses.append(Order.order_date <= self.end_date)
        return clauses


@dataclass
class SortSpec:
    field: str = "orderDate"
    descending: bool = True

    def order_by(self):
        column = column_for(self.field)
        # id as tiebreaker keeps pages stable
        if self.descending:
            return [column.desc(), Order.id.desc()]
        return [column.asc(), Order.id.asc()]


class OrderRepository:
    """Persistence and query operations over orders, backed by a SQLModel session."""

    def __init__(self, session: Session):
        self.session = session

    # -------------------------
    # WRITES
    # -------------------------

    def create(self, order: Order) -> Order:
        self.session.add(order)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if not _is_order_number_conflict(exc):
                raise StoreError("Error creating order", str(exc.orig)) from exc
            logger.warning(f"Duplicate order number {order.order_number}")
            raise DuplicateKeyError(detail=str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Error creating order", str(exc)) from exc
        self.session.refresh(order)
        return order

    def save(self, order: Order) -> Order:
        self.session.add(order)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Error updating order", str(exc)) from exc
        self.session.refresh(order)
        return order

    def update_by_id(self, order_id: int, apply: Callable[[Order], None]) -> Order:
        order = self.find_by_id(order_id)
        apply(order)
        return self.save(order)

    def update_many_status(self, order_ids: Sequence[int], status: str) -> int:
        """Sets ``status`` on the given orders; returns how many actually changed."""
        if not order_ids:
            return 0
        statement = (
            update(Order)
            .where(Order.id.in_(list(order_ids)))
            .where(Order.status != status)
            .values(status=status)
        )
        try:
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Error updating orders", str(exc)) from exc
        return result.rowcount

    def mark_email_sent(self, order_id: int, sent_at: Optional[datetime] = None) -> None:
        """Targeted update of the email flags only; safe to reapply."""
        statement = (
            update(Order)
            .where(Order.id == order_id)
            .values(email_sent=True, email_sent_at=sent_at or utcnow())
        )
        try:
            self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Error updating order", str(exc)) from exc

    def delete_by_id(self, order_id: int) -> None:
        order = self.find_by_id(order_id)
        try:
            self.session.delete(order)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StoreError("Error deleting order", str(exc)) from exc

    # -------------------------
    # READS
    # -------------------------

    def find_by_id(self, order_id: int) -> Order:
        try:
            order = self.session.get(Order, order_id)
        except SQLAlchemyError as exc:
            raise StoreError("Error fetching order", str(exc)) from exc
        if not order:
            raise NotFoundError()
        return order

    def find(
        self,
        order_filter: Optional[OrderFilter] = None,
        sort: Optional[SortSpec] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[Order]:
        query = select(Order)
        for clause in (order_filter or OrderFilter()).clauses():
            query = query.where(clause)
        query = query.order_by(*(sort or SortSpec()).order_by())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as exc:
            raise StoreError("Error fetching orders", str(exc)) from exc

    def count(self, order_filter: Optional[OrderFilter] = None) -> int:
        query = select(func.count(Order.id))
        for clause in (order_filter or OrderFilter()).clauses():
            query = query.where(clause)
        try:
            return self.session.exec(query).one()
        except SQLAlchemyError as exc:
            raise StoreError("Error counting orders", str(exc)) from exc

    def documents(self) -> List[Document]:
        """
        All orders as nested documents, in insertion order.

        One query for the orders plus one for their line items; callers that
        run several pipelines should load once and pass the list to
        ``aggregate``.
        """
        try:
            orders = self.session.exec(select(Order).order_by(Order.id)).all()
            return [OrderRead.from_model(order).to_document() for order in orders]
        except SQLAlchemyError as exc:
            raise StoreError("Error fetching orders", str(exc)) from exc

    def aggregate(self, stages: list, documents: Optional[List[Document]] = None) -> List[Document]:
        if documents is None:
            documents = self.documents()
        return run_pipeline(documents, stages)
