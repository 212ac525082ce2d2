from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional

from app.constants.order_status import DEFAULT_STATUS
from app.models.order_item import OrderItem
from app.utils.time import utcnow


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True, max_length=64)

    # customer
    customer_full_name: str
    customer_phone: str
    customer_email: str = Field(index=True)
    customer_city: str = Field(index=True)
    customer_postal_code: str = ""
    customer_address: str

    # order summary
    products_total: float
    delivery_fee: float
    total_price: float
    total_items: int

    status: str = Field(default=DEFAULT_STATUS, index=True)
    order_date: NaiveDatetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    payment_method: str = "cash_on_delivery"

    # delivery info
    delivery_city: str
    delivery_address: str
    estimated_delivery: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime)

    email_sent: bool = False
    email_sent_at: Optional[NaiveDatetime] = Field(default=None, sa_type=DateTime)
    note: str = ""

    # all timestamps are stored as naive UTC, see app.utils.time.utcnow
    created_at: NaiveDatetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    updated_at: NaiveDatetime = Field(
        default_factory=utcnow,
        sa_type=DateTime,
        sa_column_kwargs={"onupdate": utcnow},
    )

    products: List["OrderItem"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "OrderItem.position",
            "lazy": "selectin",
        },
    )
