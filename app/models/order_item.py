from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order


class OrderItem(SQLModel, table=True):
    """One product line of an order, with the price snapshot taken at checkout."""

    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: Optional[int] = Field(default=None, foreign_key="orders.id", ondelete="CASCADE", index=True)
    position: int = 0

    product_id: str
    name: str
    price: float
    quantity: int
    subtotal: float
    image: str = ""

    order: Optional["Order"] = Relationship(back_populates="products")
