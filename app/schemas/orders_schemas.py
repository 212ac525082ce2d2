from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- REQUEST PAYLOADS ----------
# Field values stay loosely typed: the ingestor owns validation and coercion
# so it can report every missing field in one error.

class CustomerPayload(CamelModel):
    model_config = ConfigDict(extra="ignore")

    full_name: Any = None
    phone: Any = None
    email: Any = None
    city: Any = None
    postal_code: Any = None
    address: Any = None


class OrderCreateRequest(CamelModel):
    model_config = ConfigDict(extra="ignore")

    customer: Optional[CustomerPayload] = None
    products: Any = None
    order_summary: Optional[Dict[str, Any]] = None
    payment_method: Optional[str] = None


class DeliveryInfoPatch(CamelModel):
    city: Optional[str] = None
    address: Optional[str] = None
    estimated_delivery: Optional[datetime] = None


class OrderUpdateRequest(CamelModel):
    model_config = ConfigDict(extra="ignore")

    order_number: Optional[str] = None
    customer: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    note: Optional[str] = None
    payment_method: Optional[str] = None
    delivery_info: Optional[DeliveryInfoPatch] = None
    order_date: Optional[datetime] = None
    email_sent: Optional[bool] = None
    products: Optional[Any] = None
    order_summary: Optional[Any] = None


class BulkStatusRequest(CamelModel):
    order_ids: Optional[List[int]] = None
    status: Optional[str] = None


# ---------- READ MODELS ----------

class CustomerRead(CamelModel):
    full_name: str
    phone: str
    email: str
    city: str
    postal_code: str = ""
    address: str


class LineItemRead(CamelModel):
    product_id: str
    name: str
    price: float
    quantity: int
    subtotal: float
    image: str = ""


class OrderSummaryRead(CamelModel):
    products_total: float
    delivery_fee: float
    total_price: float
    total_items: int


class DeliveryInfoRead(CamelModel):
    city: str
    address: str
    estimated_delivery: Optional[datetime] = None


class OrderRead(CamelModel):
    id: int = Field(alias="_id")
    order_number: str
    customer: CustomerRead
    products: List[LineItemRead]
    order_summary: OrderSummaryRead
    status: str
    order_date: datetime
    payment_method: str
    delivery_info: DeliveryInfoRead
    email_sent: bool
    email_sent_at: Optional[datetime] = None
    note: str = ""
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, order) -> "OrderRead":
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer=CustomerRead(
                full_name=order.customer_full_name,
                phone=order.customer_phone,
                email=order.customer_email,
                city=order.customer_city,
                postal_code=order.customer_postal_code or "",
                address=order.customer_address,
            ),
            products=[
                LineItemRead(
                    product_id=item.product_id,
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    subtotal=item.subtotal,
                    image=item.image or "",
                )
                for item in order.products
            ],
            order_summary=OrderSummaryRead(
                products_total=order.products_total,
                delivery_fee=order.delivery_fee,
                total_price=order.total_price,
                total_items=order.total_items,
            ),
            status=order.status,
            order_date=order.order_date,
            payment_method=order.payment_method,
            delivery_info=DeliveryInfoRead(
                city=order.delivery_city,
                address=order.delivery_address,
                estimated_delivery=order.estimated_delivery,
            ),
            email_sent=order.email_sent,
            email_sent_at=order.email_sent_at,
            note=order.note or "",
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def to_document(self) -> dict:
        """Nested camelCase dict, datetimes left as ``datetime``."""
        return self.model_dump(by_alias=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

