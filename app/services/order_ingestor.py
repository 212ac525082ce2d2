"""
Order ingestion: untrusted order submission -> validated, persisted Order.

The ingestor owns every construction-time default (order number, delivery fee,
estimated delivery) through an explicit ``OrderPolicy`` so the same rules can
be exercised without a database. Confirmation emails are handed to a
``ConfirmationDispatcher`` on FastAPI background tasks and never affect the
outcome of ``ingest``.
"""
import logging
import math
import random
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from fastapi import BackgroundTasks

from app.config import settings
from app.constants.order_status import DEFAULT_STATUS
from app.exceptions import ValidationError
from app.models.order import Order
from app.models.order_item import OrderItem
from app.schemas.orders_schemas import OrderCreateRequest
from app.services.order_repository import OrderRepository
from app.utils.time import epoch_millis, utcnow

logger = logging.getLogger(__name__)

REQUIRED_CUSTOMER_FIELDS = ["fullName", "phone", "email", "city", "address"]
REQUIRED_PRODUCT_FIELDS = ["name", "price", "quantity"]


@dataclass(frozen=True)
class OrderPolicy:
    delivery_fee: float = 7
    order_number_prefix: str = "PL"
    estimated_delivery_days: int = 3
    default_payment_method: str = "cash_on_delivery"

    @classmethod
    def from_settings(cls, config=settings) -> "OrderPolicy":
        return cls(
            delivery_fee=config.DELIVERY_FEE,
            order_number_prefix=config.ORDER_NUMBER_PREFIX,
            estimated_delivery_days=config.ESTIMATED_DELIVERY_DAYS,
            default_payment_method=config.DEFAULT_PAYMENT_METHOD,
        )


def generate_order_number(prefix: str, now: datetime, rng: random.Random = random) -> str:
    """``<prefix><epoch ms><0-999>``; collisions are possible and left to the store."""
    return f"{prefix}{epoch_millis(now)}{rng.randint(0, 999)}"


def generate_product_id(now: datetime) -> str:
    return f"prod-{epoch_millis(now)}-{uuid.uuid4().hex[:12]}"


# -------------------------
# COERCION
# -------------------------

def _to_number(value: Any) -> Optional[float]:
    """Float for numbers and numeric strings, ``None`` for anything else."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> Optional[int]:
    number = _to_number(value)
    return int(number) if number is not None else None


@dataclass
class LineItem:
    product_id: str
    name: str
    price: float
    quantity: int
    subtotal: float
    image: str = ""


@dataclass
class OrderTotals:
    products_total: float
    delivery_fee: float
    total_price: float
    total_items: int


def compute_totals(
    lines: List[LineItem],
    overrides: Optional[Mapping[str, Any]],
    default_delivery_fee: float,
) -> OrderTotals:
    """
    Resolve the order summary, honouring caller overrides that are numeric.

    The computed products total is evaluated once and shared by the
    ``productsTotal`` and ``totalPrice`` fallbacks.
    """
    overrides = overrides or {}

    computed_products_total = sum(line.price * line.quantity for line in lines)
    products_total = _to_number(overrides.get("productsTotal"))
    if products_total is None:
        products_total = computed_products_total

    delivery_fee = _to_number(overrides.get("deliveryFee"))
    if delivery_fee is None:
        delivery_fee = default_delivery_fee

    total_price = _to_number(overrides.get("totalPrice"))
    if total_price is None:
        total_price = products_total + delivery_fee

    total_items = _to_int(overrides.get("totalItems"))
    if total_items is None:
        total_items = sum(line.quantity for line in lines)

    return OrderTotals(
        products_total=products_total,
        delivery_fee=delivery_fee,
        total_price=total_price,
        total_items=total_items,
    )


class OrderIngestor:
    def __init__(
        self,
        repository: OrderRepository,
        dispatcher,
        policy: Optional[OrderPolicy] = None,
        clock: Callable[[], datetime] = utcnow,
        order_number_factory: Optional[Callable[[datetime], str]] = None,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.policy = policy or OrderPolicy.from_settings()
        self.clock = clock
        self.order_number_factory = order_number_factory or (
            lambda now: generate_order_number(self.policy.order_number_prefix, now)
        )

    # -------------------------
    # VALIDATION
    # -------------------------

    def validate(self, request: OrderCreateRequest) -> None:
        if request.customer is None:
            raise ValidationError("Customer information is required", ["customer"])

        products = request.products
        if not isinstance(products, list) or len(products) == 0:
            raise ValidationError(
                "Products array is required and cannot be empty", ["products"]
            )

        customer = request.customer.model_dump(by_alias=True)
        missing = [field for field in REQUIRED_CUSTOMER_FIELDS if not customer.get(field)]
        if missing:
            raise ValidationError(
                f"Missing required customer fields: {', '.join(missing)}", missing
            )

        for index, product in enumerate(products, start=1):
            item = product if isinstance(product, dict) else {}
            offending = [
                f"products[{index}].{field}"
                for field in REQUIRED_PRODUCT_FIELDS
                if not item.get(field)
            ]
            if offending:
                raise ValidationError(
                    f"Product {index} is missing required fields (name, price, or quantity)",
                    offending,
                )

    # -------------------------
    # NORMALIZATION
    # -------------------------

    def normalize_products(self, products: List[Dict[str, Any]], now: datetime) -> List[LineItem]:
        lines = []
        for index, item in enumerate(products, start=1):
            price = _to_number(item.get("price"))
            quantity = _to_int(item.get("quantity"))
            if price is None or quantity is None:
                raise ValidationError(
                    f"Product {index} has an invalid price or quantity",
                    [f"products[{index}].price", f"products[{index}].quantity"],
                )
            lines.append(
                LineItem(
                    product_id=str(item.get("productId") or generate_product_id(now)),
                    name=str(item["name"]),
                    price=price,
                    quantity=quantity,
                    subtotal=price * quantity,
                    image=str(item.get("image") or ""),
                )
            )
        return lines

    def build_order(self, request: OrderCreateRequest) -> Order:
        """Validate and assemble an unsaved Order."""
        self.validate(request)

        now = self.clock()
        customer = request.customer
        lines = self.normalize_products(request.products, now)
        totals = compute_totals(lines, request.order_summary, self.policy.delivery_fee)

        return Order(
            order_number=self.order_number_factory(now),
            customer_full_name=str(customer.full_name),
            customer_phone=str(customer.phone),
            customer_email=str(customer.email),
            customer_city=str(customer.city),
            customer_postal_code=str(customer.postal_code or ""),
            customer_address=str(customer.address),
            products_total=totals.products_total,
            delivery_fee=totals.delivery_fee,
            total_price=totals.total_price,
            total_items=totals.total_items,
            status=DEFAULT_STATUS,
            order_date=now,
            payment_method=request.payment_method or self.policy.default_payment_method,
            delivery_city=str(customer.city),
            delivery_address=str(customer.address),
            estimated_delivery=now + timedelta(days=self.policy.estimated_delivery_days),
            email_sent=False,
            note="",
            created_at=now,
            updated_at=now,
            products=[
                OrderItem(
                    position=position,
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    subtotal=line.subtotal,
                    image=line.image,
                )
                for position, line in enumerate(lines)
            ],
        )

    def ingest(self, request: OrderCreateRequest, background_tasks: BackgroundTasks) -> Order:
        logger.debug(f"Received order data: {request.model_dump(by_alias=True)}")
        order = self.build_order(request)
        order = self.repository.create(order)
        logger.info(f"Order saved successfully: {order.order_number}")

        # response goes out before the email is attempted
        background_tasks.add_task(self.dispatcher.send_in_background, order.id)
        return order
