from app.models.order_item import OrderItem
from app.models.order import Order

# add ALL models here
