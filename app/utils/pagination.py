import math

from app.schemas.orders_schemas import OrderRead


def paginate(
    *,
    repository,
    order_filter=None,
    sort=None,
    page: int = 1,
    limit: int = 100,
):
    if page < 1:
        page = 1

    if limit < 1:
        limit = 100

    offset = (page - 1) * limit

    total = repository.count(order_filter)
    orders = repository.find(order_filter, sort, offset=offset, limit=limit)

    return {
        "orders": [OrderRead.from_model(o).to_json() for o in orders],
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
        "total": total,
    }
