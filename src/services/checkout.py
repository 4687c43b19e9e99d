# turns the current cart into an order
from typing import Optional

from db import crud
from db.models import Order, OrderStatus
from services.cart import CartViewModel
from utils.errors import OrderPlacementError, ValidationError
from utils.logger import get_logger
from utils.notify import Notifier
from utils.pure import format_price

_logger = get_logger(__name__)


async def place_order(
    cart: CartViewModel,
    user_id: Optional[str],
    notifier: Optional[Notifier] = None,
    customer_email: Optional[str] = None,
) -> Order:
    """
    Record the cart as an order and empty the cart.

    The header is written first, then one item per line with the unit price
    as it is right now. If an item write fails the header stays behind; there
    is no cleanup. The confirmation email is best effort. Stock is not touched.
    """
    if not user_id:
        raise ValidationError("Sign in to place an order.")
    items = cart.items
    if not items:
        raise ValidationError("Your cart is empty.")

    total = cart.total()
    try:
        order = await crud.insert_order(user_id, total, OrderStatus.IN_REVIEW)
        for item in items:
            await crud.insert_order_item(
                order.id, item.product_id, item.quantity, item.product.price
            )
    except Exception as exc:
        _logger.error(f"Error placing order for user {user_id}: {exc}")
        raise OrderPlacementError() from exc

    _logger.info(f"Order {order.id} placed by {user_id}, total {total}")

    if notifier is not None:
        try:
            await notifier.send_email(
                "order_confirmation",
                None,
                {
                    "order_id": order.id,
                    "customer_email": customer_email or user_id,
                    "total": format_price(total),
                    "items": [
                        {
                            "name": i.product.name,
                            "quantity": i.quantity,
                            "unit_price": str(i.product.price),
                        }
                        for i in items
                    ],
                },
            )
        except Exception as exc:
            _logger.error(f"Error sending confirmation for order {order.id}: {exc}")

    result = await cart.clear()
    if not result:
        _logger.warning(f"Order {order.id} placed but the cart could not be cleared")
    return order
