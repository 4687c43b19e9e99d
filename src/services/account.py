# the signed-in customer's own profile and order history
from typing import List, Optional, Tuple

from db import crud
from db.models import Order, OrderItem, Product, Profile
from utils.errors import backend_errors


async def load_account(user_id: str) -> Tuple[Optional[Profile], List[Order]]:
    with backend_errors(f"loading account {user_id}", "Could not load your account."):
        profile = await crud.get_profile(user_id)
        orders = await crud.list_orders(user_id)
    return profile, orders


async def order_detail(
    order_id: str,
) -> Tuple[Optional[Order], List[Tuple[OrderItem, Optional[Product]]]]:
    """Order header plus each item with its product (None if since deleted)."""
    with backend_errors(f"loading order {order_id}", "Could not load this order."):
        order, items = await crud.get_order_detail(order_id)
        if order is None:
            return None, []
        lines = []
        for item in items:
            lines.append((item, await crud.get_product(item.product_id)))
    return order, lines


async def update_profile(user_id: str, full_name: str, phone: str) -> bool:
    with backend_errors(f"updating profile {user_id}", "Could not save your profile."):
        return await crud.update_profile(
            user_id, full_name=full_name.strip(), phone=phone.strip()
        )
