# moves the anonymous cart into the signed-in user's cart
from typing import List, Optional

from db import crud
from db.models import CartItem
from services.cart import read_local_cart, upsert_cart_line
from utils.local_storage import CART_KEY, LocalStorage
from utils.logger import get_logger

_logger = get_logger(__name__)


async def merge_local_cart(
    user_id: str, storage: LocalStorage
) -> Optional[List[CartItem]]:
    """
    Add every locally saved line to the user's server cart, then drop the
    local copy and return the server cart. Returns None when there was nothing
    to merge.

    Lines are written one by one and not as a unit: if a write fails the error
    propagates, lines before it stay merged and the local copy is kept, so a
    retry counts those lines twice.
    """
    local_items = read_local_cart(storage)
    if not local_items:
        return None

    _logger.info(f"Merging {len(local_items)} local cart line(s) for user {user_id}")
    for item in local_items:
        await upsert_cart_line(user_id, item.product_id, item.quantity)

    storage.remove_item(CART_KEY)
    return await crud.list_cart(user_id)
