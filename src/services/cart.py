"""
The cart as the UI sees it, whatever the auth state.

Every mutation is applied in memory first, then written to the bound backend
(local storage while anonymous, the carts table once signed in). When the write
fails the in-memory list is put back the way it was and the failure is returned
as a CartResult, so the screen never shows a cart the backend doesn't have.
A cancelled write is rolled back the same way before the cancellation
propagates.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Awaitable, Callable, List, Optional

from db import crud
from db.models import CartItem, Product
from utils.errors import ValidationError
from utils.local_storage import CART_KEY, LocalStorage
from utils.logger import get_logger

_logger = get_logger(__name__)


@dataclass(frozen=True)
class CartResult:
    ok: bool
    error: Optional[Exception] = None

    def __bool__(self) -> bool:
        return self.ok


OK = CartResult(ok=True)


# ---------------------------
# Local (anonymous) cart serialization
# ---------------------------


def cart_item_to_json(item: CartItem) -> dict:
    p = item.product
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "price": str(p.price),
        "stock": p.stock,
        "category": p.category,
        "colors": list(p.colors),
        "sizes": list(p.sizes),
        "images": list(p.images),
        "is_new": p.is_new,
        "is_bestseller": p.is_bestseller,
        "quantity": item.quantity,
    }


def cart_item_from_json(data: dict) -> CartItem:
    """Inverse of cart_item_to_json; also reads carts saved with the old
    single color/size/image_url fields."""
    colors = list(data.get("colors") or [])
    sizes = list(data.get("sizes") or [])
    images = list(data.get("images") or [])
    if data.get("color") and data["color"] not in colors:
        colors.append(data["color"])
    if data.get("size") and data["size"] not in sizes:
        sizes.append(data["size"])
    if not images and data.get("image_url"):
        images.append(data["image_url"])

    product = Product(
        id=str(data["id"]),
        name=data.get("name") or "",
        description=data.get("description") or "",
        price=Decimal(str(data.get("price", "0"))),
        stock=int(data.get("stock") or 0),
        category=data.get("category"),
        colors=tuple(colors),
        sizes=tuple(sizes),
        images=tuple(images),
        is_new=bool(data.get("is_new")),
        is_bestseller=bool(data.get("is_bestseller")),
    )
    return CartItem(product=product, quantity=max(1, int(data.get("quantity", 1))))


def read_local_cart(storage: LocalStorage) -> List[CartItem]:
    """Lines saved under the cart key; unreadable lines are dropped."""
    data = storage.get_json(CART_KEY)
    if not isinstance(data, list):
        return []
    items = []
    for entry in data:
        try:
            items.append(cart_item_from_json(entry))
        except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
            _logger.error(f"Skipping unreadable local cart line {entry!r}: {exc}")
    return items


# ---------------------------
# Backends
# ---------------------------


class CartBackend:
    """Where the cart is persisted. `items` is the cart after the change."""

    async def load(self) -> List[CartItem]:
        raise NotImplementedError

    async def add(self, product_id: str, quantity: int, items: List[CartItem]) -> None:
        raise NotImplementedError

    async def set_quantity(
        self, product_id: str, quantity: int, items: List[CartItem]
    ) -> None:
        raise NotImplementedError

    async def remove(self, product_id: str, items: List[CartItem]) -> None:
        raise NotImplementedError

    async def clear(self) -> None:
        raise NotImplementedError


class LocalCartBackend(CartBackend):
    """Anonymous cart: the whole list is rewritten on every change."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _save(self, items: List[CartItem]) -> None:
        self.storage.set_json(CART_KEY, [cart_item_to_json(i) for i in items])

    async def load(self) -> List[CartItem]:
        return read_local_cart(self.storage)

    async def add(self, product_id, quantity, items):
        self._save(items)

    async def set_quantity(self, product_id, quantity, items):
        self._save(items)

    async def remove(self, product_id, items):
        self._save(items)

    async def clear(self) -> None:
        self.storage.remove_item(CART_KEY)


class RemoteCartBackend(CartBackend):
    """Signed-in cart: one carts row per (user, product)."""

    def __init__(self, user_id: str):
        self.user_id = user_id

    async def load(self) -> List[CartItem]:
        return await crud.list_cart(self.user_id)

    async def add(self, product_id, quantity, items):
        await upsert_cart_line(self.user_id, product_id, quantity)

    async def set_quantity(self, product_id, quantity, items):
        await crud.set_cart_quantity(self.user_id, product_id, quantity)

    async def remove(self, product_id, items):
        await crud.delete_cart_row(self.user_id, product_id)

    async def clear(self) -> None:
        await crud.delete_cart(self.user_id)


async def upsert_cart_line(user_id: str, product_id: str, quantity: int) -> None:
    """Add quantity to the user's row for product, creating it if missing."""
    existing = await crud.find_cart_row(user_id, product_id)
    if existing:
        await crud.update_cart_row_quantity(existing.id, existing.quantity + quantity)
    else:
        await crud.insert_cart_row(user_id, product_id, quantity)


# ---------------------------
# View-model
# ---------------------------


class CartViewModel:
    def __init__(self, backend: CartBackend):
        self._backend = backend
        self._items: List[CartItem] = []
        self.on_change: Optional[Callable[[], None]] = None

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    def bind(self, backend: CartBackend) -> None:
        """Switch the backing store; the caller reloads or replaces the items."""
        self._backend = backend

    def replace(self, items: List[CartItem]) -> None:
        self._items = list(items)
        self._changed()

    async def load(self) -> CartResult:
        try:
            items = await self._backend.load()
        except Exception as exc:
            _logger.error(f"Error loading cart: {exc}")
            self.replace([])
            return CartResult(ok=False, error=exc)
        self.replace(items)
        return OK

    def get(self, product_id: str) -> Optional[CartItem]:
        idx = self._index(product_id)
        return self._items[idx] if idx is not None else None

    def count(self) -> int:
        return sum(i.quantity for i in self._items)

    def total(self) -> Decimal:
        return sum((i.line_total for i in self._items), Decimal("0")).quantize(
            Decimal("0.01")
        )

    def is_empty(self) -> bool:
        return not self._items

    # ---------- mutations ----------

    async def add_item(self, product: Product, quantity: int) -> CartResult:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("Quantity must be a positive whole number.")

        snapshot = list(self._items)
        idx = self._index(product.id)
        if idx is None:
            self._items.append(CartItem(product=product, quantity=quantity))
        else:
            current = self._items[idx]
            self._items[idx] = current.with_quantity(current.quantity + quantity)
        self._changed()

        items = self.items
        return await self._persist(
            snapshot,
            lambda: self._backend.add(product.id, quantity, items),
            f"adding {product.id} to cart",
        )

    async def remove_item(self, product_id: str) -> CartResult:
        idx = self._index(product_id)
        if idx is None:
            return OK

        snapshot = list(self._items)
        del self._items[idx]
        self._changed()

        items = self.items
        return await self._persist(
            snapshot,
            lambda: self._backend.remove(product_id, items),
            f"removing {product_id} from cart",
        )

    async def update_quantity(self, product_id: str, delta: int) -> CartResult:
        """Shift a line's quantity by delta, never below 1."""
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValidationError("Quantity change must be a whole number.")
        idx = self._index(product_id)
        if idx is None:
            return OK

        snapshot = list(self._items)
        new_quantity = max(1, self._items[idx].quantity + delta)
        self._items[idx] = self._items[idx].with_quantity(new_quantity)
        self._changed()

        items = self.items
        return await self._persist(
            snapshot,
            lambda: self._backend.set_quantity(product_id, new_quantity, items),
            f"updating quantity of {product_id}",
        )

    async def clear(self) -> CartResult:
        snapshot = list(self._items)
        self._items = []
        self._changed()
        return await self._persist(snapshot, self._backend.clear, "clearing cart")

    # ---------- internals ----------

    def _index(self, product_id: str) -> Optional[int]:
        for i, item in enumerate(self._items):
            if item.product_id == product_id:
                return i
        return None

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    async def _persist(
        self,
        snapshot: List[CartItem],
        write: Callable[[], Awaitable[None]],
        what: str,
    ) -> CartResult:
        try:
            await write()
        except asyncio.CancelledError:
            # a cancelled write counts as not applied
            _logger.warning(f"Cancelled while {what}, restoring cart")
            self._restore(snapshot)
            raise
        except Exception as exc:
            _logger.error(f"Error {what}: {exc}")
            self._restore(snapshot)
            return CartResult(ok=False, error=exc)
        return OK

    def _restore(self, snapshot: List[CartItem]) -> None:
        self._items = snapshot
        self._changed()
