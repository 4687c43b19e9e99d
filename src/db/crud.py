# src/db/crud.py
# table-level operations against the store's database; no business rules here
from __future__ import annotations

import json
import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from db import models
from db.database import connect, now_iso

PRODUCT_COLUMNS = """
    id, name, description, price, stock, category, size, color,
    product_sizes, product_colors, image_url, images,
    is_new, is_bestseller, created_at
"""
CART_PRODUCT_COLUMNS = ", ".join("p." + c.strip() for c in PRODUCT_COLUMNS.split(","))


def _new_id() -> str:
    return str(uuid.uuid4())


def _money(val) -> Decimal:
    return Decimal(str(val)) if val is not None else Decimal("0")


def _money_str(val: Decimal) -> str:
    return str(Decimal(val).quantize(Decimal("0.01")))


def _ts(val) -> Optional[datetime]:
    return datetime.fromisoformat(val) if val else None


def _json_list(raw) -> List[str]:
    if not raw:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return []
    return [str(v) for v in data] if isinstance(data, list) else []


def _merge_legacy(values: List[str], legacy: Optional[str]) -> Tuple[str, ...]:
    # older rows only carry the single-value column
    merged = list(values)
    if legacy and legacy not in merged:
        merged.append(legacy)
    return tuple(merged)


def product_from_row(row) -> models.Product:
    """Storage -> model adapter; the only place that knows about legacy columns."""
    images = _json_list(row["images"])
    if not images and row["image_url"]:
        images = [row["image_url"]]
    return models.Product(
        id=row["id"],
        name=row["name"],
        description=row["description"] or "",
        price=_money(row["price"]),
        stock=int(row["stock"] or 0),
        category=row["category"],
        colors=_merge_legacy(_json_list(row["product_colors"]), row["color"]),
        sizes=_merge_legacy(_json_list(row["product_sizes"]), row["size"]),
        images=tuple(images),
        is_new=bool(row["is_new"]),
        is_bestseller=bool(row["is_bestseller"]),
        created_at=_ts(row["created_at"]),
    )


def _product_params(draft: models.ProductDraft) -> tuple:
    # legacy columns mirror the first value so old readers still see something
    return (
        draft.name,
        draft.description,
        _money_str(draft.price),
        draft.stock,
        draft.category,
        draft.sizes[0] if draft.sizes else None,
        draft.colors[0] if draft.colors else None,
        json.dumps(list(draft.sizes)),
        json.dumps(list(draft.colors)),
        draft.images[0] if draft.images else None,
        json.dumps(list(draft.images)),
        int(draft.is_new),
        int(draft.is_bestseller),
    )


def _profile_from_row(row) -> models.Profile:
    return models.Profile(
        id=row["id"],
        full_name=row["full_name"],
        phone=row["phone"],
        email=row["email"],
        role=models.Role(row["role"]),
    )


def _order_from_row(row) -> models.Order:
    return models.Order(
        id=row["id"],
        user_id=row["user_id"],
        total_amount=_money(row["total_amount"]),
        status=models.OrderStatus(row["status"]),
        created_at=_ts(row["created_at"]),
    )


# ---------------------------
# Auth accounts
# ---------------------------


async def email_available(email: str) -> bool:
    """True if no account is registered with the given email."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT 1 FROM users WHERE lower(email) = lower(?) LIMIT 1;", (email,)
        )
        row = await cur.fetchone()
        await cur.close()
        return row is None


async def create_user(email: str, password_hash: str) -> str:
    """Insert an auth account and return its id."""
    uid = _new_id()
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO users(id, email, password_hash, created_at) VALUES (?, ?, ?, ?);",
            (uid, email, password_hash, now_iso()),
        )
        await conn.commit()
    return uid


async def get_credentials(email: str) -> Optional[Tuple[str, str, str]]:
    """Return (user_id, email, password_hash) for an email, or None."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, password_hash FROM users WHERE lower(email) = lower(?);",
            (email,),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return row["id"], row["email"], row["password_hash"]


async def update_user(
    user_id: str, email: Optional[str] = None, password_hash: Optional[str] = None
) -> bool:
    if email is None and password_hash is None:
        return False
    async with connect() as conn:
        res = await conn.execute(
            """
            UPDATE users
            SET email = coalesce(?, email),
                password_hash = coalesce(?, password_hash)
            WHERE id = ?;
            """,
            (email, password_hash, user_id),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_user(user_id: str) -> bool:
    """Delete an account; its profile goes with it (FK cascade)."""
    async with connect() as conn:
        res = await conn.execute("DELETE FROM users WHERE id = ?;", (user_id,))
        await conn.commit()
        return res.rowcount > 0


async def create_password_reset(user_id: str) -> str:
    token = uuid.uuid4().hex
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO password_resets(token, user_id, created_at) VALUES (?, ?, ?);",
            (token, user_id, now_iso()),
        )
        await conn.commit()
    return token


async def consume_password_reset(token: str) -> Optional[str]:
    """Mark a reset token used; return its user id if it was valid and unused."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT user_id FROM password_resets WHERE token = ? AND used = 0;", (token,)
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        await conn.execute("UPDATE password_resets SET used = 1 WHERE token = ?;", (token,))
        await conn.commit()
    return row["user_id"]


# ---------------------------
# Profiles
# ---------------------------


async def create_profile(
    user_id: str,
    full_name: Optional[str],
    phone: Optional[str],
    email: Optional[str],
    role: models.Role = models.Role.CUSTOMER,
) -> models.Profile:
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO profiles(id, full_name, phone, email, role) VALUES (?, ?, ?, ?, ?);",
            (user_id, full_name, phone, email, models.Role(role).value),
        )
        await conn.commit()
    return models.Profile(user_id, full_name, phone, email, models.Role(role))


async def get_profile(user_id: str) -> Optional[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, full_name, phone, email, role FROM profiles WHERE id = ?;",
            (user_id,),
        )
        row = await cur.fetchone()
        await cur.close()
    return _profile_from_row(row) if row else None


async def list_profiles() -> List[models.Profile]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, full_name, phone, email, role
            FROM profiles
            ORDER BY CASE role WHEN 'master_admin' THEN 0 WHEN 'admin' THEN 1 ELSE 2 END,
                     lower(coalesce(full_name, email));
            """
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_profile_from_row(r) for r in rows]


async def update_profile(
    user_id: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    role: Optional[models.Role] = None,
) -> bool:
    """Update only the provided fields. Return True if a row was updated."""
    sets, params = [], []
    for col, val in (("full_name", full_name), ("phone", phone), ("email", email)):
        if val is not None:
            sets.append(f"{col} = ?")
            params.append(val)
    if role is not None:
        sets.append("role = ?")
        params.append(models.Role(role).value)
    if not sets:
        return False
    async with connect() as conn:
        res = await conn.execute(
            f"UPDATE profiles SET {', '.join(sets)} WHERE id = ?;",
            (*params, user_id),
        )
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Catalog: products
# ---------------------------


async def list_products(category: Optional[str] = None) -> List[models.Product]:
    """All products, newest first; optionally only one category (by name)."""
    async with connect() as conn:
        if category:
            cur = await conn.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products WHERE category = ? "
                "ORDER BY created_at DESC, name;",
                (category,),
            )
        else:
            cur = await conn.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY created_at DESC, name;"
            )
        rows = await cur.fetchall()
        await cur.close()
    return [product_from_row(r) for r in rows]


async def get_product(product_id: str) -> Optional[models.Product]:
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = ?;", (product_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    return product_from_row(row) if row else None


async def create_product(draft: models.ProductDraft) -> models.Product:
    pid = _new_id()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO products(name, description, price, stock, category, size, color,
                                 product_sizes, product_colors, image_url, images,
                                 is_new, is_bestseller, id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (*_product_params(draft), pid, now_iso()),
        )
        await conn.commit()
    return await get_product(pid)


async def update_product(product_id: str, draft: models.ProductDraft) -> bool:
    async with connect() as conn:
        res = await conn.execute(
            """
            UPDATE products
            SET name = ?, description = ?, price = ?, stock = ?, category = ?,
                size = ?, color = ?, product_sizes = ?, product_colors = ?,
                image_url = ?, images = ?, is_new = ?, is_bestseller = ?
            WHERE id = ?;
            """,
            (*_product_params(draft), product_id),
        )
        await conn.commit()
        return res.rowcount > 0


async def delete_product(product_id: str) -> bool:
    async with connect() as conn:
        res = await conn.execute("DELETE FROM products WHERE id = ?;", (product_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Catalog: categories, colors, sizes
# ---------------------------


async def list_categories() -> List[models.Category]:
    async with connect() as conn:
        cur = await conn.execute("SELECT id, name FROM categories ORDER BY name;")
        rows = await cur.fetchall()
        await cur.close()
    return [models.Category(id=r["id"], name=r["name"]) for r in rows]


async def list_colors() -> List[models.Color]:
    async with connect() as conn:
        cur = await conn.execute("SELECT id, name, hex_code FROM colors ORDER BY name;")
        rows = await cur.fetchall()
        await cur.close()
    return [models.Color(id=r["id"], name=r["name"], hex_code=r["hex_code"]) for r in rows]


async def list_sizes() -> List[models.Size]:
    async with connect() as conn:
        cur = await conn.execute("SELECT id, name FROM sizes ORDER BY name;")
        rows = await cur.fetchall()
        await cur.close()
    return [models.Size(id=r["id"], name=r["name"]) for r in rows]


async def create_category(name: str) -> models.Category:
    cid = _new_id()
    async with connect() as conn:
        await conn.execute("INSERT INTO categories(id, name) VALUES (?, ?);", (cid, name))
        await conn.commit()
    return models.Category(id=cid, name=name)


async def create_size(name: str) -> models.Size:
    sid = _new_id()
    async with connect() as conn:
        await conn.execute("INSERT INTO sizes(id, name) VALUES (?, ?);", (sid, name))
        await conn.commit()
    return models.Size(id=sid, name=name)


async def create_color(name: str, hex_code: str) -> models.Color:
    cid = _new_id()
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO colors(id, name, hex_code) VALUES (?, ?, ?);",
            (cid, name, hex_code),
        )
        await conn.commit()
    return models.Color(id=cid, name=name, hex_code=hex_code)


ATTRIBUTE_TABLES = ("categories", "colors", "sizes")


async def rename_attribute(
    table: str, attr_id: str, name: str, hex_code: Optional[str] = None
) -> bool:
    """Rename a category/color/size; colors may also change hex code."""
    if table not in ATTRIBUTE_TABLES:
        raise ValueError(f"Unknown attribute table: {table}")
    async with connect() as conn:
        if table == "colors" and hex_code is not None:
            res = await conn.execute(
                "UPDATE colors SET name = ?, hex_code = ? WHERE id = ?;",
                (name, hex_code, attr_id),
            )
        else:
            res = await conn.execute(
                f"UPDATE {table} SET name = ? WHERE id = ?;", (name, attr_id)
            )
        await conn.commit()
        return res.rowcount > 0


async def delete_attribute(table: str, attr_id: str) -> bool:
    """Delete a category/color/size. Products referencing it are left as they are."""
    if table not in ATTRIBUTE_TABLES:
        raise ValueError(f"Unknown attribute table: {table}")
    async with connect() as conn:
        res = await conn.execute(f"DELETE FROM {table} WHERE id = ?;", (attr_id,))
        await conn.commit()
        return res.rowcount > 0


# ---------------------------
# Remote cart
# ---------------------------


async def list_cart(user_id: str) -> List[models.CartItem]:
    """Cart lines for a user with their products, oldest line first.

    Rows whose product no longer exists are skipped.
    """
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT c.quantity AS cart_quantity, {CART_PRODUCT_COLUMNS}
            FROM carts c
            JOIN products p ON p.id = c.product_id
            WHERE c.user_id = ?
            ORDER BY c.created_at, c.rowid;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.CartItem(product=product_from_row(r), quantity=int(r["cart_quantity"]))
        for r in rows
    ]


async def find_cart_row(user_id: str, product_id: str) -> Optional[models.RemoteCartRow]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, product_id, quantity, created_at, updated_at
            FROM carts
            WHERE user_id = ? AND product_id = ?
            LIMIT 1;
            """,
            (user_id, product_id),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.RemoteCartRow(
        id=row["id"],
        user_id=row["user_id"],
        product_id=row["product_id"],
        quantity=int(row["quantity"]),
        created_at=_ts(row["created_at"]),
        updated_at=_ts(row["updated_at"]),
    )


async def insert_cart_row(user_id: str, product_id: str, quantity: int) -> str:
    row_id = _new_id()
    ts = now_iso()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO carts(id, user_id, product_id, quantity, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (row_id, user_id, product_id, quantity, ts, ts),
        )
        await conn.commit()
    return row_id


async def update_cart_row_quantity(row_id: str, quantity: int) -> None:
    async with connect() as conn:
        await conn.execute(
            "UPDATE carts SET quantity = ?, updated_at = ? WHERE id = ?;",
            (quantity, now_iso(), row_id),
        )
        await conn.commit()


async def set_cart_quantity(user_id: str, product_id: str, quantity: int) -> None:
    async with connect() as conn:
        await conn.execute(
            "UPDATE carts SET quantity = ?, updated_at = ? WHERE user_id = ? AND product_id = ?;",
            (quantity, now_iso(), user_id, product_id),
        )
        await conn.commit()


async def delete_cart_row(user_id: str, product_id: str) -> None:
    async with connect() as conn:
        await conn.execute(
            "DELETE FROM carts WHERE user_id = ? AND product_id = ?;",
            (user_id, product_id),
        )
        await conn.commit()


async def delete_cart(user_id: str) -> None:
    """Remove every cart row of the user."""
    async with connect() as conn:
        await conn.execute("DELETE FROM carts WHERE user_id = ?;", (user_id,))
        await conn.commit()


# ---------------------------
# Orders
# ---------------------------


async def insert_order(
    user_id: str, total_amount: Decimal, status: models.OrderStatus
) -> models.Order:
    oid = _new_id()
    created = now_iso()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO orders(id, user_id, total_amount, status, created_at)
            VALUES (?, ?, ?, ?, ?);
            """,
            (oid, user_id, _money_str(total_amount), models.OrderStatus(status).value, created),
        )
        await conn.commit()
    return models.Order(
        id=oid,
        user_id=user_id,
        total_amount=_money(_money_str(total_amount)),
        status=models.OrderStatus(status),
        created_at=_ts(created),
    )


async def insert_order_item(
    order_id: str, product_id: str, quantity: int, unit_price: Decimal
) -> models.OrderItem:
    item_id = _new_id()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO order_items(id, order_id, product_id, quantity, unit_price)
            VALUES (?, ?, ?, ?, ?);
            """,
            (item_id, order_id, product_id, quantity, _money_str(unit_price)),
        )
        await conn.commit()
    return models.OrderItem(
        id=item_id,
        order_id=order_id,
        product_id=product_id,
        quantity=quantity,
        unit_price=_money(_money_str(unit_price)),
    )


async def list_orders(user_id: str) -> List[models.Order]:
    """A user's orders, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, total_amount, status, created_at
            FROM orders
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_order_from_row(r) for r in rows]


async def get_order_detail(
    order_id: str,
) -> Tuple[Optional[models.Order], List[models.OrderItem]]:
    """
    Return (order, items) for a specific order; (None, []) if it does not exist.
    """
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, user_id, total_amount, status, created_at FROM orders WHERE id = ?;",
            (order_id,),
        )
        order_row = await cur.fetchone()
        await cur.close()
        if not order_row:
            return None, []
        cur = await conn.execute(
            """
            SELECT id, order_id, product_id, quantity, unit_price
            FROM order_items
            WHERE order_id = ?
            ORDER BY rowid;
            """,
            (order_id,),
        )
        item_rows = await cur.fetchall()
        await cur.close()
    items = [
        models.OrderItem(
            id=r["id"],
            order_id=r["order_id"],
            product_id=r["product_id"],
            quantity=int(r["quantity"]),
            unit_price=_money(r["unit_price"]),
        )
        for r in item_rows
    ]
    return _order_from_row(order_row), items


# ---------------------------
# Contact messages, leads, outbox
# ---------------------------


async def insert_contact_message(
    name: str, email: str, subject: str, message: str
) -> models.ContactMessage:
    mid = _new_id()
    created = now_iso()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO contact_messages(id, name, email, subject, message, created_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (mid, name, email, subject, message, created),
        )
        await conn.commit()
    return models.ContactMessage(mid, name, email, subject, message, _ts(created))


async def insert_lead(email: str, source: str) -> models.Lead:
    lid = _new_id()
    created = now_iso()
    async with connect() as conn:
        await conn.execute(
            "INSERT INTO leads(id, email, source, created_at) VALUES (?, ?, ?, ?);",
            (lid, email, source, created),
        )
        await conn.commit()
    return models.Lead(lid, email, source, _ts(created))


async def insert_outbox(
    channel: str, template: str, recipient: Optional[str], payload: dict
) -> str:
    mid = _new_id()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO outbox(id, channel, template, recipient, payload, created_at)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (mid, channel, template, recipient, json.dumps(payload, default=str), now_iso()),
        )
        await conn.commit()
    return mid

