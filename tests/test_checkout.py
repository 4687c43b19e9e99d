import unittest
from decimal import Decimal
from unittest import mock

from base import DbTestCase, make_product
from db import crud
from db.models import OrderStatus
from services.cart import CartViewModel, RemoteCartBackend
from services.checkout import place_order
from utils.errors import OrderPlacementError, ValidationError
from utils.notify import Notifier


class CheckoutTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.cart = CartViewModel(RemoteCartBackend("u1"))
        await self.cart.add_item(make_product("a", "10.00"), 2)
        await self.cart.add_item(make_product("b", "5.00"), 1)
        self.notifier = Notifier(store_email="store@example.com")

    async def test_order_recorded_and_cart_cleared(self):
        order = await place_order(self.cart, "u1", self.notifier, "ana@example.com")
        self.assertEqual(order.total_amount, Decimal("25.00"))
        self.assertEqual(order.status, OrderStatus.IN_REVIEW)

        saved, items = await crud.get_order_detail(order.id)
        self.assertEqual(saved.total_amount, Decimal("25.00"))
        self.assertEqual(
            [(i.product_id, i.quantity, i.unit_price) for i in items],
            [("a", 2, Decimal("10.00")), ("b", 1, Decimal("5.00"))],
        )

        self.assertTrue(self.cart.is_empty())
        rows = await self.fetch_all("SELECT count(*) FROM carts WHERE user_id = 'u1';")
        self.assertEqual(rows[0][0], 0)

        emails = await self.outbox("email")
        self.assertEqual(len(emails), 1)
        self.assertEqual(emails[0]["template"], "order_confirmation")
        self.assertEqual(emails[0]["recipient"], "store@example.com")
        self.assertEqual(emails[0]["payload"]["total"], "R$ 25,00")
        self.assertEqual(emails[0]["payload"]["customer_email"], "ana@example.com")

    async def test_requires_user_and_items(self):
        with self.assertRaises(ValidationError):
            await place_order(self.cart, None, self.notifier)
        await self.cart.clear()
        with self.assertRaises(ValidationError):
            await place_order(self.cart, "u1", self.notifier)
        self.assertEqual(await crud.list_orders("u1"), [])

    async def test_item_failure_leaves_header_behind(self):
        with mock.patch.object(crud, "insert_order_item", side_effect=RuntimeError("boom")):
            with self.assertRaises(OrderPlacementError) as ctx:
                await place_order(self.cart, "u1", self.notifier)
        self.assertEqual(ctx.exception.message, "We could not place your order. Please try again.")

        orders = await crud.list_orders("u1")
        self.assertEqual(len(orders), 1)
        _, items = await crud.get_order_detail(orders[0].id)
        self.assertEqual(items, [])
        # nothing was cleared
        self.assertEqual(self.cart.count(), 3)

    async def test_email_failure_does_not_block(self):
        with mock.patch.object(
            self.notifier, "send_email", side_effect=RuntimeError("smtp down")
        ):
            order = await place_order(self.cart, "u1", self.notifier)
        self.assertEqual(len(await crud.list_orders("u1")), 1)
        self.assertEqual(order.total_amount, Decimal("25.00"))
        self.assertTrue(self.cart.is_empty())

    async def test_stock_untouched(self):
        product = await crud.get_product("prod-painel-boheme")
        cart = CartViewModel(RemoteCartBackend("u2"))
        await cart.add_item(product, 4)
        await place_order(cart, "u2")
        self.assertEqual((await crud.get_product(product.id)).stock, product.stock)


if __name__ == "__main__":
    unittest.main()
