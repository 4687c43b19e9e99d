import asyncio
import unittest
from decimal import Decimal
from unittest import mock

from base import BOHEME, SUPORTE, DbTestCase, make_product
from db import crud
from services.cart import (
    CartViewModel,
    LocalCartBackend,
    RemoteCartBackend,
    cart_item_from_json,
    read_local_cart,
)
from utils.errors import ValidationError
from utils.local_storage import CART_KEY


class LocalCartTestCase(DbTestCase):
    def setUp(self):
        super().setUp()
        self.cart = CartViewModel(LocalCartBackend(self.storage))
        self.changes = 0

        def on_change():
            self.changes += 1

        self.cart.on_change = on_change

    async def test_add_same_product_sums_quantities(self):
        p = make_product("p1", "10.00")
        self.assertTrue(await self.cart.add_item(p, 1))
        self.assertTrue(await self.cart.add_item(p, 2))
        self.assertEqual(len(self.cart.items), 1)
        self.assertEqual(self.cart.get("p1").quantity, 3)
        self.assertEqual(self.cart.count(), 3)

        # persisted under the cart key
        stored = read_local_cart(self.storage)
        self.assertEqual([(i.product_id, i.quantity) for i in stored], [("p1", 3)])

    async def test_insertion_order_and_total(self):
        await self.cart.add_item(make_product("b", "10.00"), 2)
        await self.cart.add_item(make_product("a", "5.00"), 1)
        await self.cart.add_item(make_product("b", "10.00"), 1)
        self.assertEqual([i.product_id for i in self.cart.items], ["b", "a"])
        self.assertEqual(self.cart.total(), Decimal("35.00"))

    async def test_invalid_quantity_rejected_before_storage(self):
        p = make_product()
        for bad in (0, -1, 1.5, "2", True, None):
            with self.assertRaises(ValidationError):
                await self.cart.add_item(p, bad)
        self.assertTrue(self.cart.is_empty())
        self.assertIsNone(self.storage.get_item(CART_KEY))
        self.assertEqual(self.changes, 0)

    async def test_update_quantity_never_below_one(self):
        await self.cart.add_item(make_product("p1"), 2)
        await self.cart.update_quantity("p1", -5)
        self.assertEqual(self.cart.get("p1").quantity, 1)
        await self.cart.update_quantity("p1", 3)
        self.assertEqual(self.cart.get("p1").quantity, 4)
        self.assertEqual(read_local_cart(self.storage)[0].quantity, 4)

        with self.assertRaises(ValidationError):
            await self.cart.update_quantity("p1", 0.5)

    async def test_absent_product_is_a_noop(self):
        await self.cart.add_item(make_product("p1"), 1)
        before = self.changes
        self.assertTrue(await self.cart.remove_item("nope"))
        self.assertTrue(await self.cart.update_quantity("nope", 2))
        self.assertEqual(self.changes, before)
        self.assertEqual(len(self.cart.items), 1)

    async def test_remove_and_clear(self):
        await self.cart.add_item(make_product("p1"), 1)
        await self.cart.add_item(make_product("p2"), 1)
        await self.cart.remove_item("p1")
        self.assertEqual([i.product_id for i in self.cart.items], ["p2"])

        self.assertTrue(await self.cart.clear())
        self.assertTrue(self.cart.is_empty())
        self.assertIsNone(self.storage.get_item(CART_KEY))
        # clearing again is fine
        self.assertTrue(await self.cart.clear())
        self.assertTrue(self.cart.is_empty())

    async def test_failed_write_rolls_back(self):
        p = make_product("p1")
        await self.cart.add_item(p, 2)

        with mock.patch.object(self.storage, "set_item", side_effect=OSError("disk full")):
            result = await self.cart.add_item(p, 3)
            self.assertFalse(result)
            self.assertIsInstance(result.error, OSError)
            self.assertEqual(self.cart.get("p1").quantity, 2)

            result = await self.cart.update_quantity("p1", 1)
            self.assertFalse(result)
            self.assertEqual(self.cart.get("p1").quantity, 2)

        with mock.patch.object(self.storage, "remove_item", side_effect=OSError("locked")):
            self.assertFalse(await self.cart.clear())
            self.assertEqual(self.cart.count(), 2)

        # memory and storage still agree
        self.assertEqual(read_local_cart(self.storage)[0].quantity, 2)

    async def test_load_reads_storage(self):
        await self.cart.add_item(make_product("p1", "3.50"), 2)
        fresh = CartViewModel(LocalCartBackend(self.storage))
        self.assertTrue(await fresh.load())
        self.assertEqual(fresh.total(), Decimal("7.00"))


class LocalCartSerializationTestCase(DbTestCase):
    def test_legacy_single_value_fields(self):
        item = cart_item_from_json(
            {
                "id": "p9",
                "name": "Old",
                "price": "12.5",
                "color": "Cru",
                "size": "P",
                "image_url": "http://x/img.jpg",
                "quantity": 0,
            }
        )
        self.assertEqual(item.product.colors, ("Cru",))
        self.assertEqual(item.product.sizes, ("P",))
        self.assertEqual(item.product.images, ("http://x/img.jpg",))
        self.assertEqual(item.product.price, Decimal("12.5"))
        self.assertEqual(item.quantity, 1)

    def test_unreadable_lines_are_dropped(self):
        self.storage.set_json(CART_KEY, [{"name": "no id"}, {"id": "p1", "price": "1", "quantity": 2}])
        items = read_local_cart(self.storage)
        self.assertEqual([(i.product_id, i.quantity) for i in items], [("p1", 2)])

        self.storage.set_item(CART_KEY, "{not json")
        self.assertEqual(read_local_cart(self.storage), [])


class RemoteCartTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.cart = CartViewModel(RemoteCartBackend("u1"))
        self.boheme = await crud.get_product(BOHEME)
        self.suporte = await crud.get_product(SUPORTE)

    async def test_mutations_reach_the_carts_table(self):
        await self.cart.add_item(self.boheme, 1)
        await self.cart.add_item(self.boheme, 2)
        await self.cart.add_item(self.suporte, 1)
        rows = await self.fetch_all("SELECT product_id, quantity FROM carts WHERE user_id = 'u1';")
        self.assertEqual(sorted(tuple(r) for r in rows), [(BOHEME, 3), (SUPORTE, 1)])

        await self.cart.update_quantity(BOHEME, -10)
        await self.cart.remove_item(SUPORTE)
        remote = await crud.list_cart("u1")
        self.assertEqual([(i.product_id, i.quantity) for i in remote], [(BOHEME, 1)])

        await self.cart.clear()
        self.assertEqual(await crud.list_cart("u1"), [])

    async def test_failed_insert_rolls_back(self):
        with mock.patch.object(crud, "insert_cart_row", side_effect=RuntimeError("offline")):
            result = await self.cart.add_item(self.boheme, 1)
        self.assertFalse(result)
        self.assertTrue(self.cart.is_empty())
        self.assertEqual(await crud.list_cart("u1"), [])

    async def test_cancelled_write_rolls_back(self):
        await crud.insert_cart_row("u1", BOHEME, 2)
        await self.cart.load()
        writing = asyncio.Event()
        real_set = crud.set_cart_quantity

        async def slow_set(user_id, product_id, quantity):
            writing.set()
            await asyncio.sleep(10)
            await real_set(user_id, product_id, quantity)

        with mock.patch.object(crud, "set_cart_quantity", side_effect=slow_set):
            task = asyncio.create_task(self.cart.update_quantity(BOHEME, 1))
            await writing.wait()
            self.assertEqual(self.cart.get(BOHEME).quantity, 3)
            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task

        self.assertEqual(self.cart.get(BOHEME).quantity, 2)
        remote = await crud.list_cart("u1")
        self.assertEqual([(i.product_id, i.quantity) for i in remote], [(BOHEME, 2)])

    async def test_failed_load_empties_cart(self):
        await crud.insert_cart_row("u1", BOHEME, 2)
        self.assertTrue(await self.cart.load())
        self.assertEqual(self.cart.count(), 2)

        with mock.patch.object(crud, "list_cart", side_effect=RuntimeError("offline")):
            self.assertFalse(await self.cart.load())
        self.assertTrue(self.cart.is_empty())


if __name__ == "__main__":
    unittest.main()
