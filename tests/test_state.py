import sqlite3
import unittest
from unittest import mock

from base import BOHEME, SUPORTE, DbTestCase
from db import crud
from db.models import Capability, Role
from services import cart_sync
from utils.errors import StoreError
from utils.local_storage import CART_KEY, SESSION_KEY
from utils.notify import Notifier
from utils.state import AppContext

LOCKED = sqlite3.OperationalError("database is locked")


class AppContextTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.ctx = AppContext(storage=self.storage, notifier=Notifier("store@example.com"))
        self.auth_changes = 0

        def on_auth_change():
            self.auth_changes += 1

        self.ctx.on_auth_change = on_auth_change
        self.uid = await self.ctx.auth.sign_up("ana@example.com", "secret1", "Ana")
        self.boheme = await crud.get_product(BOHEME)
        self.suporte = await crud.get_product(SUPORTE)

    async def asyncTearDown(self):
        await self.ctx.teardown()

    async def test_anonymous_start_loads_local_cart(self):
        seed = AppContext(storage=self.storage)
        await seed.start()
        await seed.cart.add_item(self.boheme, 2)
        await seed.teardown()

        await self.ctx.start()
        self.assertFalse(self.ctx.is_authenticated)
        self.assertEqual(self.ctx.cart.count(), 2)
        self.assertFalse(self.ctx.can(Capability.VIEW_ADMIN_PANEL))

    async def test_sign_in_merges_once(self):
        await self.ctx.start()
        await self.ctx.cart.add_item(self.boheme, 2)
        await crud.insert_cart_row(self.uid, BOHEME, 3)

        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertTrue(self.ctx.is_authenticated)
        self.assertEqual(self.ctx.user_id, self.uid)
        self.assertEqual(self.ctx.profile.full_name, "Ana")
        self.assertEqual(self.ctx.cart.get(BOHEME).quantity, 5)
        self.assertIsNone(self.storage.get_item(CART_KEY))
        self.assertIsNone(self.ctx.merge_error)
        self.assertEqual(self.auth_changes, 1)

        # later additions go straight to the server cart
        await self.ctx.cart.add_item(self.suporte, 1)
        remote = await crud.list_cart(self.uid)
        self.assertEqual([(i.product_id, i.quantity) for i in remote], [(BOHEME, 5), (SUPORTE, 1)])

    async def test_restored_session_does_not_merge_again(self):
        await self.ctx.start()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        await self.ctx.cart.add_item(self.boheme, 1)

        # a leftover anonymous cart must not be counted on restart
        self.storage.set_json(CART_KEY, [{"id": BOHEME, "price": "189.90", "quantity": 4}])
        restarted = AppContext(storage=self.storage)
        with mock.patch.object(cart_sync, "upsert_cart_line") as upsert:
            await restarted.start()
        upsert.assert_not_called()
        self.assertTrue(restarted.is_authenticated)
        self.assertEqual(restarted.cart.get(BOHEME).quantity, 1)
        await restarted.teardown()

    async def test_merge_failure_is_reported_and_cart_loaded(self):
        await self.ctx.start()
        await self.ctx.cart.add_item(self.boheme, 2)
        with mock.patch.object(cart_sync, "upsert_cart_line", side_effect=RuntimeError("offline")):
            await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertIsInstance(self.ctx.merge_error, RuntimeError)
        self.assertTrue(self.ctx.is_authenticated)
        self.assertTrue(self.ctx.cart.is_empty())
        self.assertIsNotNone(self.storage.get_item(CART_KEY))

    async def test_sign_out_rebinds_local_cart(self):
        await self.ctx.start()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        await self.ctx.cart.add_item(self.boheme, 1)

        await self.ctx.auth.sign_out()
        self.assertFalse(self.ctx.is_authenticated)
        self.assertIsNone(self.ctx.profile)
        self.assertTrue(self.ctx.cart.is_empty())
        # the server cart is kept for the next sign-in
        self.assertEqual(len(await crud.list_cart(self.uid)), 1)

        # guest additions go to local storage again
        await self.ctx.cart.add_item(self.suporte, 1)
        self.assertIsNotNone(self.storage.get_item(CART_KEY))
        self.assertEqual(len(await crud.list_cart(self.uid)), 1)
        await self.ctx.cart.clear()

        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertEqual(self.ctx.cart.get(BOHEME).quantity, 1)

    async def test_capabilities_follow_profile(self):
        await self.ctx.start()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertFalse(self.ctx.can(Capability.MANAGE_CATALOG))

        await crud.update_profile(self.uid, role=Role.ADMIN)
        await self.ctx.reload_profile()
        self.assertTrue(self.ctx.can(Capability.MANAGE_CATALOG))
        self.assertFalse(self.ctx.can(Capability.MANAGE_USERS))

    async def test_teardown_stops_listening(self):
        await self.ctx.start()
        await self.ctx.teardown()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertFalse(self.ctx.is_authenticated)
        self.assertEqual(self.auth_changes, 0)


    async def test_profile_failure_aborts_sign_in(self):
        await self.ctx.start()
        await self.ctx.cart.add_item(self.boheme, 2)
        with mock.patch.object(crud, "get_profile", side_effect=LOCKED):
            with self.assertRaises(StoreError):
                await self.ctx.auth.sign_in("ana@example.com", "secret1")
        self.assertFalse(self.ctx.is_authenticated)
        self.assertIsNone(self.storage.get_item(SESSION_KEY))
        # the guest cart was neither merged nor lost
        self.assertEqual(self.ctx.cart.count(), 2)
        self.assertIsNotNone(self.storage.get_item(CART_KEY))
        self.assertEqual(await crud.list_cart(self.uid), [])

    async def test_unrestorable_session_falls_back_to_guest(self):
        await self.ctx.start()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")

        restarted = AppContext(storage=self.storage)
        with mock.patch.object(crud, "get_profile", side_effect=LOCKED):
            await restarted.start()
        self.assertFalse(restarted.is_authenticated)
        self.assertIsNone(restarted.auth.get_session())
        self.assertIsNone(self.storage.get_item(SESSION_KEY))
        await restarted.teardown()

    async def test_failed_profile_reload_keeps_profile(self):
        await self.ctx.start()
        await self.ctx.auth.sign_in("ana@example.com", "secret1")
        with mock.patch.object(crud, "get_profile", side_effect=LOCKED):
            await self.ctx.auth.update_password("newsecret", confirm_password="newsecret")
        self.assertEqual(self.ctx.profile.full_name, "Ana")
        with mock.patch.object(crud, "get_profile", side_effect=LOCKED):
            with self.assertRaises(StoreError):
                await self.ctx.reload_profile()


if __name__ == "__main__":
    unittest.main()
