import unittest
from unittest import mock

from base import DbTestCase
from db.models import Capability, Role
from main import StorefrontApp
from utils import state as state_module
from utils.notify import Notifier
from utils.state import AppContext

GUEST = ["shop", "cart", "contact"]
CUSTOMER = GUEST + ["account"]
STAFF = CUSTOMER + ["admin_products", "admin_attributes", "admin_users"]


class MenuTestCase(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.ctx = AppContext(storage=self.storage, notifier=Notifier("store@example.com"))
        self.app = StorefrontApp(self.ctx)
        await self.ctx.start()

    async def asyncTearDown(self):
        await self.ctx.teardown()

    async def sign_in_as(self, email, role):
        await self.ctx.auth.sign_up(email, "secret1", role=role)
        await self.ctx.auth.sign_in(email, "secret1")

    async def test_guest_and_customer_menus(self):
        self.assertEqual(list(self.app.menu_modes()), GUEST)
        await self.sign_in_as("ana@example.com", Role.CUSTOMER)
        self.assertEqual(list(self.app.menu_modes()), CUSTOMER)

    async def test_staff_menus(self):
        await self.sign_in_as("admin@example.com", Role.ADMIN)
        self.assertEqual(list(self.app.menu_modes()), STAFF)

    async def test_admin_screens_need_the_admin_panel(self):
        await self.sign_in_as("admin@example.com", Role.ADMIN)

        def without_panel(role, capability):
            return capability != Capability.VIEW_ADMIN_PANEL

        with mock.patch.object(state_module, "has_capability", side_effect=without_panel):
            self.assertTrue(self.ctx.can(Capability.MANAGE_CATALOG))
            self.assertEqual(list(self.app.menu_modes()), CUSTOMER)


if __name__ == "__main__":
    unittest.main()
