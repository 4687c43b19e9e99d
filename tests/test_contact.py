import os
import sqlite3
import unittest
from unittest import mock

from base import DbTestCase
from db import crud
from services import contact
from utils.errors import BackendError, ValidationError
from utils.local_storage import LocalStorage
from utils.notify import Notifier


class ContactTestCase(DbTestCase):
    def setUp(self):
        super().setUp()
        self.notifier = Notifier(store_email="store@example.com")

    async def test_submit_contact(self):
        saved = await contact.submit_contact(
            " Ana ", "ana@example.com", "Custom order", "A 2m panel, please", self.notifier
        )
        self.assertEqual(saved.name, "Ana")

        rows = await self.fetch_all("SELECT count(*) FROM contact_messages;")
        self.assertEqual(rows[0][0], 1)
        emails = await self.outbox("email")
        self.assertEqual(emails[0]["template"], "contact_message")
        self.assertEqual(emails[0]["recipient"], "store@example.com")
        # the rendered line sits next to the raw subject, not over it
        self.assertEqual(emails[0]["payload"]["subject"], "Custom order")
        self.assertEqual(
            emails[0]["payload"]["subject_line"],
            "Contact from Ana <ana@example.com> about 'Custom order'",
        )
        relays = await self.outbox("form_relay")
        self.assertEqual(relays[0]["payload"]["subject"], "Custom order")
        self.assertEqual(relays[0]["payload"]["message"], "A 2m panel, please")

    async def test_validation(self):
        with self.assertRaises(ValidationError):
            await contact.submit_contact("", "ana@example.com", "Custom order", "x", self.notifier)
        with self.assertRaises(ValidationError):
            await contact.submit_contact("Ana", "ana", "Custom order", "x", self.notifier)
        with self.assertRaises(ValidationError):
            await contact.submit_contact("Ana", "ana@example.com", "Spam", "x", self.notifier)
        with self.assertRaises(ValidationError):
            await contact.submit_contact("Ana", "ana@example.com", "Custom order", " ", self.notifier)
        self.assertEqual(await self.outbox(), [])

    async def test_delivery_failures_are_logged_only(self):
        with mock.patch.object(self.notifier, "send_email", side_effect=RuntimeError("smtp")), \
                mock.patch.object(self.notifier, "relay_form", side_effect=RuntimeError("relay")):
            saved = await contact.submit_contact(
                "Ana", "ana@example.com", "Partnership", "Hello", self.notifier
            )
        self.assertEqual(saved.subject, "Partnership")
        rows = await self.fetch_all("SELECT count(*) FROM contact_messages;")
        self.assertEqual(rows[0][0], 1)

    async def test_subscribe_lead(self):
        lead = await contact.subscribe_lead("Ana@Example.com")
        self.assertEqual((lead.email, lead.source), ("ana@example.com", "newsletter"))
        with self.assertRaises(ValidationError):
            await contact.subscribe_lead("nope")

    async def test_storage_failures_become_store_errors(self):
        locked = sqlite3.OperationalError("database is locked")
        with mock.patch.object(crud, "insert_contact_message", side_effect=locked):
            with self.assertRaises(BackendError) as ctx:
                await contact.submit_contact(
                    "Ana", "ana@example.com", "Custom order", "Hello", self.notifier
                )
        self.assertEqual(ctx.exception.message, "Could not send your message.")
        self.assertIs(ctx.exception.__cause__, locked)
        self.assertEqual(await self.outbox(), [])

        with mock.patch.object(crud, "insert_lead", side_effect=locked):
            with self.assertRaises(BackendError):
                await contact.subscribe_lead("ana@example.com")

    async def test_unknown_template(self):
        with self.assertRaises(ValueError):
            await self.notifier.send_email("welcome", None, {})

    def test_render_fills_missing_fields(self):
        self.assertEqual(
            Notifier.render("order_confirmation", {"order_id": "o1"}),
            "New order #o1 from ?: ?",
        )


class LocalStorageTestCase(DbTestCase):
    def test_roundtrip_and_corrupt_file(self):
        self.storage.set_json("k", {"a": 1})
        self.assertEqual(self.storage.get_json("k"), {"a": 1})
        self.storage.remove_item("k")
        self.assertIsNone(self.storage.get_item("k"))
        self.storage.remove_item("k")

        path = os.path.join(self.temp_dir.name, "corrupt.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{oops")
        broken = LocalStorage(path)
        self.assertIsNone(broken.get_item("k"))
        broken.set_item("k", "v")
        self.assertEqual(broken.get_item("k"), "v")


if __name__ == "__main__":
    unittest.main()
