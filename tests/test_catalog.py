import os
import sqlite3
import unittest
from decimal import Decimal
from unittest import mock

from base import BOHEME, DbTestCase
from db import crud
from db.storage import ImageBucket
from services import catalog
from utils.errors import BackendError, StoreError, ValidationError


class CatalogTestCase(DbTestCase):
    async def test_shop_listing_and_categories(self):
        everything = await catalog.list_products(catalog.ALL_CATEGORIES)
        self.assertEqual(len(everything), 3)
        self.assertEqual(
            catalog.shop_categories(everything),
            ["All", "Acessórios", "Suportes para Plantas", "Painéis de Parede"],
        )
        suportes = await catalog.list_products("Suportes para Plantas")
        self.assertEqual([p.name for p in suportes], ["Suporte Suspenso Natural"])

    def test_draft_validation(self):
        with self.assertRaises(ValidationError):
            catalog.build_product_draft("  ", "", "10")
        with self.assertRaises(ValidationError):
            catalog.build_product_draft("Name", "", "abc")
        with self.assertRaises(ValidationError):
            catalog.build_product_draft("Name", "", "-1")
        with self.assertRaises(ValidationError):
            catalog.build_product_draft("Name", "", "10", images=["1", "2", "3", "4", "5"])

        draft = catalog.build_product_draft(" Name ", " desc ", "10,5", colors=["Cru", ""])
        self.assertEqual(draft.name, "Name")
        self.assertEqual(draft.description, "desc")
        self.assertEqual(draft.price, Decimal("10.50"))
        self.assertEqual(draft.colors, ("Cru",))
        self.assertEqual(draft.stock, 10)
        self.assertTrue(draft.is_new)
        self.assertFalse(draft.is_bestseller)

    async def test_edit_keeps_stock_and_flags(self):
        boheme = await catalog.get_product(BOHEME)
        draft = catalog.build_product_draft(
            "Painel Bohème", boheme.description, "199", existing=boheme
        )
        saved = await catalog.save_product(draft, boheme)
        self.assertEqual(saved.name, "Painel Bohème")
        self.assertEqual(saved.price, Decimal("199.00"))
        self.assertEqual(saved.stock, boheme.stock)
        self.assertTrue(saved.is_bestseller)
        self.assertFalse(saved.is_new)

    async def test_create_and_delete_product(self):
        saved = await catalog.save_product(catalog.build_product_draft("Chaveiro", "", "15"))
        self.assertEqual((await catalog.get_product(saved.id)).name, "Chaveiro")
        self.assertTrue(await catalog.delete_product(saved.id))
        self.assertIsNone(await catalog.get_product(saved.id))

        with self.assertRaises(ValidationError):
            await catalog.save_product(catalog.build_product_draft("X", "", "1"), saved)

    async def test_attributes(self):
        await catalog.add_category("Bolsas")
        color = await catalog.add_color("Terracota", "C8553D")
        self.assertEqual(color.hex_code, "#c8553d")
        await catalog.add_size("XG")
        categories, colors, sizes = await catalog.load_attributes()
        self.assertIn("Bolsas", [c.name for c in categories])
        self.assertIn("Terracota", [c.name for c in colors])
        self.assertIn("XG", [s.name for s in sizes])

        with self.assertRaises(ValidationError):
            await catalog.add_color("Bad", "#12")
        with self.assertRaises(ValidationError):
            await catalog.add_size(" ")
        with self.assertRaises(ValidationError):
            await catalog.rename_attribute("color", color.id, "Telha", "zzz")
        self.assertTrue(await catalog.rename_attribute("color", color.id, "Telha", "#b44a33"))

        self.assertTrue(await catalog.delete_attribute("category", "cat-paineis"))
        self.assertEqual((await catalog.get_product(BOHEME)).category, "Painéis de Parede")
        with self.assertRaises(ValueError):
            await catalog.delete_attribute("brand", "x")

    def test_upload_image_respects_cap(self):
        source = os.path.join(self.temp_dir.name, "photo.png")
        with open(source, "wb") as f:
            f.write(b"\x89PNG")
        bucket = ImageBucket(os.path.join(self.temp_dir.name, "bucket"))

        images = catalog.upload_product_image((), source, bucket)
        self.assertEqual(len(images), 1)
        self.assertTrue(images[0].startswith("file://"))
        self.assertEqual(len(os.listdir(bucket.root)), 1)

        full = ("a", "b", "c", "d")
        with self.assertRaises(ValidationError):
            catalog.upload_product_image(full, source, bucket)
        with self.assertRaises(StoreError):
            catalog.upload_product_image((), os.path.join(self.temp_dir.name, "doc.pdf"), bucket)
        with self.assertRaises(StoreError):
            catalog.upload_product_image((), os.path.join(self.temp_dir.name, "missing.jpg"), bucket)

    async def test_backend_failures_become_store_errors(self):
        broken = sqlite3.OperationalError("disk I/O error")
        with mock.patch.object(crud, "list_products", side_effect=broken):
            with self.assertRaises(BackendError) as ctx:
                await catalog.list_products()
        self.assertEqual(ctx.exception.message, "Could not load the catalog.")

        draft = catalog.build_product_draft("Mandala", "", "99.90")
        with mock.patch.object(crud, "create_product", side_effect=broken):
            with self.assertRaises(BackendError):
                await catalog.save_product(draft)
        with mock.patch.object(crud, "delete_attribute", side_effect=broken):
            with self.assertRaises(BackendError):
                await catalog.delete_attribute("size", "any")

        # validation still comes first and keeps its own message
        with mock.patch.object(crud, "create_category", side_effect=broken) as create:
            with self.assertRaises(ValidationError):
                await catalog.add_category("  ")
        create.assert_not_called()


if __name__ == "__main__":
    unittest.main()
