from __future__ import annotations

from typing import Dict

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, MarkdownViewer

from db.models import Product
from services import catalog
from utils.errors import StoreError
from utils.messages import CatalogChangedMessage
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_product_form import ProductFormModal


class AdminProductsScreen(BaseScreen):
    """
    Staff can list, filter, create, edit and delete products.
    """

    BINDINGS = [
        Binding("ctrl+n", "new_product", "New Product", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: Dict[str, Product] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Filter by name...")
            yield DataTable(id="table-admin-products")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                yield Button("New", id="btn-new", variant="success")
                yield Button("Edit", id="btn-edit", variant="primary")
                yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock", "Images")

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.load_products()

    @on(Input.Changed, "#input-search")
    def handle_search(self) -> None:
        self.load_products()

    @work(exclusive=True, group="admin-products")
    async def load_products(self) -> None:
        query = self.query_one("#input-search", Input).value.strip().lower()
        try:
            products = await catalog.list_products()
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self._products = {p.id: p for p in products}

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            if query and query not in p.name.lower():
                continue
            table.add_row(
                p.name,
                p.category or "-",
                format_price(p.price),
                p.stock,
                len(p.images),
                key=p.id,
            )
        await self.render_product(self._selected())

    def _selected(self) -> Product | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._products.get(row_key.value)

    @on(DataTable.RowHighlighted, "#table-admin-products")
    async def handle_highlight(self) -> None:
        await self.render_product(self._selected())

    async def render_product(self, prod: Product | None) -> None:
        viewer = self.query_one("#md-prod", MarkdownViewer)
        if prod is None:
            await viewer.document.update("### No product selected.")
            return
        rows = [
            ["Price", format_price(prod.price)],
            ["Category", prod.category or "-"],
            ["Colors", ", ".join(prod.colors) or "-"],
            ["Sizes", ", ".join(prod.sizes) or "-"],
            ["Stock", prod.stock],
            ["New", "yes" if prod.is_new else "no"],
            ["Bestseller", "yes" if prod.is_bestseller else "no"],
            ["Cover", prod.cover_image or "-"],
        ]
        md_table = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await viewer.document.update(f"### {prod.name}\n\n{prod.description}\n\n" + md_table)

    def action_new_product(self) -> None:
        self.open_form(None)

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.open_form(None)

    @on(Button.Pressed, "#btn-edit")
    def handle_edit(self) -> None:
        prod = self._selected()
        if prod is None:
            self.notify("Select a product first.", severity="warning")
            return
        self.open_form(prod)

    @work()
    async def open_form(self, prod: Product | None) -> None:
        try:
            attributes = await catalog.load_attributes()
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        saved = await self.app.push_screen_wait(ProductFormModal(attributes, prod))
        if saved is None:
            return
        self.notify("Product saved." if prod else "Product created.")
        self.app.post_message(CatalogChangedMessage())
        self.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        prod = self._selected()
        if prod is None:
            self.notify("Select a product first.", severity="warning")
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {prod.name}? This cannot be undone.",
                details="Past orders keep their lines and prices.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        try:
            deleted = await catalog.delete_product(prod.id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        if deleted:
            self.notify("Product deleted.")
        else:
            self.notify("Delete failed.", severity="error")
        self.app.post_message(CatalogChangedMessage())
        self.load_products()
