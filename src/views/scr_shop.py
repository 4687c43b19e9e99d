from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import DataTable, Select

from db.models import Product
from services import catalog
from utils.errors import StoreError
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class ShopScreen(BaseScreen):
    """
    Product grid with a category filter; Enter opens the product.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._products: List[Product] = []
        self._category = catalog.ALL_CATEGORIES

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(
                [(catalog.ALL_CATEGORIES, catalog.ALL_CATEGORIES)],
                value=catalog.ALL_CATEGORIES,
                allow_blank=False,
                id="select-category",
            )
            yield DataTable(id="table-products")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "")
        self.load_products()

    def action_noop(self) -> None:
        pass

    @on(ScreenResume)
    def handle_reload(self) -> None:
        self.load_products()

    @on(Select.Changed, "#select-category")
    def handle_category(self, event: Select.Changed) -> None:
        if isinstance(event.value, str) and event.value != self._category:
            self._category = event.value
            self.load_products()

    @work(exclusive=True, group="shop")
    async def load_products(self) -> None:
        try:
            all_products = await catalog.list_products()
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        categories = catalog.shop_categories(all_products)
        if self._category not in categories:
            self._category = catalog.ALL_CATEGORIES

        select = self.query_one("#select-category", Select)
        with select.prevent(Select.Changed):
            select.set_options([(c, c) for c in categories])
            select.value = self._category

        if self._category == catalog.ALL_CATEGORIES:
            self._products = all_products
        else:
            self._products = [p for p in all_products if p.category == self._category]

        table = self.query_one(DataTable)
        table.clear()
        for p in self._products:
            tags = []
            if p.is_new:
                tags.append("New")
            if p.is_bestseller:
                tags.append("Bestseller")
            table.add_row(
                p.name, p.category or "-", format_price(p.price), ", ".join(tags), key=p.id
            )

    @on(DataTable.RowSelected, "#table-products")
    @work()
    async def handle_open_product(self, event: DataTable.RowSelected) -> None:
        await self.app.push_screen_wait(ProdDetailModal(event.row_key.value))
