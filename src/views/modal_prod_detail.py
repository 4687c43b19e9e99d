from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from db.models import Product
from services import catalog
from utils.errors import StoreError
from utils.pure import format_price, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail plus quantity picker. Returns True if the cart changed.
    """

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()
        self._product_id = product_id
        self._prod: Product | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-prod-actions"):
                yield Label("Color")
                yield Select([], id="select-color", prompt="Choose a color")
                yield Label("Size")
                yield Select([], id="select-size", prompt="Choose a size")
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self) -> None:
        try:
            self._prod = await catalog.get_product(self._product_id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            self.dismiss(False)
            return
        if self._prod is None:
            self.notify("This product is no longer available.", severity="error")
            self.dismiss(False)
            return
        p = self._prod

        rows = [
            ["Price", format_price(p.price)],
            ["Category", p.category or "-"],
            ["Colors", ", ".join(p.colors) or "-"],
            ["Sizes", ", ".join(p.sizes) or "-"],
            ["In stock", p.stock],
        ]
        md = f"### {p.name}\n\n{p.description}\n\n"
        md += generate_markdown_table(["Detail", ""], rows, ["l", "l"])
        if p.images:
            md += "\n\n**Photos**\n\n" + "\n".join(f"- {url}" for url in p.images)
        await self.query_one(MarkdownViewer).document.update(md)

        # variant choice is informational; the cart line is keyed by product
        self.query_one("#select-color", Select).set_options([(c, c) for c in p.colors])
        self.query_one("#select-size", Select).set_options([(s, s) for s in p.sizes])

        existing = self.app.state.cart.get(p.id)
        if existing:
            self.query_one("#btn-addcart", Button).label = f"Add more ({existing.quantity} in cart)"
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-order-qty" and message.value.isdigit():
            self.order_qty = max(1, int(message.value))

    def watch_order_qty(self, qty: int) -> None:
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(qty):
            qty_input.value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self) -> None:
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self) -> None:
        self.order_qty = max(1, self.order_qty - 1)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self) -> None:
        try:
            result = await self.app.state.cart.add_item(self._prod, self.order_qty)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        if not result:
            self.notify("Could not save your cart. Please try again.", severity="error")
            return
        self.app.notify(f"{self._prod.name} added to cart.")
        self.dismiss(True)
