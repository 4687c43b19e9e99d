from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from db.models import Order
from services.checkout import place_order
from utils.errors import StoreError
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[Order | None]):
    """
    Order summary for the current cart.
    Returns the placed Order, or None if the user backed out or it failed.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        headers = ["Product Name", "Unit Price", "Quantity", "Total Price"]
        rows = [
            [
                item.product.name,
                format_price(item.product.price),
                item.quantity,
                format_price(item.line_total),
            ]
            for item in cart.items
        ]
        aligns = ["l", "r", "c", "r"]
        header_md = "### Order Summary\n\n"
        md = generate_markdown_table(headers, rows, aligns)
        md += f"\n\n**Total:** {format_price(cart.total())}"
        md += "\n\nPayment and delivery are arranged with the store after the order is reviewed."
        await self.query_one(MarkdownViewer).document.update(header_md + md)
        self.query_one("#btn-submit").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        state = self.app.state
        self.query_one("#btn-submit").disabled = True
        try:
            order = await place_order(
                state.cart, state.user_id, state.notifier, state.session.email
            )
        except StoreError as exc:
            self.query_one("#btn-submit").disabled = False
            self.notify(exc.message, severity="error")
            return

        self.app.notify(
            f"Order placed. Your order number is {order.id[:8]}; "
            f"total {format_price(order.total_amount)}."
        )
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
