from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from db.models import CartItem
from services.cart import CartResult
from utils.messages import NewOrderMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal
from views.scr_auth import AuthScreen


class CartItemActionMessage(Message):
    bubble = True

    def __init__(self, product_id: str, action: str) -> None:
        super().__init__()
        self.product_id = product_id
        self.action = action


class CartItemActionLabel(Label):
    def __init__(self, product_id: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.product_id = product_id

    def action_increment(self):
        self.post_message(CartItemActionMessage(self.product_id, "increment"))

    def action_decrement(self):
        self.post_message(CartItemActionMessage(self.product_id, "decrement"))

    def action_remove(self):
        self.post_message(CartItemActionMessage(self.product_id, "remove"))


class CartItemWidget(HorizontalGroup):
    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        pid = self.item.product_id
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(content=self.item.product.name, id="label-item-name")
                yield Label(content=format_price(self.item.product.price), id="label-item-price")
                yield Label(content=f"x{self.item.quantity}", id="label-item-qty")
                yield Label(content=format_price(self.item.line_total), id="label-item-total")
            with Container(id="div-actions"):
                yield CartItemActionLabel(pid, content="[@click=decrement()]-[/]", id="link-item-dec")
                yield CartItemActionLabel(pid, content="[@click=increment()]+[/]", id="link-item-inc")
                yield CartItemActionLabel(pid, content="[@click=remove()]Remove[/]", id="link-item-remove")


class CartScreen(BaseScreen):
    """
    Cart lines with quantity controls, total and checkout.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total: " + format_price(0), id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Keep Shopping", id="btn-shop")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self) -> None:
        await self.render_cart()

    async def refresh_cart(self) -> None:
        await super().refresh_cart()
        await self.render_cart()

    async def refresh_session(self) -> None:
        await super().refresh_session()
        await self.render_cart()

    @on(ScreenResume)
    async def handle_resume(self) -> None:
        await self.render_cart()

    async def render_cart(self) -> None:
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content")
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in cart.items])

        if cart.is_empty():
            content.add_class("no-items")
        else:
            content.remove_class("no-items")
        self.query_one("#label-cart-total", Label).content = "Total: " + format_price(cart.total())
        self.query_one("#btn-checkout").disabled = cart.is_empty()

    def _report(self, result: CartResult) -> None:
        if not result:
            self.notify("Could not update your cart. Please try again.", severity="error")

    @on(CartItemActionMessage)
    @work(group="cart-item")
    async def handle_item_action(self, event: CartItemActionMessage) -> None:
        cart = self.app.state.cart
        if event.action == "increment":
            self._report(await cart.update_quantity(event.product_id, 1))
        elif event.action == "decrement":
            self._report(await cart.update_quantity(event.product_id, -1))
        elif event.action == "remove":
            if await self.app.push_screen_wait(
                DialogModal(
                    "Do you really want to remove this item from cart?",
                    primary_text="Yes",
                    secondary_text="No",
                    tone="warning",
                )
            ):
                result = await cart.remove_item(event.product_id)
                self._report(result)
                if result:
                    self.notify("Item removed from cart.", severity="information")

    @on(Button.Pressed, "#btn-shop")
    async def handle_keep_shopping(self) -> None:
        await self.app.switch_mode("shop")

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self.app.state.cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            self._report(await self.app.state.cart.clear())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        state = self.app.state
        if state.cart.is_empty():
            self.app.notify("Cart is empty.", severity="warning")
            return

        if not state.is_authenticated:
            self.notify("Sign in to place your order.", severity="warning")
            if not await self.app.push_screen_wait(AuthScreen()):
                return

        order = await self.app.push_screen_wait(CheckoutModal())
        if order is not None:
            self.app.post_message(NewOrderMessage())
