from typing import List, Optional, Tuple

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer, TabbedContent, TabPane

from db.models import Order, OrderItem, Product
from services import account
from utils.errors import StoreError
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen


class AccountScreen(BaseScreen):
    """
    The signed-in customer's orders and profile.

    Layout:
    - Orders tab: detail view on top, orders table below (newest first).
    - Profile tab: name/phone form and a password change form.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-account"):
            with TabPane("My orders", id="tab-orders"):
                with Vertical():
                    yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
                    yield DataTable(id="table-orders")
                    yield Button("Refresh", id="btn-refresh")
            with TabPane("Profile", id="tab-profile"):
                with Vertical(id="div-profile"):
                    yield Label("Email")
                    yield Input(id="input-profile-email", disabled=True)
                    yield Label("Full name")
                    yield Input(id="input-profile-name")
                    yield Label("Phone")
                    yield Input(id="input-profile-phone")
                    yield Button("Save profile", id="btn-save-profile", variant="primary")
                    yield Label("New password")
                    yield Input(password=True, id="input-new-pwd")
                    yield Label("Confirm new password")
                    yield Input(password=True, id="input-new-pwd2")
                    with Horizontal():
                        yield Button("Change password", id="btn-change-pwd")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order", "Date", "Status", "Total")

    def action_noop(self) -> None:
        pass

    async def refresh_session(self) -> None:
        await super().refresh_session()
        self.load_account()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    def handle_refresh(self) -> None:
        self.load_account()

    @work(exclusive=True, group="account")
    async def load_account(self) -> None:
        user_id = self.app.state.user_id
        if user_id is None:
            return
        try:
            profile, orders = await account.load_account(user_id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return

        if profile:
            self.query_one("#input-profile-email", Input).value = profile.email or ""
            self.query_one("#input-profile-name", Input).value = profile.full_name or ""
            self.query_one("#input-profile-phone", Input).value = profile.phone or ""

        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            table.add_row(
                o.id[:8],
                o.created_at.strftime("%Y-%m-%d %H:%M"),
                o.status.label,
                format_price(o.total_amount),
                key=o.id,
            )
        self._orders = orders
        if orders:
            table.cursor_coordinate = (0, 0)
            self.load_detail(orders[0].id)
        else:
            await self._render_detail(None, [])

    @on(DataTable.RowHighlighted, "#table-orders")
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is not None and event.row_key.value:
            self.load_detail(event.row_key.value)

    @work(exclusive=True, group="order-detail")
    async def load_detail(self, order_id: str) -> None:
        try:
            order, lines = await account.order_detail(order_id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        await self._render_detail(order, lines)

    async def _render_detail(
        self,
        order: Optional[Order],
        lines: List[Tuple[OrderItem, Optional[Product]]],
    ) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            await viewer.document.update("### You have no orders yet.")
            return

        header = (
            f"### Order {order.id[:8]}\n"
            f"Date: {order.created_at:%Y-%m-%d %H:%M}  \n"
            f"Status: {order.status.label}\n\n"
        )
        rows = []
        for item, prod in lines:
            name = prod.name if prod else "(product removed)"
            rows.append(
                [name, item.quantity, format_price(item.unit_price), format_price(item.line_total)]
            )
        table = generate_markdown_table(
            ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
        )
        footer = f"\n\n**Total:** {format_price(order.total_amount)}"
        await viewer.document.update(header + table + footer)

    @on(Button.Pressed, "#btn-save-profile")
    @work(exclusive=True)
    async def handle_save_profile(self) -> None:
        name = self.query_one("#input-profile-name", Input).value
        phone = self.query_one("#input-profile-phone", Input).value
        try:
            saved = await account.update_profile(self.app.state.user_id, name, phone)
            if saved:
                await self.app.state.reload_profile()
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        if not saved:
            self.notify("Could not save your profile.", severity="error")
            return
        await self.refresh_session()
        self.notify("Profile saved.")

    @on(Button.Pressed, "#btn-change-pwd")
    @work(exclusive=True)
    async def handle_change_password(self) -> None:
        pwd_input = self.query_one("#input-new-pwd", Input)
        pwd2_input = self.query_one("#input-new-pwd2", Input)
        try:
            await self.app.state.auth.update_password(
                pwd_input.value, confirm_password=pwd2_input.value
            )
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        pwd_input.value = ""
        pwd2_input.value = ""
        self.notify("Password updated.")
