from typing import Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.models import Capability
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    CatalogChangedMessage,
    ModeSwitchedMessage,
    NewOrderMessage,
    QuitRequestedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.state import AppContext
from views.base_screen import BaseScreen
from views.scr_account import AccountScreen
from views.scr_admin_attributes import AdminAttributesScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_admin_users import AdminUsersScreen
from views.scr_auth import AuthScreen
from views.scr_cart import CartScreen
from views.scr_contact import ContactScreen
from views.scr_shop import ShopScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "account": AccountScreen,
        "contact": ContactScreen,
        "admin_products": AdminProductsScreen,
        "admin_attributes": AdminAttributesScreen,
        "admin_users": AdminUsersScreen,
    }

    CUSTOMER_MODES = {"shop": "Shop", "cart": "Cart", "contact": "Contact"}
    ACCOUNT_MODES = {"account": "My Account"}
    CATALOG_MODES = {"admin_products": "Products", "admin_attributes": "Attributes"}
    USER_MODES = {"admin_users": "Users"}

    CSS_PATH = "styles/app.tcss"

    state: AppContext

    def __init__(self, context: Optional[AppContext] = None):
        super().__init__()
        self.state = context or AppContext()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    def menu_modes(self) -> Dict[str, str]:
        """Modes the current user may open, in menu order."""
        modes = dict(self.CUSTOMER_MODES)
        if self.state.is_authenticated:
            modes.update(self.ACCOUNT_MODES)
        if not self.state.can(Capability.VIEW_ADMIN_PANEL):
            return modes
        if self.state.can(Capability.MANAGE_CATALOG):
            modes.update(self.CATALOG_MODES)
        if self.state.can(Capability.VIEW_USERS):
            modes.update(self.USER_MODES)
        return modes

    async def on_mount(self) -> None:
        self.state.cart.on_change = lambda: self.post_message(CartChangedMessage())
        self.state.on_auth_change = lambda: self.post_message(UserLoginMessage())
        await self.state.start()
        await self.switch_mode("shop")

    def _mode_screens(self):
        return [s for s in self.screen_stack if isinstance(s, BaseScreen)]

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @work
    async def action_sign_in(self):
        await self.push_screen_wait(AuthScreen())

    @on(CartChangedMessage)
    async def handle_cart_changed(self):
        for screen in self._mode_screens():
            await screen.refresh_cart()

    @on(UserLoginMessage)
    async def handle_session_changed(self):
        if self.current_mode not in self.menu_modes():
            self.post_message(ModeSwitchedMessage(self.current_mode, "shop"))
            await self.switch_mode("shop")
        for screen in self._mode_screens():
            await screen.refresh_session()

    @on(CatalogChangedMessage)
    async def handle_catalog_changed(self):
        # signed-in carts drop lines whose product was deleted
        await self.state.cart.load()

    @on(NewOrderMessage)
    async def handle_new_order(self):
        self.post_message(ModeSwitchedMessage(self.current_mode, "account"))
        await self.switch_mode("account")

    @on(ModeSwitchedMessage)
    def handle_mode_switched(self, message: ModeSwitchedMessage):
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.auth.sign_out()
        self.notify("Logout successful.")

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.teardown()
        self.exit()


def run():
    StorefrontApp().run()


if __name__ == "__main__":
    run()
