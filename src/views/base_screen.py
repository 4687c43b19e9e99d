from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import ModeSwitchedMessage, UserLogoutMessage
from utils.pure import format_price, generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal


class Sidebar(Container):
    def compose(self) -> ComposeResult:
        yield Label("Account", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Sign in", id="btn-signin", variant="primary")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self) -> None:
        await self.rebuild()

    async def rebuild(self) -> None:
        state = self.app.state
        if state.is_authenticated:
            profile = state.profile
            name = (profile.full_name if profile else None) or state.session.email
            role = profile.role.label if profile else "Customer"
            rows = [["Name", name], ["Role", role]]
        else:
            rows = [["Name", "Guest"]]
        rows.append(["Cart", f"{state.cart.count()} item(s), {format_price(state.cart.total())}"])
        await self.query_one(Markdown).update(
            generate_markdown_table(["", ""], rows, ["l", "l"])
        )

        self.query_one("#btn-signin").display = not state.is_authenticated
        self.query_one("#btn-logout").display = state.is_authenticated

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.menu_modes().items()
            ]
        )
        self.highlight_item(self.app.current_mode)

    async def on_list_view_selected(self, event: ListView.Selected) -> None:
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.app.current_mode)
        if self.app.current_mode != selected_mode:
            self.app.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-signin")
    def handle_signin(self) -> None:
        self.app.action_sign_in()

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self) -> None:
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return
        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str) -> None:
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + str(mode_str)


class BaseScreen(Screen):
    """
    Inherited by all mode screens: header, footer, sidebar and key bindings.

    The app calls `refresh_cart` and `refresh_session` on the active screen;
    screens override them to redraw their own content.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    SUB_TITLE = "Macramê Store"

    def compose(self) -> ComposeResult:
        yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    def on_mount(self) -> None:
        self.app.title = "Macramê Store"
        self.sub_title = self.app.menu_modes().get(self.app.current_mode, self.SUB_TITLE)

    async def refresh_session(self) -> None:
        await self.query_one(Sidebar).rebuild()

    async def refresh_cart(self) -> None:
        await self.query_one(Sidebar).rebuild()

    @work()
    async def action_quit(self) -> None:
        await self.app.push_screen_wait(QuitDialogModal())
