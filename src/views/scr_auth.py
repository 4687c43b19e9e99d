from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from utils.errors import StoreError


class AuthScreen(ModalScreen[bool]):
    """
    Sign in, sign up and password reset. Dismisses True once signed in.

    The cart merge happens in the app context as soon as the auth client
    reports the new session, before this screen closes.
    """

    def compose(self) -> ComposeResult:
        with TabbedContent(id="super-tab-auth"):
            with TabPane("Sign in", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(placeholder="*********", password=True, id="input-login-pwd")
                    with Horizontal(id="div-login-btns"):
                        yield Button("Back", id="btn-back")
                        yield Button("Sign in", id="btn-login", variant="primary")

            with TabPane("Create account", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Full name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Phone")
                    yield Input(placeholder="(11) 99999-9999", id="input-reg-phone")
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-reg-email")
                    yield Label("Password")
                    yield Input(placeholder="at least 6 characters", password=True, id="input-reg-pwd")
                    yield Label("Confirm password")
                    yield Input(placeholder="*********", password=True, id="input-reg-pwd2")
                    yield Button("Create account", id="btn-reg", variant="primary")

            with TabPane("Forgot password", id="tab-reset"):
                with Vertical(id="div-reset"):
                    yield Label("Email")
                    yield Input(placeholder="you@example.com", id="input-reset-email")
                    yield Button("Send reset link", id="btn-reset-request")
                    yield Label("Reset code")
                    yield Input(placeholder="code from the email", id="input-reset-token")
                    yield Label("New password")
                    yield Input(placeholder="*********", password=True, id="input-reset-pwd")
                    yield Button("Set new password", id="btn-reset-confirm", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "escape":
            self.dismiss(False)
        elif event.key == "enter" and self.focused is self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-back")
    def handle_back(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        try:
            session = await self.app.state.auth.sign_in(email, pwd)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        if self.app.state.merge_error is not None:
            self.notify(
                "Some items from your cart could not be saved to your account.",
                severity="warning",
            )
        self.notify(f"Welcome, {session.email}!")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        name = self.query_one("#input-reg-name", Input).value.strip()
        phone = self.query_one("#input-reg-phone", Input).value.strip()
        email = self.query_one("#input-reg-email", Input).value.strip()
        pwd = self.query_one("#input-reg-pwd", Input).value
        pwd2 = self.query_one("#input-reg-pwd2", Input).value

        try:
            await self.app.state.auth.sign_up(email, pwd, name, phone, confirm_password=pwd2)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return

        self.query_one(TabbedContent).active = "tab-login"
        self.query_one("#input-login-email", Input).value = email
        self.query_one("#input-login-pwd", Input).focus()
        self.notify("Account created. You can sign in now.")

    @on(Button.Pressed, "#btn-reset-request")
    @work(exclusive=True)
    async def handle_reset_request(self) -> None:
        email = self.query_one("#input-reset-email", Input).value
        try:
            await self.app.state.auth.request_password_reset(email)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.notify("If this email is registered, a reset code is on its way.")
        self.query_one("#input-reset-token").focus()

    @on(Button.Pressed, "#btn-reset-confirm")
    @work(exclusive=True)
    async def handle_reset_confirm(self) -> None:
        token = self.query_one("#input-reset-token", Input).value.strip()
        pwd = self.query_one("#input-reset-pwd", Input).value
        if not token:
            self.notify("Enter the code from the email.", severity="error")
            return
        try:
            await self.app.state.auth.update_password(pwd, token=token)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.query_one(TabbedContent).active = "tab-login"
        self.notify("Password updated. Sign in with the new password.")
