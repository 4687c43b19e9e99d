from __future__ import annotations

from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select

from db.models import Profile, Role
from services import users
from utils.errors import StoreError


class UserFormModal(ModalScreen[bool]):
    """
    Master admin form to create an account or edit an existing one.
    Dismisses True once saved.
    """

    def __init__(self, profile: Optional[Profile] = None) -> None:
        super().__init__()
        self._profile = profile

    def compose(self) -> ComposeResult:
        p = self._profile
        with VerticalScroll(id="div-user-form"):
            yield Label("Edit user" if p else "New user", id="label-form-title")
            yield Label("Full name")
            yield Input(value=(p.full_name or "") if p else "", id="input-user-name")
            yield Label("Phone")
            yield Input(value=(p.phone or "") if p else "", id="input-user-phone")
            yield Label("Email")
            yield Input(value=(p.email or "") if p else "", id="input-user-email")
            yield Label("Password" if p is None else "New password (leave blank to keep)")
            yield Input(password=True, id="input-user-pwd")
            yield Label("Role")
            yield Select(
                [(r.label, r.value) for r in Role],
                value=(p.role if p else Role.ADMIN).value,
                allow_blank=False,
                id="select-user-role",
            )
            with Horizontal():
                yield Button("Cancel", id="btn-cancel")
                yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.query_one("#input-user-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        state = self.app.state
        name = self.query_one("#input-user-name", Input).value.strip()
        phone = self.query_one("#input-user-phone", Input).value.strip()
        email = self.query_one("#input-user-email", Input).value.strip()
        pwd = self.query_one("#input-user-pwd", Input).value
        role = Role(self.query_one("#select-user-role", Select).value)

        try:
            if self._profile is None:
                await users.create_user(
                    state.profile, state.auth, email, pwd, name, phone, role=role
                )
            else:
                await users.update_user(
                    state.profile,
                    self._profile.id,
                    full_name=name,
                    phone=phone,
                    email=email,
                    role=role,
                    password=pwd or None,
                )
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.dismiss(True)
