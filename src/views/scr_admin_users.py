from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable

from db.models import Capability, Profile
from services import users
from utils.errors import StoreError
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_user_form import UserFormModal


class AdminUsersScreen(BaseScreen):
    """
    Staff list every account. Admins can promote and demote; the master admin
    can also create, edit and delete accounts.
    """

    def __init__(self) -> None:
        super().__init__()
        self._profiles: Dict[str, Profile] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-users")
            with Horizontal(id="hort-controls"):
                yield Button("Promote to admin", id="btn-promote", variant="success")
                yield Button("Demote to customer", id="btn-demote", variant="warning")
                yield Button("New", id="btn-new", classes="master-only")
                yield Button("Edit", id="btn-edit", variant="primary", classes="master-only")
                yield Button("Delete", id="btn-delete", variant="error", classes="master-only")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Email", "Phone", "Role")

    async def refresh_session(self) -> None:
        await super().refresh_session()
        self.load_users()

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.load_users()

    @work(exclusive=True, group="users")
    async def load_users(self) -> None:
        state = self.app.state
        can_manage = state.can(Capability.MANAGE_USERS)
        for btn in self.query(".master-only"):
            btn.display = can_manage
        try:
            profiles = await users.list_users(state.profile)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return

        self._profiles = {p.id: p for p in profiles}
        table = self.query_one(DataTable)
        table.clear()
        for p in profiles:
            you = " (you)" if p.id == state.user_id else ""
            table.add_row(
                (p.full_name or "-") + you, p.email or "-", p.phone or "-", p.role.label, key=p.id
            )

    def _selected(self) -> Optional[Profile]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._profiles.get(row_key.value)

    @on(Button.Pressed, "#btn-promote")
    @work(exclusive=True)
    async def handle_promote(self) -> None:
        target = self._selected()
        if target is None:
            return
        try:
            await users.promote_to_admin(self.app.state.profile, target.id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.notify(f"{target.email} is now an admin.")
        self.load_users()

    @on(Button.Pressed, "#btn-demote")
    @work(exclusive=True)
    async def handle_demote(self) -> None:
        target = self._selected()
        if target is None:
            return
        try:
            await users.demote_to_customer(self.app.state.profile, target.id)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.notify(f"{target.email} is now a customer.")
        self.load_users()

    @on(Button.Pressed, "#btn-new")
    @work()
    async def handle_new(self) -> None:
        if await self.app.push_screen_wait(UserFormModal()):
            self.notify("User created.")
            self.load_users()

    @on(Button.Pressed, "#btn-edit")
    @work()
    async def handle_edit(self) -> None:
        target = self._selected()
        if target is None:
            return
        if await self.app.push_screen_wait(UserFormModal(target)):
            self.notify("User updated.")
            if target.id == self.app.state.user_id:
                try:
                    await self.app.state.reload_profile()
                except StoreError as exc:
                    self.notify(exc.message, severity="warning")
                await super().refresh_session()
            self.load_users()

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        target = self._selected()
        if target is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete the account of {target.email}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        try:
            await users.delete_user(self.app.state.profile, target)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        self.notify("User deleted.")
        self.load_users()
