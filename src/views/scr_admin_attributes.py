from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, TabbedContent, TabPane

from services import catalog
from utils.errors import StoreError
from utils.messages import CatalogChangedMessage
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

# attribute kind -> (tab title, columns)
KIND_TABS = {
    "category": ("Categories", ("Name",)),
    "color": ("Colors", ("Name", "Hex")),
    "size": ("Sizes", ("Name",)),
}


class AdminAttributesScreen(BaseScreen):
    """
    Staff manage the categories, colors and sizes offered in the product form.

    Each tab has a table plus a small form: select a row to rename it, or
    leave the selection and press Add to create a new one.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-attributes"):
            for kind, (title, _) in KIND_TABS.items():
                with TabPane(title, id=f"tab-{kind}"):
                    with Vertical():
                        yield DataTable(id=f"table-{kind}")
                        with Horizontal(classes="hort-attr-form"):
                            yield Input(placeholder="Name", id=f"input-{kind}-name")
                            if kind == "color":
                                yield Input(placeholder="#rrggbb", id="input-color-hex")
                            yield Button("Add", id=f"btn-{kind}-add", variant="success")
                            yield Button("Rename", id=f"btn-{kind}-rename", variant="primary")
                            yield Button("Delete", id=f"btn-{kind}-delete", variant="error")

    def on_mount(self) -> None:
        for kind, (_, columns) in KIND_TABS.items():
            table = self.query_one(f"#table-{kind}", DataTable)
            table.cursor_type = "row"
            table.zebra_stripes = True
            table.add_columns(*columns)

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.load_attributes()

    @work(exclusive=True, group="attributes")
    async def load_attributes(self) -> None:
        try:
            categories, colors, sizes = await catalog.load_attributes()
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        for kind, entries in (("category", categories), ("color", colors), ("size", sizes)):
            table = self.query_one(f"#table-{kind}", DataTable)
            table.clear()
            for entry in entries:
                if kind == "color":
                    table.add_row(entry.name, entry.hex_code, key=entry.id)
                else:
                    table.add_row(entry.name, key=entry.id)

    @on(DataTable.RowHighlighted)
    def handle_highlight(self, event: DataTable.RowHighlighted) -> None:
        kind = event.data_table.id.removeprefix("table-")
        row = event.data_table.get_row(event.row_key)
        self.query_one(f"#input-{kind}-name", Input).value = str(row[0])
        if kind == "color":
            self.query_one("#input-color-hex", Input).value = str(row[1])

    def _selected_id(self, kind: str) -> str | None:
        table = self.query_one(f"#table-{kind}", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    def _form(self, kind: str):
        name = self.query_one(f"#input-{kind}-name", Input).value
        hex_code = self.query_one("#input-color-hex", Input).value if kind == "color" else None
        return name, hex_code

    @on(Button.Pressed)
    @work(exclusive=True, group="attribute-edit")
    async def handle_action(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if not button_id.startswith("btn-") or button_id.count("-") != 2:
            return
        _, kind, action = button_id.split("-")
        if kind not in KIND_TABS:
            return

        name, hex_code = self._form(kind)
        try:
            if action == "add":
                if kind == "category":
                    await catalog.add_category(name)
                elif kind == "color":
                    await catalog.add_color(name, hex_code)
                else:
                    await catalog.add_size(name)
                self.notify(f"{name.strip()} added.")
            elif action == "rename":
                attr_id = self._selected_id(kind)
                if attr_id is None:
                    self.notify("Select a row first.", severity="warning")
                    return
                if not await catalog.rename_attribute(kind, attr_id, name, hex_code):
                    self.notify("Update failed.", severity="error")
                    return
                self.notify("Saved.")
            elif action == "delete":
                attr_id = self._selected_id(kind)
                if attr_id is None:
                    self.notify("Select a row first.", severity="warning")
                    return
                if not await self.app.push_screen_wait(
                    DialogModal(
                        f"Delete this {kind}?",
                        details="Products that already use it keep it until they are edited.",
                        primary_text="Delete",
                        secondary_text="Cancel",
                        tone="error",
                    )
                ):
                    return
                await catalog.delete_attribute(kind, attr_id)
                self.notify("Deleted.")
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return

        self.app.post_message(CatalogChangedMessage())
        self.load_attributes()
