from typing import Literal

from typing_extensions import override

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from utils.messages import QuitRequestedMessage

Tone = Literal["default", "positive", "warning", "error"]
ButtonVariant = Literal["primary", "default", "success", "warning", "error"]

# tone -> (confirm button, cancel button)
TONE_VARIANTS: dict[Tone, tuple[ButtonVariant, ButtonVariant]] = {
    "default": ("primary", "default"),
    "positive": ("success", "default"),
    "warning": ("warning", "default"),
    "error": ("error", "primary"),
}


class DialogModal(ModalScreen[bool]):
    """
    Confirmation box. Dismisses True on confirm, False on cancel or escape.

    With no `secondary_text` it is a plain notice with a single button.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("y", "confirm", "Yes", show=False),
        Binding("n", "cancel", "No", show=False),
    ]

    def __init__(
        self,
        caption: str,
        primary_text: str = "OK",
        secondary_text: str = "",
        tone: Tone = "default",
        details: str = "",
    ):
        super().__init__()
        self.caption = caption
        self.details = details
        self.primary_text = primary_text
        self.secondary_text = secondary_text
        self.tone = tone

    def compose(self) -> ComposeResult:
        confirm_variant, cancel_variant = TONE_VARIANTS[self.tone]
        with Container(id="div-dialog"):
            yield Label(self.caption, id="caption")
            if self.details:
                yield Label(self.details, id="details")
            with Horizontal(id="dialog"):
                if self.secondary_text:
                    yield Button(self.secondary_text, variant=cancel_variant, id="btn-secondary")
                yield Button(self.primary_text, variant=confirm_variant, id="btn-primary")

    def on_mount(self) -> None:
        # destructive dialogs start on the safe button
        if self.secondary_text and self.tone == "error":
            self.query_one("#btn-secondary").focus()
        else:
            self.query_one("#btn-primary").focus()

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-primary":
            self.action_confirm()
        elif event.button.id == "btn-secondary":
            self.action_cancel()


class QuitDialogModal(DialogModal):
    def __init__(self):
        super().__init__(
            "Are you sure you want to quit?",
            "Yes",
            "No",
            "error",
            details="Your cart is saved and will be there next time.",
        )

    @override
    def action_confirm(self) -> None:
        self.app.post_message(QuitRequestedMessage())
        self.dismiss(True)
