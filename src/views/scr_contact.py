from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, Rule, Select, TextArea

from services import contact
from utils.errors import StoreError
from views.base_screen import BaseScreen


class ContactScreen(BaseScreen):
    """
    Contact form and newsletter sign-up.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-contact"):
            yield Label("Name")
            yield Input(placeholder="Your name", id="input-contact-name")
            yield Label("Email")
            yield Input(placeholder="you@example.com", id="input-contact-email")
            yield Label("Subject")
            yield Select([(s, s) for s in contact.SUBJECTS], id="select-subject", prompt="Pick a subject")
            yield Label("Message")
            yield TextArea(id="textarea-message")
            yield Button("Send message", id="btn-send", variant="primary")
            yield Rule(line_style="dashed")
            yield Label("Get news about launches and workshops")
            with Horizontal(id="hort-newsletter"):
                yield Input(placeholder="you@example.com", id="input-lead-email")
                yield Button("Subscribe", id="btn-subscribe")

    async def on_mount(self) -> None:
        await self.refresh_session()

    async def refresh_session(self) -> None:
        await super().refresh_session()
        state = self.app.state
        # prefill for signed-in customers, never overwrite what was typed
        if state.profile:
            name_input = self.query_one("#input-contact-name", Input)
            email_input = self.query_one("#input-contact-email", Input)
            if not name_input.value:
                name_input.value = state.profile.full_name or ""
            if not email_input.value:
                email_input.value = state.profile.email or ""

    @on(Button.Pressed, "#btn-send")
    @work(exclusive=True)
    async def handle_send(self) -> None:
        subject = self.query_one("#select-subject", Select).value
        try:
            await contact.submit_contact(
                self.query_one("#input-contact-name", Input).value,
                self.query_one("#input-contact-email", Input).value,
                subject if isinstance(subject, str) else "",
                self.query_one("#textarea-message", TextArea).text,
                self.app.state.notifier,
            )
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return

        self.query_one("#textarea-message", TextArea).clear()
        self.query_one("#select-subject", Select).clear()
        self.notify("Message sent. We will get back to you soon.")

    @on(Button.Pressed, "#btn-subscribe")
    @work(exclusive=True)
    async def handle_subscribe(self) -> None:
        email_input = self.query_one("#input-lead-email", Input)
        try:
            await contact.subscribe_lead(email_input.value)
        except StoreError as exc:
            self.notify(exc.message, severity="error")
            return
        email_input.value = ""
        self.notify("Thanks for subscribing!")
