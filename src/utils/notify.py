# outbound notifications: transactional email and the contact form relay
from typing import Optional

from db import crud
from utils.config import settings
from utils.logger import get_logger

_logger = get_logger(__name__)

EMAIL_TEMPLATES = {
    "order_confirmation": "New order #{order_id} from {customer_email}: {total}",
    "contact_message": "Contact from {name} <{email}> about '{subject}'",
    "password_reset": "Password reset requested for {email}",
}


class Notifier:
    """
    Hands messages to the delivery side by recording them in the outbox table.

    Both channels raise on failure; callers decide whether a failed
    notification matters.
    """

    def __init__(self, store_email: str = settings.store_email):
        self.store_email = store_email

    async def send_email(
        self, template: str, recipient: Optional[str], payload: dict
    ) -> str:
        if template not in EMAIL_TEMPLATES:
            raise ValueError(f"Unknown email template: {template}")
        recipient = recipient or self.store_email
        payload = {**payload, "subject_line": self.render(template, payload)}
        message_id = await crud.insert_outbox("email", template, recipient, payload)
        _logger.info(f"Queued '{template}' email to {recipient}")
        return message_id

    async def relay_form(self, payload: dict) -> str:
        """Secondary delivery path for contact messages."""
        message_id = await crud.insert_outbox(
            "form_relay", "contact_message", self.store_email, payload
        )
        _logger.info("Relayed contact form")
        return message_id

    @staticmethod
    def render(template: str, payload: dict) -> str:
        """Plain-text subject line for a queued message."""
        return EMAIL_TEMPLATES[template].format_map(_Missing(payload))


class _Missing(dict):
    def __missing__(self, key):
        return "?"
