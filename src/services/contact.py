# contact form and newsletter leads
from db import crud
from db.models import ContactMessage, Lead
from utils.errors import ValidationError, backend_errors
from utils.logger import get_logger
from utils.notify import Notifier
from utils.pure import require, validate_email

_logger = get_logger(__name__)

SUBJECTS = (
    "Custom order",
    "Product question",
    "My purchase",
    "Partnership",
)


async def submit_contact(
    name: str, email: str, subject: str, message: str, notifier: Notifier
) -> ContactMessage:
    """
    Store the message, email it to the store, and relay it through the form
    service. Only the stored copy must succeed; delivery failures are logged.
    """
    name = require(name, "Name")
    email = validate_email(email)
    if subject not in SUBJECTS:
        raise ValidationError("Pick a subject.")
    message = require(message, "Message")

    with backend_errors("saving contact message", "Could not send your message."):
        saved = await crud.insert_contact_message(name, email, subject, message)
    payload = {"name": name, "email": email, "subject": subject, "message": message}
    try:
        await notifier.send_email("contact_message", None, payload)
    except Exception as exc:
        _logger.error(f"Error emailing contact message {saved.id}: {exc}")
    try:
        await notifier.relay_form(payload)
    except Exception as exc:
        _logger.error(f"Error relaying contact message {saved.id}: {exc}")
    return saved


async def subscribe_lead(email: str, source: str = "newsletter") -> Lead:
    email = validate_email(email)
    with backend_errors(f"subscribing {email}", "Could not subscribe you right now."):
        return await crud.insert_lead(email, source)
