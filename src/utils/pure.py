import re
from decimal import Decimal, InvalidOperation
from typing import List, Literal, Optional

from utils.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
MIN_PASSWORD_LENGTH = 6


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of cells (converted with str).
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to left for every column.

    Returns:
        str: Markdown formatted table, or "" when there are no rows.
    """
    if not rows and not headers:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [str(h) for h in headers]
    rows = [[_escape_cell(str(c)) for c in row] for row in rows]

    if aligns is None:
        aligns = ["l"] * len(headers)
    elif len(aligns) != len(headers):
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {"l": ":---", "c": ":---:", "r": "---:"}
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join(align_map[a] for a in aligns) + " |",
    ]
    lines += ["| " + " | ".join(row) + " |" for row in rows]
    return "\n".join(lines)


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def format_price(value: Decimal) -> str:
    """R$ with Brazilian separators, e.g. Decimal('1189.9') -> 'R$ 1.189,90'."""
    us = f"{Decimal(value):,.2f}"
    return "R$ " + us.replace(",", "_").replace(".", ",").replace("_", ".")


def parse_price(raw) -> Decimal:
    """Accepts '45', '45.5' or '45,50'. Raises ValidationError otherwise."""
    text = str(raw if raw is not None else "").strip().replace(",", ".")
    try:
        price = Decimal(text)
    except InvalidOperation:
        raise ValidationError("Price must be a number.") from None
    if not price.is_finite():
        raise ValidationError("Price must be a number.")
    if price < 0:
        raise ValidationError("Price cannot be negative.")
    return price.quantize(Decimal("0.01"))


def require(value: Optional[str], field_name: str) -> str:
    """Stripped value, or ValidationError if it is empty."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required.")
    return text


def validate_email(email: Optional[str]) -> str:
    email = require(email, "Email").lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email address.")
    return email


def validate_new_password(password: str, confirm: Optional[str] = None) -> str:
    if confirm is not None and password != confirm:
        raise ValidationError("Passwords do not match.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )
    return password


def validate_hex(hex_code: Optional[str]) -> str:
    hex_code = require(hex_code, "Hex code")
    if not hex_code.startswith("#"):
        hex_code = "#" + hex_code
    if not HEX_RE.match(hex_code):
        raise ValidationError("Hex code must look like #a1b2c3.")
    return hex_code.lower()
