"""Small field validators shared by the domain modules."""

import re

from domain.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
URL_RE = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def humanize(field: str) -> str:
    return field.replace("_", " ").capitalize()


def blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def require(fields: dict, names: list[str]) -> list[str]:
    """Return a "can't be blank" message for every missing field in ``names``."""
    return [f"{humanize(n)} can't be blank" for n in names if blank(fields.get(n))]


def check_email(value: str | None, messages: list[str]) -> None:
    if not blank(value) and not EMAIL_RE.match(value):
        messages.append("Email is invalid")


def check_url(value: str | None, field: str, messages: list[str]) -> None:
    if not blank(value) and not URL_RE.match(value):
        messages.append(f"{humanize(field)} is invalid")


def raise_if(messages: list[str]) -> None:
    if messages:
        raise ValidationError(messages)
