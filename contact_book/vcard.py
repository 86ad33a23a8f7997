from typing import Iterable

from .models import Contact


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


def render_vcard(contact: Contact) -> str:
    return "\n".join(
        [
            "BEGIN:VCARD",
            "VERSION:3.0",
            f"FN:{_single_line(contact.name)}",
            f"TEL:{contact.country_code}{contact.phone}",
            "END:VCARD",
        ]
    )


def render_vcards(contacts: Iterable[Contact]) -> str:
    """vCard 3.0 records joined by a single newline, no trailing newline."""
    return "\n".join(render_vcard(c) for c in contacts)
