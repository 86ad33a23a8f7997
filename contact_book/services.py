import re
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from .errors import ConflictError, ValidationError
from .logging_utils import iso_now
from .models import Contact
from .storage import (
    contact_exists,
    insert_contact,
    list_contacts,
    list_contacts_for_export,
)
from .vcard import render_vcards


PHONE_RE = re.compile(r"^[0-9]{6,10}$")
PHONE_RULE = "Phone number must be 6-10 digits (without country code or leading zero)"


class UploadResult(NamedTuple):
    success: bool
    id: Optional[int] = None


def _project_phone(raw: str) -> str:
    # ASCII only; full-width and other script digits are dropped
    digits = re.sub(r"[^0-9]", "", raw)
    if digits.startswith("0"):
        digits = digits[1:]
    return digits


def normalize_phone(raw: str) -> str:
    """
    Reduce a user-typed phone to the stored form.

    Every non-digit is dropped and one leading zero removed; what is
    left must be 6 to 10 digits.
    """
    phone = _project_phone(raw)
    if not PHONE_RE.match(phone):
        raise ValidationError(PHONE_RULE)
    return phone


def upload_contact(
    db: Session,
    *,
    name: str,
    phone: str,
    country_code: str,
) -> UploadResult:
    normalized = normalize_phone(phone)

    result = insert_contact(
        db,
        name=name,
        phone=normalized,
        country_code=country_code,
        created_at=iso_now(),
    )
    if not result.inserted:
        raise ConflictError("Contact already exists")
    return UploadResult(success=True, id=result.id)


def check_contact(db: Session, *, phone: str, country_code: str) -> bool:
    # advisory only; upload_contact is what enforces uniqueness
    return contact_exists(db, phone=_project_phone(phone), country_code=country_code)


def list_all(db: Session) -> List[Contact]:
    return list_contacts(db)


def export_vcard(db: Session) -> bytes:
    return render_vcards(list_contacts_for_export(db)).encode("utf-8")
