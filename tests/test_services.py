import pytest

from contact_book.errors import ConflictError, StorageError, ValidationError
from contact_book.models import Base, Contact
from contact_book.services import (
    PHONE_RULE,
    check_contact,
    export_vcard,
    list_all,
    normalize_phone,
    upload_contact,
)
from contact_book.storage import engine


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5551234", "5551234"),
        ("0123456", "123456"),
        ("(555) 123-4567", "5551234567"),
        ("  555 12 34 ", "5551234"),
        ("0300-1234567", "3001234567"),
        ("555１1234", "5551234"),
    ],
)
def test_normalize_phone_digit_projection(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["12", "", "abc", "01234", "12345678901", "0" * 12, "５５５１２３４", "۵۵۵۱۲۳۴"],
)
def test_normalize_phone_rejects(raw):
    with pytest.raises(ValidationError) as exc_info:
        normalize_phone(raw)
    assert exc_info.value.message == PHONE_RULE
    assert "6-10 digits" in str(exc_info.value)


def test_upload_strips_leading_zero(db):
    result = upload_contact(db, name="Alice", phone="0123456", country_code="+1")

    assert result.success is True
    contacts = list_all(db)
    assert len(contacts) == 1
    assert contacts[0].phone == "123456"
    assert contacts[0].id == result.id


def test_upload_too_short_writes_nothing(db):
    with pytest.raises(ValidationError):
        upload_contact(db, name="Bob", phone="12", country_code="+1")

    assert db.query(Contact).count() == 0


def test_upload_twice_is_conflict(db):
    upload_contact(db, name="Carol", phone="5551234", country_code="+1")

    with pytest.raises(ConflictError):
        upload_contact(db, name="Carol again", phone="555-1234", country_code="+1")

    rows = db.query(Contact).filter_by(phone="5551234", country_code="+1").all()
    assert len(rows) == 1


def test_upload_storage_failure(db):
    Base.metadata.drop_all(bind=engine)

    with pytest.raises(StorageError):
        upload_contact(db, name="Dan", phone="5551234", country_code="+1")


def test_list_all_returns_every_upload_newest_first(db):
    phones = ["1111111", "2222222", "3333333", "4444444"]
    for i, phone in enumerate(phones):
        upload_contact(db, name=f"user{i}", phone=phone, country_code="+92")

    contacts = list_all(db)

    assert len(contacts) == len(phones)
    assert [c.phone for c in contacts] == list(reversed(phones))
    stamps = [c.created_at for c in contacts]
    assert stamps == sorted(stamps, reverse=True)


def test_check_contact_is_advisory(db):
    upload_contact(db, name="Eve", phone="0123456", country_code="+44")

    assert check_contact(db, phone="123456", country_code="+44") is True
    assert check_contact(db, phone="0123456", country_code="+44") is True
    assert check_contact(db, phone="123456", country_code="+1") is False
    assert check_contact(db, phone="12", country_code="+44") is False


def test_export_vcard_two_contacts(db):
    upload_contact(db, name="Alice", phone="5551234", country_code="+1")
    upload_contact(db, name="Bob", phone="3001234567", country_code="+92")

    body = export_vcard(db)

    assert isinstance(body, bytes)
    assert body.decode("utf-8") == (
        "BEGIN:VCARD\nVERSION:3.0\nFN:Alice\nTEL:+15551234\nEND:VCARD"
        "\n"
        "BEGIN:VCARD\nVERSION:3.0\nFN:Bob\nTEL:+923001234567\nEND:VCARD"
    )


def test_export_vcard_empty_store(db):
    assert export_vcard(db) == b""


def test_non_ascii_digits_cannot_bypass_duplicate_check(db):
    upload_contact(db, name="Frank", phone="5551234", country_code="+1")

    for lookalike in ["５５５１２３４", "۵۵۵۱۲۳۴"]:
        with pytest.raises(ValidationError):
            upload_contact(db, name="Frank", phone=lookalike, country_code="+1")

    assert db.query(Contact).filter_by(country_code="+1").count() == 1
