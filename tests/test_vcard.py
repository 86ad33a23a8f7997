from contact_book.models import Contact
from contact_book.vcard import render_vcard, render_vcards


def _contact(name, phone, country_code):
    return Contact(name=name, phone=phone, country_code=country_code, created_at="2025-01-01T00:00:00+00:00")


def test_single_record_layout():
    card = render_vcard(_contact("Ada Lovelace", "123456", "+44"))

    assert card.splitlines() == [
        "BEGIN:VCARD",
        "VERSION:3.0",
        "FN:Ada Lovelace",
        "TEL:+44123456",
        "END:VCARD",
    ]


def test_records_joined_by_single_newline():
    body = render_vcards([_contact("A", "1111111", "+1"), _contact("B", "2222222", "+1")])

    assert body.count("BEGIN:VCARD") == 2
    assert body.count("END:VCARD") == 2
    assert "END:VCARD\nBEGIN:VCARD" in body
    assert not body.endswith("\n")


def test_multiline_name_stays_on_one_line():
    card = render_vcard(_contact("Line one\r\nLine two", "123456", "+1"))

    assert "FN:Line one Line two" in card
    assert len(card.splitlines()) == 5


def test_no_contacts():
    assert render_vcards([]) == ""
