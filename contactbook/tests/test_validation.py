import pytest

from contactbook.domain.validation import check_contact_fields, validate_email, validate_names
from contactbook.errors import ValidationError


@pytest.mark.parametrize(
    "first,last,ok",
    [
        ("", "", False),
        ("  ", "\t\r\n", False),
        ("Ada", "", True),
        ("", "Lovelace", True),
        ("Ada", "Lovelace", True),
        (" Ada ", "", True),
    ],
)
def test_validate_names(first, last, ok):
    assert validate_names(first, last) is ok


@pytest.mark.parametrize(
    "email,ok",
    [
        ("", True),
        ("a@b.co", True),
        ("ada.lovelace+notes@mail.example.org", True),
        ("first_last%tag@sub-domain.io", True),
        ("not-an-email", False),
        ("a@b.c", False),
        ("a@b.c0", False),
        ("@example.com", False),
        ("ada@", False),
        # whole-string match, not a substring search
        ("x a@b.co", False),
        ("a@b.co trailing", False),
        ("a@b.co\n", False),
    ],
)
def test_validate_email(email, ok):
    assert validate_email(email) is ok


def test_check_contact_fields_reasons():
    with pytest.raises(ValidationError, match="first name or last name"):
        check_contact_fields("", "", "ada@example.com")
    with pytest.raises(ValidationError, match="Invalid email"):
        check_contact_fields("Ada", "", "ada-at-example")
    check_contact_fields("Ada", "", "")
