"""Tests for core.registrant."""

import pytest
from pydantic import ValidationError

from core.registrant import Registrant, normalize_email, redact_email


def test_normalize_email():
    assert normalize_email("  Jo@Acme.TEST ") == "jo@acme.test"
    assert normalize_email(None) == ""


def test_form_aliases_and_trimming():
    reg = Registrant.model_validate({
        "companyName": " Acme ",
        "firstName": "Jo",
        "lastName": "Doe",
        "userEmail": " JO@acme.test",
        "companyEmail": "Buyers@Acme.test ",
        "taxId": "",
        "zip_code": " 12345 ",
        "address1": "1 Main St",
    })
    assert reg.company_name == "Acme"
    assert reg.user_email == "JO@acme.test"
    assert reg.normalized_user_email == "jo@acme.test"
    assert reg.normalized_company_email == "buyers@acme.test"
    assert reg.tax_id is None
    assert reg.zip_code == "12345"


def test_missing_required_fields_become_empty():
    reg = Registrant.model_validate({})
    assert reg.company_name == ""
    assert reg.user_email == ""
    assert reg.address1 == ""
    assert reg.has_address is False
    assert reg.phone is None


def test_whitespace_only_optional_becomes_none():
    reg = Registrant.model_validate({"phone": "   ", "location": ""})
    assert reg.phone is None
    assert reg.location is None


def test_non_string_values_rejected():
    with pytest.raises(ValidationError):
        Registrant.model_validate({"userEmail": ["a@b.test", "c@d.test"]})
    with pytest.raises(ValidationError):
        Registrant.model_validate({"phone": 5550001})


def test_unknown_fields_ignored():
    reg = Registrant.model_validate({"shop": "acme", "signature": "abc", "companyName": "Acme"})
    assert reg.company_name == "Acme"


def test_from_form_plain_mapping():
    reg = Registrant.from_form({"companyName": "Acme", "userEmail": "jo@acme.test"})
    assert reg.company_name == "Acme"


class _MultiDict(dict):
    """Minimal multi-value mapping with getlist(), like starlette FormData."""

    def __init__(self, items):
        super().__init__()
        self._items = items
        for k, v in items:
            self.setdefault(k, v)

    def getlist(self, key):
        return [v for k, v in self._items if k == key]


def test_from_form_rejects_repeated_keys():
    form = _MultiDict([("userEmail", "a@b.test"), ("userEmail", "c@d.test")])
    with pytest.raises(ValidationError):
        Registrant.from_form(form)


def test_from_form_single_values_from_multidict():
    form = _MultiDict([("companyName", "Acme"), ("city", "Toronto")])
    reg = Registrant.from_form(form)
    assert reg.city == "Toronto"


def test_address_input_defaults():
    reg = Registrant.model_validate({"address1": "1 Main St"})
    assert reg.address_input("US") == {
        "address1": "1 Main St", "city": "", "zip": "", "countryCode": "US",
    }


def test_summary_omits_tax_id_value():
    reg = Registrant.model_validate({"taxId": "12-345", "userEmail": "Jo@acme.test"})
    summary = reg.summary()
    assert summary["hasTaxId"] is True
    assert "12-345" not in str(summary)
    assert summary["userEmail"] == "j***@acme.test"


def test_summary_masks_emails():
    reg = Registrant.model_validate({"userEmail": "Jo@acme.test", "companyEmail": "buyers@acme.test"})
    summary = reg.summary()
    assert "jo@acme.test" not in str(summary)
    assert "buyers@acme.test" not in str(summary)
    assert summary["companyEmail"] == "b***@acme.test"


def test_redact_email():
    assert redact_email(" Jo@Acme.test ") == "j***@acme.test"
    assert redact_email("no-at-sign") == "***"
    assert redact_email("") is None
    assert redact_email(None) is None
