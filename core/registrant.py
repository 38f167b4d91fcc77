"""
Registrant - The validated wholesale registration submission.

The storefront form posts these fields (form-encoded):

    companyName, firstName, lastName, location, taxId, phone, companyEmail,
    userEmail, address1, address2, country, state, city, zip_code

The storefront enforces companyName, firstName, lastName, userEmail and
address1 before submitting. The server does not re-enforce that: a missing
required field becomes an empty string and the workflow runs with it. What the
server does enforce is that every value is a single string, so repeated form
keys or file uploads are rejected instead of being read as something else.
"""

from typing import Annotated, Any, Dict, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def normalize_email(value: Optional[str]) -> str:
    """Lower-case and trim an email for lookups and comparisons."""
    return (value or "").strip().lower()


def redact_email(value: Optional[str]) -> Optional[str]:
    """Mask the local part of an email for log output ("jo@acme.test" -> "j***@acme.test")."""
    email = normalize_email(value)
    if not email:
        return None
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}" if domain else "***"


def _form_value(v):
    if v is None:
        return v
    if not isinstance(v, str):
        raise ValueError("must be a single text value")
    return v.strip()


def _required_text(v):
    v = _form_value(v)
    return v if v is not None else ""


def _optional_text(v):
    v = _form_value(v)
    return v or None


RequiredText = Annotated[str, BeforeValidator(_required_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_optional_text)]


class Registrant(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    company_name: RequiredText = Field("", alias="companyName")
    first_name: RequiredText = Field("", alias="firstName")
    last_name: RequiredText = Field("", alias="lastName")
    user_email: RequiredText = Field("", alias="userEmail")
    address1: RequiredText = Field("", alias="address1")

    location: OptionalText = Field(None, alias="location")
    tax_id: OptionalText = Field(None, alias="taxId")
    phone: OptionalText = Field(None, alias="phone")
    company_email: OptionalText = Field(None, alias="companyEmail")
    address2: OptionalText = Field(None, alias="address2")
    country: OptionalText = Field(None, alias="country")
    state: OptionalText = Field(None, alias="state")
    city: OptionalText = Field(None, alias="city")
    zip_code: OptionalText = Field(None, alias="zip_code")

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> "Registrant":
        """Build a Registrant from a form mapping.

        Multi-value mappings (starlette FormData, werkzeug MultiDict) keep
        every value for a key, so repeated keys reach validation as a list
        and are rejected.
        """
        values: Dict[str, Any] = {}
        getlist = getattr(form, "getlist", None)
        for key in form.keys():
            if getlist is not None:
                items = getlist(key)
                values[key] = items[0] if len(items) == 1 else list(items)
            else:
                values[key] = form[key]
        return cls.model_validate(values)

    @property
    def normalized_user_email(self) -> str:
        return normalize_email(self.user_email)

    @property
    def normalized_company_email(self) -> str:
        return normalize_email(self.company_email)

    @property
    def has_address(self) -> bool:
        return bool(self.address1)

    def address_input(self, default_country: str) -> Dict[str, str]:
        """CompanyAddressInput for the submitted address.

        Country falls back to default_country; city and zip fall back to "".
        """
        address = {
            "address1": self.address1,
            "city": self.city or "",
            "zip": self.zip_code or "",
            "countryCode": (self.country or default_country).upper(),
        }
        if self.address2:
            address["address2"] = self.address2
        if self.state:
            address["zoneCode"] = self.state
        return address

    def summary(self) -> Dict[str, Any]:
        """Loggable view of the submission (emails masked, no tax id)."""
        return {
            "companyName": self.company_name,
            "userEmail": redact_email(self.user_email),
            "companyEmail": redact_email(self.company_email),
            "hasAddress": self.has_address,
            "hasTaxId": bool(self.tax_id),
        }
