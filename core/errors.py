"""
Errors - Exception types raised by the Admin API layer and the proxy.

The Admin client and the directory gateway raise; the orchestrator decides
per step whether a failure is fatal or is recorded and the workflow goes on.

  GraphQLTransportError  Top-level GraphQL "errors" array (or a broken HTTP call).
  UserErrors             A mutation payload came back with a non-empty userErrors list.
  ShopNotFoundError      No shop could be identified for an inbound request.
  SessionNotFoundError   The shop was identified but has no offline session.
  CompanyCreationError   companyCreate failed, so there is nothing to link anything to.
"""

from typing import Dict, List, Optional


class RegistrationError(Exception):
    """Base class for every error raised by this package."""


class GraphQLTransportError(RegistrationError):
    """The Admin API answered with top-level GraphQL errors.

    Attributes:
        messages: The "message" of each entry in the errors array.
        errors: The raw errors array, kept for the {error, details} response.
    """

    def __init__(self, messages: List[str], errors: Optional[List[Dict]] = None):
        self.messages = messages
        self.errors = errors or [{"message": m} for m in messages]
        super().__init__(f"GraphQL errors: {'; '.join(messages)}")

    def mentions(self, fragment: str) -> bool:
        fragment = fragment.lower()
        return any(fragment in m.lower() for m in self.messages)


class UserErrors(RegistrationError):
    """A mutation was accepted but rejected its input.

    Attributes:
        operation: The mutation field name (e.g. "customerCreate").
        errors: List of {field, message, code} dicts as returned by the API.
    """

    def __init__(self, operation: str, errors: List[Dict]):
        self.operation = operation
        self.errors = errors
        super().__init__(f"{operation} userErrors: {self.first_message}")

    @property
    def first_message(self) -> str:
        if not self.errors:
            return ""
        return self.errors[0].get("message", "")

    def is_taken(self) -> bool:
        """True if any error reports a uniqueness conflict (e.g. email already taken)."""
        for err in self.errors:
            if (err.get("code") or "").upper() == "TAKEN":
                return True
            if "has already been taken" in (err.get("message") or "").lower():
                return True
        return False


class ShopNotFoundError(RegistrationError):
    """Raised when no shop can be determined from the request."""


class SessionNotFoundError(RegistrationError):
    """Raised when the shop has no stored offline session (app not installed)."""

    def __init__(self, shop: str):
        self.shop = shop
        super().__init__(f"No session found for shop: {shop}")


class CompanyCreationError(RegistrationError):
    """companyCreate failed before any company id existed.

    Attributes:
        error: Short reason returned to the storefront.
        details: The GraphQL errors or userErrors list.
    """

    def __init__(self, error: str, details: List[Dict]):
        self.error = error
        self.details = details
        super().__init__(error)
