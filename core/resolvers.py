"""
Resolvers - Decide whether a customer or company already exists.

IdentityResolver
    Looks a customer up by email. The Admin API customer search is tokenized,
    so "email:jo@acme.test" can also return "jo@acme.test.example" or
    "other-jo@acme.test". Every hit is re-checked with an exact,
    case-insensitive comparison before it counts as a match.

    find_existing() is the slower path used after customerCreate reported the
    email as already taken. It tries, in order:
        1. quoted exact query      email:"jo@acme.test"
        2. prefixed query          email:jo@acme.test
        3. recent customers scan   newest CUSTOMER_SCAN_LIMIT customers, filtered here

CompanyResolver
    Companies have no native email key. Companies created by this proxy carry
    the submitted company email in the custom.companyEmail metafield, and that
    is what the lookup scans for. Only the first COMPANY_SCAN_LIMIT companies
    are scanned; companies beyond that page are not found. If several
    companies carry the same email, the first one scanned wins.
"""

import logging
from typing import Dict, Iterable, Optional

from config import COMPANY_EMAIL_KEY, COMPANY_EMAIL_NAMESPACE

from .registrant import normalize_email

logger = logging.getLogger(__name__)


def _first_exact(customers: Iterable[Dict], email: str) -> Optional[Dict]:
    for customer in customers:
        if normalize_email(customer.get("email")) == email:
            return customer
    return None


class IdentityResolver:
    """Finds the canonical customer record for an email.

    Attributes:
        directory: The remote directory (ShopifyDirectory or a test double).
        scan_limit: Page size of the recent-customers fallback scan.
    """

    def __init__(self, directory, scan_limit: int = 250):
        self.directory = directory
        self.scan_limit = scan_limit

    def resolve(self, email: Optional[str]) -> Optional[Dict]:
        """Return the customer whose email matches, or None.

        Takes the first search hit only, then re-validates it.
        """
        normalized = normalize_email(email)
        if not normalized:
            return None

        hits = self.directory.find_customers(f"email:{normalized}", first=1)
        match = _first_exact(hits[:1], normalized)
        if hits and not match:
            logger.debug("Search hit %s does not match %s exactly", hits[0].get("email"), normalized)
        return match

    def find_existing(self, email: Optional[str]) -> Optional[Dict]:
        """Three-tier search for a customer the API says already exists."""
        normalized = normalize_email(email)
        if not normalized:
            return None

        tiers = (
            ("exact", lambda: self.directory.find_customers(f'email:"{normalized}"', first=5)),
            ("prefixed", lambda: self.directory.find_customers(f"email:{normalized}", first=5)),
            ("recent", lambda: self.directory.recent_customers(first=self.scan_limit)),
        )
        for name, search in tiers:
            match = _first_exact(search(), normalized)
            if match:
                logger.info("Existing customer %s found by %s search", match.get("id"), name)
                return match
            logger.debug("No exact match for %s in %s search", normalized, name)

        return None


class CompanyResolver:
    """Finds a company by the companyEmail metafield.

    Attributes:
        directory: The remote directory.
        scan_limit: How many companies to fetch (first page only).
        namespace / key: The metafield holding the company email.
    """

    def __init__(
        self,
        directory,
        scan_limit: int = 50,
        namespace: str = COMPANY_EMAIL_NAMESPACE,
        key: str = COMPANY_EMAIL_KEY,
    ):
        self.directory = directory
        self.scan_limit = scan_limit
        self.namespace = namespace
        self.key = key

    def resolve(self, company_email: Optional[str]) -> Optional[Dict]:
        normalized = normalize_email(company_email)
        if not normalized:
            return None

        for company in self.directory.list_companies(
            first=self.scan_limit, namespace=self.namespace, key=self.key
        ):
            for metafield in company.get("metafields", []):
                if (
                    metafield.get("namespace") == self.namespace
                    and metafield.get("key") == self.key
                    and normalize_email(metafield.get("value")) == normalized
                ):
                    return company
        return None
