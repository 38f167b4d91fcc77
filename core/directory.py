"""
Directory Gateway - One method per remote operation on the Shopify directory.

ShopifyDirectory sits between the raw Admin API client and the orchestrator.
It knows the GraphQL documents and the response shapes, so the orchestrator
only ever sees plain dicts:

    customer  {"id", "email", "firstName", "lastName", "phone", "tags"}
    company   {"id", "name", "mainContactId", "metafields": [{"namespace", "key", "value"}]}
              (metafields holds only the companyEmail metafield, when set)
    location  {"id", "name"}
    role      {"id", "name"}

Error contract:
    - Top-level GraphQL errors propagate as GraphQLTransportError (raised by
      the client).
    - A non-empty userErrors list on a mutation payload raises UserErrors.
    - Reads never raise for "nothing found"; they return empty lists / None.

The orchestrator depends only on the method names below, so tests swap in an
in-memory directory with the same interface.
"""

import logging
from typing import Any, Dict, List, Optional

from config import COMPANY_EMAIL_KEY, COMPANY_EMAIL_NAMESPACE

from .errors import UserErrors
from .graphql_queries import (
    COMPANIES_WITH_METAFIELDS_QUERY,
    COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION,
    COMPANY_ASSIGN_MAIN_CONTACT_MUTATION,
    COMPANY_CONTACT_ASSIGN_ROLE_MUTATION,
    COMPANY_CREATE_MUTATION,
    COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION,
    COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION,
    COMPANY_LOCATION_UPDATE_MUTATION,
    COMPANY_LOCATIONS_QUERY,
    COMPANY_ROLES_QUERY,
    CUSTOMER_BY_EMAIL_QUERY,
    CUSTOMER_CREATE_MUTATION,
    CUSTOMER_UPDATE_MUTATION,
    METAFIELDS_SET_MUTATION,
    RECENT_CUSTOMERS_QUERY,
)
from .shopify_client import ShopifyAdminClient

logger = logging.getLogger(__name__)


def _nodes(connection: Optional[Dict]) -> List[Dict]:
    """Flatten a GraphQL connection ({"edges": [{"node": ...}]}) into a list of nodes."""
    if not connection:
        return []
    return [edge["node"] for edge in connection.get("edges", []) if edge.get("node")]


def _payload(data: Dict, operation: str) -> Dict[str, Any]:
    """Return a mutation payload, raising UserErrors if it reports any."""
    payload = data.get(operation) or {}
    user_errors = payload.get("userErrors") or []
    if user_errors:
        raise UserErrors(operation, user_errors)
    return payload


class ShopifyDirectory:
    """Remote customer/company directory backed by the Admin GraphQL API.

    Attributes:
        client: The ShopifyAdminClient used for every call.
    """

    def __init__(self, client: ShopifyAdminClient):
        self.client = client

    def close(self):
        """Release the client's HTTP connection pool."""
        self.client.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_customers(self, query: str, first: int = 1) -> List[Dict]:
        data = self.client.execute_graphql(
            CUSTOMER_BY_EMAIL_QUERY, {"query": query, "first": first}
        )
        return _nodes(data.get("customers"))

    def recent_customers(self, first: int = 250) -> List[Dict]:
        data = self.client.execute_graphql(RECENT_CUSTOMERS_QUERY, {"first": first})
        return _nodes(data.get("customers"))

    def list_companies(
        self,
        first: int = 50,
        namespace: str = COMPANY_EMAIL_NAMESPACE,
        key: str = COMPANY_EMAIL_KEY,
    ) -> List[Dict]:
        """Fetch one page of companies with the namespace.key metafield.

        The metafield is selected by name, so it is found however many other
        metafields the company carries. "metafields" holds it, or is empty.
        """
        data = self.client.execute_graphql(COMPANIES_WITH_METAFIELDS_QUERY, {
            "first": first,
            "namespace": namespace,
            "key": key,
        })
        companies = []
        for node in _nodes(data.get("companies")):
            metafield = node.get("metafield")
            companies.append({
                "id": node.get("id"),
                "name": node.get("name"),
                "mainContactId": (node.get("mainContact") or {}).get("id"),
                "metafields": [metafield] if metafield else [],
            })
        return companies

    def get_company_locations(self, company_id: str) -> List[Dict]:
        data = self.client.execute_graphql(COMPANY_LOCATIONS_QUERY, {"companyId": company_id})
        return _nodes((data.get("company") or {}).get("locations"))

    def get_company_roles(self, company_id: str) -> Dict[str, Any]:
        """Return {"defaultRole": role-or-None, "roles": [role, ...]}."""
        data = self.client.execute_graphql(COMPANY_ROLES_QUERY, {"companyId": company_id})
        company = data.get("company") or {}
        return {
            "defaultRole": company.get("defaultRole"),
            "roles": _nodes(company.get("contactRoles")),
        }

    # ------------------------------------------------------------------
    # Customer writes
    # ------------------------------------------------------------------

    def create_customer(self, customer_input: Dict) -> Dict:
        data = self.client.execute_graphql(CUSTOMER_CREATE_MUTATION, {"input": customer_input})
        return _payload(data, "customerCreate").get("customer") or {}

    def update_customer(self, customer_input: Dict) -> Dict:
        data = self.client.execute_graphql(CUSTOMER_UPDATE_MUTATION, {"input": customer_input})
        return _payload(data, "customerUpdate").get("customer") or {}

    # ------------------------------------------------------------------
    # Company writes
    # ------------------------------------------------------------------

    def create_company(self, company_input: Dict) -> Dict:
        """Create a company; returns {"id", "name", "contactCustomerId"}."""
        data = self.client.execute_graphql(COMPANY_CREATE_MUTATION, {"input": company_input})
        company = _payload(data, "companyCreate").get("company") or {}
        main_contact = company.get("mainContact") or {}
        return {
            "id": company.get("id"),
            "name": company.get("name"),
            "contactCustomerId": (main_contact.get("customer") or {}).get("id"),
        }

    def set_company_metafield(self, company_id: str, namespace: str, key: str, value: str) -> Dict:
        data = self.client.execute_graphql(METAFIELDS_SET_MUTATION, {
            "metafields": [{
                "ownerId": company_id,
                "namespace": namespace,
                "key": key,
                "type": "single_line_text_field",
                "value": value,
            }]
        })
        metafields = _payload(data, "metafieldsSet").get("metafields") or []
        return metafields[0] if metafields else {}

    def rename_location(self, location_id: str, name: str) -> Dict:
        data = self.client.execute_graphql(COMPANY_LOCATION_UPDATE_MUTATION, {
            "companyLocationId": location_id,
            "input": {"name": name},
        })
        return _payload(data, "companyLocationUpdate").get("companyLocation") or {}

    def assign_location_address(
        self, location_id: str, address: Dict, address_types: Optional[List[str]] = None
    ) -> List[Dict]:
        data = self.client.execute_graphql(COMPANY_LOCATION_ASSIGN_ADDRESS_MUTATION, {
            "locationId": location_id,
            "address": address,
            "addressTypes": address_types or ["SHIPPING"],
        })
        return _payload(data, "companyLocationAssignAddress").get("addresses") or []

    def set_location_tax_id(self, location_id: str, tax_id: str) -> Dict:
        data = self.client.execute_graphql(COMPANY_LOCATION_TAX_SETTINGS_UPDATE_MUTATION, {
            "companyLocationId": location_id,
            "taxRegistrationId": tax_id,
        })
        return _payload(data, "companyLocationTaxSettingsUpdate").get("companyLocation") or {}

    # ------------------------------------------------------------------
    # Linking
    # ------------------------------------------------------------------

    def assign_customer_as_contact(self, company_id: str, customer_id: str) -> Optional[str]:
        """Returns the new CompanyContact id."""
        data = self.client.execute_graphql(COMPANY_ASSIGN_CUSTOMER_AS_CONTACT_MUTATION, {
            "companyId": company_id,
            "customerId": customer_id,
        })
        contact = _payload(data, "companyAssignCustomerAsContact").get("companyContact") or {}
        return contact.get("id")

    def assign_main_contact(self, company_id: str, contact_id: str) -> Dict:
        data = self.client.execute_graphql(COMPANY_ASSIGN_MAIN_CONTACT_MUTATION, {
            "companyId": company_id,
            "companyContactId": contact_id,
        })
        return _payload(data, "companyAssignMainContact").get("company") or {}

    def assign_contact_role(self, contact_id: str, role_id: str, location_id: str) -> Optional[str]:
        """Returns the role assignment id."""
        data = self.client.execute_graphql(COMPANY_CONTACT_ASSIGN_ROLE_MUTATION, {
            "companyContactId": contact_id,
            "companyContactRoleId": role_id,
            "companyLocationId": location_id,
        })
        assignment = _payload(data, "companyContactAssignRole").get("companyContactRoleAssignment") or {}
        return assignment.get("id")
