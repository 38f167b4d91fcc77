"""
Shopify Admin Client - Handles HTTP calls to the Shopify Admin GraphQL API.

This module is responsible for all HTTP communication with the store. Every
remote read and write made during a registration goes through
ShopifyAdminClient.execute_graphql():

    POST https://{shop}.myshopify.com/admin/api/{version}/graphql.json
    Headers: X-Shopify-Access-Token: <offline session token>
    Body:    {"query": "...", "variables": {...}}
    Response: {"data": {...}, "errors": [...]}

Authentication is not performed here. The access token comes from the offline
session stored when the merchant installed the app (see shop_resolver.py).

Pipeline context:
    Wrapped by ShopifyDirectory (directory.py), which the orchestrator uses
    for every step of the registration workflow.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from config import SHOP_DOMAIN_SUFFIX

from .errors import GraphQLTransportError

logger = logging.getLogger(__name__)


def normalize_shop_domain(shop: str) -> str:
    """Turn a shop name, domain or URL into "name.myshopify.com".

    Examples:
        "acme"                          -> "acme.myshopify.com"
        "acme.myshopify.com"            -> "acme.myshopify.com"
        "https://acme.myshopify.com/x"  -> "acme.myshopify.com"
    """
    shop = (shop or "").strip().lower()
    if "://" in shop:
        shop = urlparse(shop).hostname or ""
    shop = shop.strip("/")
    if not shop:
        return ""
    if shop.endswith(SHOP_DOMAIN_SUFFIX):
        return shop
    return f"{shop}{SHOP_DOMAIN_SUFFIX}"


class ShopifyAdminClient:
    """Client for the Shopify Admin GraphQL API of a single shop.

    Manages a requests.Session with the access token header attached. All API
    calls go through this single session.

    Attributes:
        shop_domain: The shop's myshopify.com domain.
        api_version: Admin API version (e.g., "2024-10").
        timeout: Per-request timeout in seconds.
        debug: If True, log request/response details.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str = "2024-10",
        timeout: float = 30,
        debug: bool = False,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            shop: Shop name or domain ("acme" or "acme.myshopify.com").
            access_token: Offline access token for the shop.
            api_version: Admin API version.
            timeout: Request timeout in seconds.
            debug: Enable verbose logging.
            session: Optional pre-built requests.Session (used by tests).
        """
        self.shop_domain = normalize_shop_domain(shop)
        self.api_version = api_version
        self.timeout = timeout
        self.debug = debug
        self._access_token = access_token
        self._session = session or requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": access_token,
        })

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def execute_graphql(self, query: str, variables: Optional[Dict] = None) -> Dict[str, Any]:
        """Execute a GraphQL query or mutation against the Admin API.

        If the response contains a top-level "errors" array, raises
        GraphQLTransportError with the error messages. Mutation-level
        userErrors are NOT inspected here; see ShopifyDirectory.

        Args:
            query: The GraphQL document.
            variables: Optional dict of GraphQL variables.

        Returns:
            The "data" portion of the GraphQL response (a dict).

        Raises:
            GraphQLTransportError: If the GraphQL response contains errors.
            requests.HTTPError: If the HTTP request fails.
        """
        payload = {"query": query, "variables": variables or {}}

        if self.debug:
            logger.debug("POST %s (%d chars, variables=%s)", self.endpoint, len(query), variables)

        response = self._session.post(self.endpoint, json=payload, timeout=self.timeout)
        response.raise_for_status()

        result = response.json()

        if self.debug:
            logger.debug("Response: %s", result)

        if result.get("errors"):
            errors = result["errors"]
            messages = [e.get("message", str(e)) for e in errors]
            raise GraphQLTransportError(messages, errors)

        return result.get("data") or {}

    def close(self):
        self._session.close()
