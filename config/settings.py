"""
Settings - Default configuration values for the wholesale registration proxy.

This module provides the DEFAULT_SETTINGS dict that AppConfig uses as
fallback values when environment variables are not set. The actual
configuration is loaded from .env at runtime; these defaults make the proxy
work out of the box against a single development store.

Configuration precedence (highest to lowest):
  1. CLI flags (--debug, --host, --port)
  2. Environment variables (from .env file)
  3. DEFAULT_SETTINGS (this file)

Settings reference:
  SHOPIFY_API_VERSION     Admin API version used in the GraphQL endpoint path
  SHOPIFY_API_SECRET      App secret used to verify app-proxy signatures
  SHOPIFY_SESSIONS_FILE   JSON file of offline sessions keyed by session id
  DEFAULT_COUNTRY_CODE    Country used when an address is submitted without one
  COMPANY_SCAN_LIMIT      How many companies the company lookup scans (first page only)
  CUSTOMER_SCAN_LIMIT     Page size of the recent-customers fallback scan
  WHOLESALE_TAG           Tag merged onto every registered customer
  REQUEST_TIMEOUT         Seconds before an Admin API call is abandoned
  HOST / PORT             Bind address of the proxy server
  DEBUG                   Whether to log verbose request/response details
"""

APP_NAME = "wholesale-registration"

# Metafield that stores the submitted company email on created companies.
# It is the only join key used to find the company again.
COMPANY_EMAIL_NAMESPACE = "custom"
COMPANY_EMAIL_KEY = "companyEmail"

COMPANY_NOTE = "Created from Wholesale Registration form"

SHOP_DOMAIN_SUFFIX = ".myshopify.com"

DEFAULT_SETTINGS = {
    "SHOPIFY_API_VERSION": "2024-10",
    "SHOPIFY_API_SECRET": "",
    "SHOPIFY_SESSIONS_FILE": "./sessions.json",
    "DEFAULT_COUNTRY_CODE": "US",
    "COMPANY_SCAN_LIMIT": 50,
    "CUSTOMER_SCAN_LIMIT": 250,
    "WHOLESALE_TAG": "wholesale",
    "REQUEST_TIMEOUT": 30,
    "HOST": "127.0.0.1",
    "PORT": 8080,
    "DEBUG": False,
}
