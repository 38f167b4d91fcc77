"""
Config module - Defaults and fixed identifiers for the registration proxy.
"""

from .settings import (
    APP_NAME,
    COMPANY_EMAIL_KEY,
    COMPANY_EMAIL_NAMESPACE,
    COMPANY_NOTE,
    DEFAULT_SETTINGS,
    SHOP_DOMAIN_SUFFIX,
)

__all__ = [
    'APP_NAME',
    'COMPANY_EMAIL_KEY',
    'COMPANY_EMAIL_NAMESPACE',
    'COMPANY_NOTE',
    'DEFAULT_SETTINGS',
    'SHOP_DOMAIN_SUFFIX',
]
