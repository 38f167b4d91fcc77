"""
App Config - Loads runtime configuration from the environment.

Configuration is read once at startup (run.py) and handed to the proxy app.
All settings come from environment variables, typically via a .env file
loaded with python-dotenv; anything unset falls back to DEFAULT_SETTINGS
(see config/settings.py).

Typical usage:
    config = AppConfig.from_env("./.env")
    errors = config.validate()
    if errors: ...
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from config import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


def _env_bool(name: str) -> bool:
    return os.getenv(name, str(DEFAULT_SETTINGS[name])).lower() == "true"


def _env_int(name: str) -> int:
    return int(os.getenv(name, str(DEFAULT_SETTINGS[name])))


@dataclass
class AppConfig:
    """Resolved settings for one proxy process.

    Attributes:
        api_version: Shopify Admin API version.
        api_secret: App secret for app-proxy signature checks ("" disables them).
        sessions_file: Path of the offline sessions JSON file.
        access_token / shop: Optional single-store session from the environment.
        default_country: Country code for addresses submitted without one.
        company_scan_limit: Companies scanned by the company lookup.
        customer_scan_limit: Customers scanned by the last fallback search tier.
        wholesale_tag: Tag merged onto registered customers.
        request_timeout: Admin API timeout in seconds.
        host / port: Server bind address.
        debug: Verbose logging.
    """

    api_version: str = DEFAULT_SETTINGS["SHOPIFY_API_VERSION"]
    api_secret: str = DEFAULT_SETTINGS["SHOPIFY_API_SECRET"]
    sessions_file: str = DEFAULT_SETTINGS["SHOPIFY_SESSIONS_FILE"]
    access_token: str = ""
    shop: str = ""
    default_country: str = DEFAULT_SETTINGS["DEFAULT_COUNTRY_CODE"]
    company_scan_limit: int = DEFAULT_SETTINGS["COMPANY_SCAN_LIMIT"]
    customer_scan_limit: int = DEFAULT_SETTINGS["CUSTOMER_SCAN_LIMIT"]
    wholesale_tag: str = DEFAULT_SETTINGS["WHOLESALE_TAG"]
    request_timeout: int = DEFAULT_SETTINGS["REQUEST_TIMEOUT"]
    host: str = DEFAULT_SETTINGS["HOST"]
    port: int = DEFAULT_SETTINGS["PORT"]
    debug: bool = DEFAULT_SETTINGS["DEBUG"]

    @classmethod
    def from_env(cls, env_file: str = "./.env") -> "AppConfig":
        """Build the config from environment variables.

        Args:
            env_file: Path to a .env file. If the file exists, it is loaded via
                      python-dotenv. Otherwise, falls back to system environment.
        """
        env_path = Path(env_file)
        if env_path.exists():
            load_dotenv(env_path)
            logger.info("Loaded configuration from: %s", env_file)
        else:
            logger.warning("%s not found, using defaults/environment", env_file)

        return cls(
            api_version=os.getenv("SHOPIFY_API_VERSION", DEFAULT_SETTINGS["SHOPIFY_API_VERSION"]),
            api_secret=os.getenv("SHOPIFY_API_SECRET", DEFAULT_SETTINGS["SHOPIFY_API_SECRET"]),
            sessions_file=os.getenv("SHOPIFY_SESSIONS_FILE", DEFAULT_SETTINGS["SHOPIFY_SESSIONS_FILE"]),
            access_token=os.getenv("SHOPIFY_ACCESS_TOKEN", ""),
            shop=os.getenv("SHOPIFY_SHOP", ""),
            default_country=os.getenv("DEFAULT_COUNTRY_CODE", DEFAULT_SETTINGS["DEFAULT_COUNTRY_CODE"]).upper(),
            company_scan_limit=_env_int("COMPANY_SCAN_LIMIT"),
            customer_scan_limit=_env_int("CUSTOMER_SCAN_LIMIT"),
            wholesale_tag=os.getenv("WHOLESALE_TAG", DEFAULT_SETTINGS["WHOLESALE_TAG"]),
            request_timeout=_env_int("REQUEST_TIMEOUT"),
            host=os.getenv("HOST", DEFAULT_SETTINGS["HOST"]),
            port=_env_int("PORT"),
            debug=_env_bool("DEBUG"),
        )

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid).

        Checks:
            - At least one session source: the sessions file exists, or
              SHOPIFY_SHOP and SHOPIFY_ACCESS_TOKEN are both set
            - SHOPIFY_SHOP and SHOPIFY_ACCESS_TOKEN are set together
            - Scan limits and timeout are positive
            - DEFAULT_COUNTRY_CODE is a two-letter code
        """
        errors = []
        has_env_session = bool(self.shop and self.access_token)
        if not has_env_session and not Path(self.sessions_file).exists():
            errors.append(
                f"No sessions available: {self.sessions_file} not found and "
                "SHOPIFY_SHOP/SHOPIFY_ACCESS_TOKEN not set"
            )
        if bool(self.shop) != bool(self.access_token):
            errors.append("SHOPIFY_SHOP and SHOPIFY_ACCESS_TOKEN must be set together")
        if self.company_scan_limit <= 0:
            errors.append("COMPANY_SCAN_LIMIT must be positive")
        if self.customer_scan_limit <= 0:
            errors.append("CUSTOMER_SCAN_LIMIT must be positive")
        if self.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")
        if len(self.default_country) != 2 or not self.default_country.isalpha():
            errors.append("DEFAULT_COUNTRY_CODE must be a two-letter country code")
        return errors
