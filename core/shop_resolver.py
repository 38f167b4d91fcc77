"""
Shop Resolver - Works out which store an inbound proxy request belongs to,
and loads that store's offline session.

Shop identification, first hit wins:
  1. App-proxy signature. Shopify signs proxied requests: every query
     parameter except "signature" is rendered as key=value (multiple values
     joined with ","), the pairs are sorted and concatenated without a
     separator, and the HMAC-SHA256 hex digest with the app secret is sent
     as "signature". A valid signature makes the "shop" parameter trusted.
  2. A "shop" query parameter or form field.
  3. The Referer header, when its hostname ends in ".myshopify.com".

Sessions:
  Offline sessions are stored as a JSON object keyed by session id. Ids are
  written as either "offline_{shop}" or "offline_{shop}.myshopify.com", so
  both are tried.
"""

import hashlib
import hmac
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlparse

from config import SHOP_DOMAIN_SUFFIX

from .errors import SessionNotFoundError, ShopNotFoundError

logger = logging.getLogger(__name__)


def bare_shop_name(shop: Optional[str]) -> str:
    """Strip the myshopify.com suffix: "acme.myshopify.com" -> "acme"."""
    shop = (shop or "").strip().lower()
    if shop.endswith(SHOP_DOMAIN_SUFFIX):
        shop = shop[: -len(SHOP_DOMAIN_SUFFIX)]
    return shop


def proxy_signature(params: Iterable[Tuple[str, str]], secret: str) -> str:
    """Compute the app-proxy signature over (key, value) pairs."""
    grouped: Dict[str, list] = {}
    for key, value in params:
        if key == "signature":
            continue
        grouped.setdefault(key, []).append(value)
    message = "".join(sorted(f"{k}={','.join(v)}" for k, v in grouped.items()))
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_proxy_signature(params: Iterable[Tuple[str, str]], secret: str) -> bool:
    params = list(params)
    presented = next((v for k, v in params if k == "signature"), "")
    if not secret or not presented:
        return False
    return hmac.compare_digest(proxy_signature(params, secret), presented)


def resolve_shop(
    query_params: Iterable[Tuple[str, str]],
    form: Mapping[str, Any],
    headers: Mapping[str, str],
    secret: str = "",
) -> str:
    """Return the bare shop name for a request.

    Args:
        query_params: Query string as (key, value) pairs.
        form: Parsed form body.
        headers: Request headers (case-insensitive mapping expected).
        secret: App secret; empty disables signature verification.

    Raises:
        ShopNotFoundError: If no source yields a shop.
    """
    query_params = list(query_params)
    query_shop = next((v for k, v in query_params if k == "shop"), None)

    if secret and query_shop and verify_proxy_signature(query_params, secret):
        logger.debug("Shop from signed proxy request: %s", query_shop)
        return bare_shop_name(query_shop)
    if secret and query_shop:
        logger.info("App proxy signature missing or invalid for shop %s", query_shop)

    form_shop = form.get("shop") if form else None
    shop = query_shop or (form_shop if isinstance(form_shop, str) else None)
    if shop and shop.strip():
        logger.debug("Shop from URL/form data: %s", shop)
        return bare_shop_name(shop)

    referrer = headers.get("referer") if headers else None
    if referrer:
        hostname = (urlparse(referrer).hostname or "").lower()
        if hostname.endswith(SHOP_DOMAIN_SUFFIX):
            logger.debug("Shop extracted from referrer: %s", hostname)
            return bare_shop_name(hostname)

    raise ShopNotFoundError("Shop parameter missing")


class SessionStore:
    """Offline sessions keyed by session id.

    Attributes:
        sessions: {session_id: {"shop", "accessToken", ...}}
    """

    def __init__(self, sessions: Optional[Dict[str, Dict]] = None):
        self.sessions = dict(sessions or {})

    @classmethod
    def from_config(cls, config) -> "SessionStore":
        """Load the sessions file and add the environment session, if any."""
        sessions: Dict[str, Dict] = {}
        path = Path(config.sessions_file)
        if path.exists():
            with open(path) as f:
                sessions.update(json.load(f))
            logger.info("Loaded %d session(s) from %s", len(sessions), path)
        if config.shop and config.access_token:
            shop = bare_shop_name(config.shop)
            sessions[f"offline_{shop}"] = {
                "shop": f"{shop}{SHOP_DOMAIN_SUFFIX}",
                "accessToken": config.access_token,
            }
        return cls(sessions)

    def load_session(self, session_id: str) -> Optional[Dict]:
        session = self.sessions.get(session_id)
        if session and session.get("accessToken"):
            return session
        return None

    def load_offline_session(self, shop: str) -> Dict:
        """Find the offline session for a shop.

        Raises:
            SessionNotFoundError: If neither id format is stored.
        """
        name = bare_shop_name(shop)
        for session_id in (f"offline_{name}", f"offline_{name}{SHOP_DOMAIN_SUFFIX}"):
            session = self.load_session(session_id)
            if session:
                return session

        known = [sid for sid, s in self.sessions.items() if bare_shop_name(s.get("shop")) == name]
        logger.error("No session found for shop: %s (sessions for shop: %d)", name, len(known))
        raise SessionNotFoundError(name)
