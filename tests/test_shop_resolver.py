"""Tests for core.shop_resolver."""

import json

import pytest

from core.app_config import AppConfig
from core.errors import SessionNotFoundError, ShopNotFoundError
from core.shop_resolver import (
    SessionStore,
    bare_shop_name,
    proxy_signature,
    resolve_shop,
    verify_proxy_signature,
)

SECRET = "hush"


def signed(params):
    return params + [("signature", proxy_signature(params, SECRET))]


def test_bare_shop_name():
    assert bare_shop_name("Acme.myshopify.com") == "acme"
    assert bare_shop_name("acme") == "acme"
    assert bare_shop_name(None) == ""


def test_signature_round_trip_and_tamper():
    params = signed([("shop", "acme.myshopify.com"), ("path_prefix", "/apps/proxy"), ("timestamp", "1700000000")])
    assert verify_proxy_signature(params, SECRET) is True

    tampered = [(k, "evil.myshopify.com" if k == "shop" else v) for k, v in params]
    assert verify_proxy_signature(tampered, SECRET) is False


def test_signature_joins_repeated_values():
    one = proxy_signature([("ids", "1"), ("ids", "2")], SECRET)
    two = proxy_signature([("ids", "1,2")], SECRET)
    assert one == two


def test_signature_requires_secret_and_signature():
    assert verify_proxy_signature([("shop", "acme")], SECRET) is False
    assert verify_proxy_signature(signed([("shop", "acme")]), "") is False


def test_resolve_signed_shop():
    params = signed([("shop", "acme.myshopify.com"), ("timestamp", "1")])
    assert resolve_shop(params, {}, {}, SECRET) == "acme"


def test_resolve_unsigned_query_shop_still_accepted():
    assert resolve_shop([("shop", "acme")], {}, {}, SECRET) == "acme"


def test_resolve_form_shop():
    assert resolve_shop([], {"shop": "acme.myshopify.com"}, {}) == "acme"


def test_resolve_referrer():
    headers = {"referer": "https://acme.myshopify.com/pages/wholesale"}
    assert resolve_shop([], {}, headers) == "acme"


def test_resolve_referrer_other_domain_rejected():
    headers = {"referer": "https://www.acme.test/pages/wholesale"}
    with pytest.raises(ShopNotFoundError):
        resolve_shop([], {}, headers)


def test_resolve_nothing():
    with pytest.raises(ShopNotFoundError):
        resolve_shop([], {}, {})


def test_session_both_id_formats():
    store = SessionStore({
        "offline_acme": {"shop": "acme.myshopify.com", "accessToken": "t1"},
        "offline_beta.myshopify.com": {"shop": "beta.myshopify.com", "accessToken": "t2"},
    })
    assert store.load_offline_session("acme")["accessToken"] == "t1"
    assert store.load_offline_session("beta")["accessToken"] == "t2"
    assert store.load_offline_session("beta.myshopify.com")["accessToken"] == "t2"


def test_session_without_token_is_missing():
    store = SessionStore({"offline_acme": {"shop": "acme.myshopify.com", "accessToken": ""}})
    with pytest.raises(SessionNotFoundError):
        store.load_offline_session("acme")


def test_session_store_from_config(tmp_path):
    sessions_file = tmp_path / "sessions.json"
    sessions_file.write_text(json.dumps({
        "offline_acme.myshopify.com": {"shop": "acme.myshopify.com", "accessToken": "file-token"}
    }))
    config = AppConfig(sessions_file=str(sessions_file), shop="beta.myshopify.com", access_token="env-token")
    store = SessionStore.from_config(config)
    assert store.load_offline_session("acme")["accessToken"] == "file-token"
    assert store.load_offline_session("beta")["accessToken"] == "env-token"
