"""
Proxy App - The storefront-facing HTTP surface (Shopify app proxy).

The storefront registration form posts to /apps/proxy on the shop's domain;
Shopify forwards the request here. Routes:

  GET  /apps/proxy   Liveness check used when configuring the proxy.
  POST /apps/proxy   Run one registration. Returns
                     {success, companyId, customerId, message, customerError, warnings}
                     or, on a hard failure, {error, details} with an error status.
  GET  /health       Process health and version.

Status mapping:
  400  no shop could be identified, or companyCreate failed
  401  the shop has no offline session (app not installed)
  422  a form value was not a single text value
  500  anything else
"""

import json
import logging
from typing import Callable, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from config import APP_NAME

from .app_config import AppConfig
from .directory import ShopifyDirectory
from .errors import CompanyCreationError, SessionNotFoundError, ShopNotFoundError
from .orchestrator import RegistrationOrchestrator
from .registrant import Registrant
from .shop_resolver import SessionStore, resolve_shop
from .shopify_client import ShopifyAdminClient

logger = logging.getLogger(__name__)

DirectoryFactory = Callable[[str, Dict, AppConfig], ShopifyDirectory]


def shopify_directory_factory(shop: str, session: Dict, config: AppConfig) -> ShopifyDirectory:
    """Build the Admin API directory for one shop's offline session."""
    client = ShopifyAdminClient(
        shop,
        session["accessToken"],
        api_version=config.api_version,
        timeout=config.request_timeout,
        debug=config.debug,
    )
    return ShopifyDirectory(client)


def create_app(
    config: AppConfig,
    sessions: Optional[SessionStore] = None,
    directory_factory: Optional[DirectoryFactory] = None,
    version: str = "unknown",
) -> FastAPI:
    """Application factory.

    Args:
        config: Resolved settings.
        sessions: Session store; loaded from config when omitted.
        directory_factory: Builds the remote directory for a shop (tests pass a fake).
        version: Reported by /health.
    """
    app = FastAPI(title=APP_NAME, version=version)
    app.state.config = config
    app.state.sessions = sessions if sessions is not None else SessionStore.from_config(config)
    app.state.directory_factory = directory_factory or shopify_directory_factory

    @app.get("/health")
    def health():
        return {"status": "ok", "version": version}

    @app.get("/apps/proxy")
    def proxy_loader():
        return {"status": "App Proxy route working"}

    @app.post("/apps/proxy")
    async def proxy_action(request: Request):
        try:
            form = await request.form()
            logger.info("Form data received: %s", sorted(form.keys()))

            shop = resolve_shop(
                request.query_params.multi_items(), form, request.headers, config.api_secret
            )
            logger.info("Final shop value: %s", shop)

            session = app.state.sessions.load_offline_session(shop)
            registrant = Registrant.from_form(form)

            directory = app.state.directory_factory(shop, session, config)
            try:
                orchestrator = RegistrationOrchestrator(
                    directory,
                    default_country=config.default_country,
                    wholesale_tag=config.wholesale_tag,
                    company_scan_limit=config.company_scan_limit,
                    customer_scan_limit=config.customer_scan_limit,
                )
                result = await run_in_threadpool(orchestrator.run, registrant)
            finally:
                directory.close()
            return JSONResponse(result.to_response())

        except ShopNotFoundError:
            logger.error("Could not determine shop from any source")
            return JSONResponse({"error": "Shop parameter missing"}, status_code=400)
        except SessionNotFoundError:
            return JSONResponse({"error": "App not installed for this shop"}, status_code=401)
        except ValidationError as e:
            details = json.loads(e.json(include_url=False))
            logger.warning("Invalid form data: %s", details)
            return JSONResponse({"error": "Invalid form data", "details": details}, status_code=422)
        except CompanyCreationError as e:
            logger.error("%s: %s", e.error, e.details)
            return JSONResponse({"error": e.error, "details": e.details}, status_code=400)
        except Exception as e:
            logger.exception("Error in proxy action")
            return JSONResponse({"error": "Internal server error", "details": str(e)}, status_code=500)

    return app
