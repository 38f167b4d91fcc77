"""
Core package - The wholesale registration modules.

Each module handles one concern:

  proxy_app.py       Inbound app-proxy HTTP routes
  shop_resolver.py   Shop identification and offline sessions
  registrant.py      Validated form submission
  orchestrator.py    Upsert-and-link workflow (state machine)
  resolvers.py       Customer and company lookups
  directory.py       One method per Admin API operation
  shopify_client.py  HTTP communication with the Admin GraphQL API
  graphql_queries.py GraphQL documents
  events.py          Structured workflow events
  errors.py          Exception types
  app_config.py      Environment configuration
"""

from .app_config import AppConfig
from .directory import ShopifyDirectory
from .errors import (
    CompanyCreationError,
    GraphQLTransportError,
    RegistrationError,
    SessionNotFoundError,
    ShopNotFoundError,
    UserErrors,
)
from .events import EventLog, WorkflowEvent
from .orchestrator import RegistrationOrchestrator, RegistrationResult, WorkflowState
from .proxy_app import create_app
from .registrant import Registrant
from .resolvers import CompanyResolver, IdentityResolver
from .shop_resolver import SessionStore, resolve_shop
from .shopify_client import ShopifyAdminClient
