#!/usr/bin/env python3
"""
Wholesale Registration Proxy - Entry Point.

Serves the Shopify app-proxy endpoint that receives storefront wholesale
registrations and forwards them to the Admin GraphQL API:

  1. Load configuration from a .env file (and the environment)
  2. Validate it (a session source must exist)
  3. Serve /apps/proxy with uvicorn

Usage:
    python run.py                     # Serve on HOST:PORT from .env
    python run.py --debug             # Verbose logging
    python run.py --port 9000         # Override the port
    python run.py --version           # Show version
    python run.py --env /path         # Use alternate .env file
"""

import sys
import argparse
import logging
from pathlib import Path

import uvicorn

from config import APP_NAME
from core import AppConfig, create_app

# Read version from the repo-root VERSION file (e.g., "0.1.0").
VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def main():
    """Parse CLI arguments and serve the proxy."""
    parser = argparse.ArgumentParser(
        description="Wholesale Registration Proxy - Register storefront wholesale customers and companies"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--host", help="Bind address (overrides HOST)")
    parser.add_argument("--port", type=int, help="Bind port (overrides PORT)")
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"{APP_NAME} {VERSION}")
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s %(name)s - %(levelname)s - %(message)s'
    )

    config = AppConfig.from_env(env_file=args.env)

    # Apply CLI overrides on top of .env values
    if args.debug:
        config.debug = True
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port

    print(f"\n{'='*60}")
    print(f"WHOLESALE REGISTRATION PROXY v{VERSION}")
    print("="*60)
    print(f"Admin API version: {config.api_version}")
    print(f"Signature check: {'Enabled' if config.api_secret else 'Disabled'}")
    print(f"Listening on: {config.host}:{config.port}")

    errors = config.validate()
    if errors:
        print("\nConfiguration Errors:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)

    app = create_app(config, version=VERSION)
    uvicorn.run(app, host=config.host, port=config.port, log_level="debug" if config.debug else "info")


if __name__ == "__main__":
    main()
