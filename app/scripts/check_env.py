#!/usr/bin/env python3
"""
Environment Check Script

Usage:
    python -m app.scripts.check_env

Loads the settings and the JWT provider configuration the same way the API
does on startup and prints what is configured. Exits with status 1 when the
auth configuration cannot be built (missing AUTH_ISSUER/JWKS in strict mode,
malformed JWKS).
"""

import sys

from app.core.auth_config import build_auth_config
from app.core.config import Settings
from app.core.cors import get_cors_options
from app.core.exceptions import AuthConfigError


def status(value) -> str:
    return "✅" if value else "➖"


def check_env(settings: Settings) -> int:
    print("=" * 60)
    print(f"OpenChat environment check ({settings.ENVIRONMENT})")
    print("=" * 60)
    print()

    print(f"  MongoDB URL:       {settings.MONGODB_URL}")
    print(f"  Database:          {settings.DATABASE_NAME}")
    print(f"  AUTH_ISSUER:       {status(settings.AUTH_ISSUER)}")
    print(f"  CONVEX_SITE_URL:   {status(settings.CONVEX_SITE_URL)}")
    print(f"  JWKS:              {status(settings.JWKS)}")
    print(f"  Strict auth:       {settings.STRICT_AUTH}")
    print(f"  Dev auth enabled:  {settings.DEV_AUTH_ENABLED}")
    print(f"  Redis:             {status(settings.REDIS_URL)}")
    print()

    try:
        auth_config = build_auth_config(settings)
    except AuthConfigError as e:
        print(f"❌ Auth configuration failed: {e}")
        return 1

    for provider in auth_config.providers:
        print(f"✅ Provider {provider.type}: issuer={provider.issuer} audience={provider.audience}")
    if auth_config.can_sign:
        print("⚠️  Using a generated development signing key")

    cors = get_cors_options(settings)
    print(f"✅ CORS: strict={cors.strict_mode} origins={cors.origins}")
    return 0


def main():
    sys.exit(check_env(Settings()))


if __name__ == "__main__":
    main()
