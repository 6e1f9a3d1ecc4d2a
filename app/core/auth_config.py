"""
JWT provider configuration.

Tokens are issued by an external auth service and verified here against a
JSON Web Key Set. The issuer comes from AUTH_ISSUER (or CONVEX_SITE_URL) and
the key set from JWKS. In strict mode both are required; in development a
local issuer and an in-process RSA key pair are used instead.
"""

import json
import logging
from functools import lru_cache
from typing import List, Optional, Tuple
from urllib.parse import urlparse

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk
from pydantic import BaseModel, Field

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import AuthConfigError

logger = logging.getLogger(__name__)

DEV_ISSUER = "http://localhost:3211"
DEV_KEY_ID = "openchat-dev"
LOCAL_HOSTS = {"localhost", "127.0.0.1", "0.0.0.0"}


class JwtProvider(BaseModel):
    type: str = "customJwt"
    application_id: Optional[str] = "convex"
    issuer: str
    jwks: str
    algorithm: str = "RS256"
    audience: Optional[str] = "convex"


class AuthConfig(BaseModel):
    providers: List[JwtProvider] = Field(default_factory=list)
    # PEM private key, only present when the JWKS was generated in-process
    signing_key: Optional[str] = Field(default=None, exclude=True, repr=False)

    @property
    def can_sign(self) -> bool:
        return self.signing_key is not None

    def public_jwks(self) -> dict:
        if not self.providers:
            return {"keys": []}
        return json.loads(self.providers[0].jwks)


def aligned_site_url(settings: Settings) -> Optional[str]:
    """
    Site URL aligned with the public backend URL so the `iss` claim matches.

    Falls back to PUBLIC_BACKEND_URL when CONVEX_SITE_URL is missing. Outside
    production a mismatching CONVEX_SITE_URL is replaced as well; production
    values are never overridden. The settings object is left untouched.
    """
    public_url = settings.PUBLIC_BACKEND_URL
    site_url = settings.CONVEX_SITE_URL

    if public_url:
        if not site_url:
            return public_url
        if not settings.IS_PRODUCTION and site_url != public_url:
            logger.info(f"Using {public_url} instead of CONVEX_SITE_URL {site_url} to match the public URL")
            return public_url

    return site_url


def generate_dev_key_pair() -> Tuple[str, str]:
    """Generate an RSA key pair, returning (private PEM, JWKS JSON)"""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")

    public_jwk = jwk.construct(public_pem, algorithm="RS256").to_dict()
    public_jwk.update({"kid": DEV_KEY_ID, "use": "sig"})
    return private_pem, json.dumps({"keys": [public_jwk]})


def parse_jwks(raw: str) -> dict:
    try:
        jwks = json.loads(raw)
    except ValueError as e:
        raise AuthConfigError(f"Environment variable JWKS is not valid JSON: {e}")

    if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
        raise AuthConfigError("Environment variable JWKS must be an object with a 'keys' list")
    return jwks


def alternate_issuer(issuer: str, port: int) -> Optional[str]:
    """Same issuer on another local port, or None for non-local issuers"""
    parsed = urlparse(issuer)
    if parsed.hostname not in LOCAL_HOSTS or parsed.port == port:
        return None
    return parsed._replace(netloc=f"{parsed.hostname}:{port}").geturl()


def build_auth_config(settings: Optional[Settings] = None) -> AuthConfig:
    settings = settings or default_settings
    issuer = settings.AUTH_ISSUER or aligned_site_url(settings)
    jwks = settings.JWKS
    signing_key = None

    if settings.STRICT_AUTH:
        if not issuer:
            raise AuthConfigError("Environment variable AUTH_ISSUER (or CONVEX_SITE_URL) is required for auth config")
        if not jwks:
            raise AuthConfigError("Environment variable JWKS is required for auth config")
    else:
        if not issuer:
            logger.warning(f"AUTH_ISSUER not set, using development issuer {DEV_ISSUER}")
            issuer = DEV_ISSUER
        if not jwks:
            logger.warning("JWKS not set, generating a development signing key")
            signing_key, jwks = generate_dev_key_pair()

    parse_jwks(jwks)

    providers = [
        JwtProvider(issuer=issuer, jwks=jwks, audience=settings.AUTH_AUDIENCE)
    ]

    if settings.AUTH_ALTERNATE_PORT:
        alt_issuer = alternate_issuer(issuer, settings.AUTH_ALTERNATE_PORT)
        if alt_issuer:
            providers.append(
                JwtProvider(issuer=alt_issuer, jwks=jwks, audience=settings.AUTH_AUDIENCE)
            )

    logger.info(f"Auth configured with issuers: {', '.join(p.issuer for p in providers)}")
    return AuthConfig(providers=providers, signing_key=signing_key)


@lru_cache()
def get_auth_config() -> AuthConfig:
    return build_auth_config()
