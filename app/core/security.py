from datetime import datetime, timedelta, timezone
from typing import Optional
import logging
from jose import JWTError, jwt
from pydantic import BaseModel
from app.core.auth_config import AuthConfig, DEV_KEY_ID
from app.core.config import settings
from app.core.exceptions import NotAuthenticatedError, DevAuthDisabledError

logger = logging.getLogger(__name__)

class Identity(BaseModel):
    subject: str
    issuer: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def token_identifier(self) -> str:
        return self.subject

def verify_token(token: str, auth_config: AuthConfig) -> Identity:
    """
    Verify a bearer token against every configured provider.
    The first provider whose JWKS, issuer and audience accept the token wins.
    """
    for provider in auth_config.providers:
        try:
            payload = jwt.decode(
                token,
                provider.jwks,
                algorithms=[provider.algorithm],
                audience=provider.audience,
                issuer=provider.issuer,
            )
        except JWTError as e:
            logger.debug(f"Token rejected by provider {provider.issuer}: {e}")
            continue

        subject = payload.get("sub")
        if not subject:
            break

        return Identity(
            subject=subject,
            issuer=payload.get("iss"),
            email=payload.get("email"),
            name=payload.get("name"),
        )

    raise NotAuthenticatedError()

def create_dev_token(
    auth_config: AuthConfig,
    subject: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token with the in-process development key"""
    if not auth_config.can_sign:
        raise DevAuthDisabledError()

    provider = auth_config.providers[0]
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.DEV_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": subject,
        "iss": provider.issuer,
        "aud": provider.audience,
        "iat": now,
        "exp": expire,
    }
    if email:
        to_encode["email"] = email
    if name:
        to_encode["name"] = name

    return jwt.encode(
        to_encode,
        auth_config.signing_key,
        algorithm=provider.algorithm,
        headers={"kid": DEV_KEY_ID},
    )
