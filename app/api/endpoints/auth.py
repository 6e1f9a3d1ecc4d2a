from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from app.api.deps import DEV_USER_ID, get_optional_identity
from app.core.auth_config import AuthConfig, get_auth_config
from app.core.config import settings
from app.core.exceptions import NotAuthenticatedError, DevAuthDisabledError
from app.core.security import Identity, create_dev_token, verify_token
from app.schemas.user import (
    DevLoginRequest,
    DevLoginResponse,
    IdentityResponse,
    TokenValidationRequest,
    TokenValidationResponse,
)
import logging

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])

@router.post("/validate",
    response_model=TokenValidationResponse,
    description="Check whether a token is accepted by the configured providers",
    responses={
        200: {"description": "Token is valid"},
        401: {"description": "Token missing or rejected"}
    })
async def validate_token(
    request: TokenValidationRequest,
    auth_config: AuthConfig = Depends(get_auth_config)
):
    if not request.token:
        return JSONResponse(status_code=401, content={"valid": False})

    try:
        verify_token(request.token, auth_config)
    except NotAuthenticatedError:
        return JSONResponse(status_code=401, content={"valid": False})

    return TokenValidationResponse(valid=True)

@router.get("/whoami",
    response_model=Optional[IdentityResponse],
    description="Identity asserted by the bearer token, or null")
async def whoami(identity: Optional[Identity] = Depends(get_optional_identity)):
    if identity is None:
        return None
    return IdentityResponse(
        subject=identity.subject,
        token_identifier=identity.token_identifier,
        issuer=identity.issuer,
        email=identity.email,
        name=identity.name,
    )

@router.post("/dev-login",
    response_model=DevLoginResponse,
    description="Issue a token for the development user",
    responses={
        200: {"description": "Token signed with the development key"},
        404: {"description": "Development login is disabled"}
    })
async def dev_login(
    request: Optional[DevLoginRequest] = None,
    auth_config: AuthConfig = Depends(get_auth_config)
):
    """
    Development-only login.

    Only available when ENVIRONMENT=development, ENABLE_DEV_AUTH=true and the
    signing key was generated in-process (no JWKS configured).
    """
    if not settings.DEV_AUTH_ENABLED:
        raise DevAuthDisabledError()

    request = request or DevLoginRequest()
    access_token = create_dev_token(
        auth_config,
        subject=DEV_USER_ID,
        email=request.email,
        name=request.name,
    )
    logger.info(f"Issued development token for {request.email}")
    return DevLoginResponse(access_token=access_token, user_id=DEV_USER_ID)

@router.get("/.well-known/jwks.json",
    description="Public keys used to verify tokens")
async def jwks(auth_config: AuthConfig = Depends(get_auth_config)):
    return auth_config.public_jwks()
