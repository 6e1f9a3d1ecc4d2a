from functools import lru_cache
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from app.core.auth_config import AuthConfig, get_auth_config
from app.core.config import settings
from app.core.exceptions import NotAuthenticatedError
from app.core.security import Identity, verify_token
from app.services.chat import ChatService
from app.services.message import MessageService
from app.services.user import UserService
from app.services.stream_storage import StreamStorage

DEV_USER_ID = "dev_user"

bearer_scheme = HTTPBearer(auto_error=False)

def get_database():
    from app.main import app  # Local import to avoid circular dependency
    return app.mongodb

def get_chat_service(db=Depends(get_database)) -> ChatService:
    return ChatService(db)

def get_message_service(db=Depends(get_database)) -> MessageService:
    return MessageService(db)

def get_user_service(db=Depends(get_database)) -> UserService:
    return UserService(db)

@lru_cache()
def get_stream_storage() -> StreamStorage:
    return StreamStorage()

async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_config: AuthConfig = Depends(get_auth_config),
) -> Optional[Identity]:
    """Verified identity, or None for anonymous callers and rejected tokens"""
    if credentials is None:
        if settings.DEV_AUTH_ENABLED:
            return Identity(subject=DEV_USER_ID)
        return None

    try:
        return verify_token(credentials.credentials, auth_config)
    except NotAuthenticatedError:
        return None

async def get_current_identity(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Identity:
    if identity is None:
        raise NotAuthenticatedError()
    return identity

async def get_optional_user_id(
    identity: Optional[Identity] = Depends(get_optional_identity),
) -> Optional[str]:
    return identity.subject if identity else None

async def require_user_id(
    identity: Identity = Depends(get_current_identity),
) -> str:
    return identity.subject
