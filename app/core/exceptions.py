from fastapi import HTTPException, status

class AuthConfigError(Exception):
    """Raised at startup when the JWT provider configuration is unusable"""

class NotAuthenticatedError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

class NotAuthorizedError(HTTPException):
    def __init__(self, action: str = "access", resource: str = "chat"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this {resource}"
        )

class ChatNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Chat not found"
        )

class MessageNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found"
        )

class InvalidParentMessageError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent message must belong to the same chat"
        )

class StreamNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Stream not found or expired"
        )

class DevAuthDisabledError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Development login is not available"
        )

class CORSOriginError(HTTPException):
    def __init__(self, origin: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"CORS: Origin {origin} not allowed"
        )
