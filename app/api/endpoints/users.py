from typing import Optional
from fastapi import APIRouter, Depends
from app.api.deps import get_optional_identity, get_current_identity, get_user_service
from app.core.security import Identity
from app.schemas.user import UserResponse
from app.services.user import UserService

router = APIRouter(tags=["Users"])

@router.get("/viewer",
    response_model=Optional[UserResponse],
    description="Get the signed-in user",
    responses={
        200: {"description": "Current user, or null when not signed in"}
    })
async def viewer(
    identity: Optional[Identity] = Depends(get_optional_identity),
    user_service: UserService = Depends(get_user_service)
):
    """
    Get details of the signed-in user.

    Falls back to a record built from the token claims when no profile has
    been stored for the user's email.
    """
    user = await user_service.viewer(identity)
    if user is None:
        return None
    return UserResponse(**user)

@router.post("/ensure",
    response_model=Optional[UserResponse],
    description="Create the user's profile if it does not exist",
    responses={
        200: {"description": "Stored profile, or null when the token has no email"},
        401: {"description": "Not authenticated"}
    })
async def ensure_user(
    identity: Identity = Depends(get_current_identity),
    user_service: UserService = Depends(get_user_service)
):
    user = await user_service.ensure_user(identity)
    if user is None:
        return None
    return UserResponse(**user)
