from typing import Optional
import logging
from app.core.security import Identity
from app.models.user import User

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db):
        self.db = db

    @staticmethod
    def _display_name(identity: Identity) -> str:
        if identity.name:
            return identity.name
        if identity.email:
            return identity.email.split("@")[0]
        return "User"

    async def viewer(self, identity: Optional[Identity]) -> Optional[dict]:
        """
        The signed-in user.

        Returns the stored profile when one matches the identity's email,
        otherwise a minimal record derived from the token claims.
        """
        if identity is None:
            return None

        token_identifier = identity.token_identifier

        if identity.email:
            user = await self.db.users.find_one({"email": identity.email})
            if user:
                user["id"] = str(user.pop("_id"))
                user["token_identifier"] = token_identifier
                return user

        return {
            "id": token_identifier,
            "name": self._display_name(identity),
            "email": identity.email or "",
            "token_identifier": token_identifier,
        }

    async def ensure_user(self, identity: Optional[Identity]) -> Optional[dict]:
        """Get or create the profile record for the identity's email"""
        if identity is None or not identity.email:
            return None

        user = await self.db.users.find_one({"email": identity.email})
        if not user:
            user = User(email=identity.email, name=self._display_name(identity)).model_dump()
            result = await self.db.users.insert_one(user)
            user["_id"] = result.inserted_id
            logger.info(f"Created user profile for {identity.email}")

        user["id"] = str(user.pop("_id"))
        return user
