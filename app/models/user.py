from pydantic import BaseModel, Field
from datetime import datetime, timezone

class User(BaseModel):
    """Profile record in the `users` collection; identity itself lives in the JWT"""
    email: str
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
