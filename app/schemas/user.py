from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class IdentityResponse(BaseModel):
    subject: str
    token_identifier: str
    issuer: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

class UserResponse(BaseModel):
    id: str
    name: str
    email: str = ""
    token_identifier: Optional[str] = None
    created_at: Optional[datetime] = None

class TokenValidationRequest(BaseModel):
    token: Optional[str] = None

class TokenValidationResponse(BaseModel):
    valid: bool

class DevLoginRequest(BaseModel):
    email: str = "dev@openchat.local"
    name: str = "Developer User"

class DevLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
