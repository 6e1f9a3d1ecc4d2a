from pydantic import BaseModel, Field
from typing import Any, List, Optional
import time

class StreamData(BaseModel):
    messages: List[Any] = Field(default_factory=list)
    model: str
    partial_response: str = ""
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000), description="Milliseconds since epoch")
    token: Optional[str] = None
