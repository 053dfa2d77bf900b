from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import uuid

def _rid():
    return uuid.uuid4().hex

class SuccessResponse(BaseModel):
    """Success envelope: data, success flag, request_id and optional list metadata."""
    success: Optional[bool] = Field(default=True)
    request_id: str = Field(default_factory=_rid)
    data: Optional[Any] = None
    meta: Optional[Dict[str, Any]] = None
