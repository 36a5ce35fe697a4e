# app/schemas/common/common.py
from pydantic import BaseModel
from typing import Dict, List, Optional, Any


class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str
    message: str
    code: str
    errors: Optional[Dict[str, List[str]]] = None
