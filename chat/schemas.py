# chat/schemas.py
from pydantic import BaseModel
from typing import List, Literal, Optional

class ChatMessage(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str

class ChatRequest(BaseModel):
    """Schema for a tutoring chat turn."""
    messages: List[ChatMessage]
    grade: Optional[str] = None
    subject: Optional[str] = None
