# --- API Models ---
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    fileContent: Optional[str] = Field(default=None, description="Full text of the uploaded file")
    userQuestion: Optional[str] = Field(default=None, description="Question about the file")

class ChatResponse(BaseModel):
    answer: str

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None

class HealthResponse(BaseModel):
    status: str
    provider: str
    model: str

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    text: str
