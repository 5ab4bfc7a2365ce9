"""API request/response models."""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from models.conversation import ConversationTurn


class HistoryPart(BaseModel):
    """One text part of a history turn."""
    text: str


class HistoryTurn(BaseModel):
    """A history turn as sent by the chat widget."""
    role: Literal["user", "model", "assistant"]
    parts: Optional[List[HistoryPart]] = None
    message: Optional[str] = None  # alternate single-string format

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn.from_raw(
            role=self.role,
            parts=[part.text for part in self.parts] if self.parts else None,
            message=self.message
        )


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""
    message: str = Field(..., min_length=1, max_length=500)
    history: List[HistoryTurn] = Field(default_factory=list)


class Source(BaseModel):
    """A retrieved chunk reference."""
    id: str
    score: float


class ChatResponse(BaseModel):
    """Response body for POST /api/chat."""
    response: str
    sources: List[Source]
    latency_ms: int


class ServiceStatus(BaseModel):
    """Status of each dependency."""
    groq: Literal["ok", "error"]
    supabase: Literal["ok", "error"]
    server: Literal["ok", "error"] = "ok"


class HealthResponse(BaseModel):
    """Response body for GET /health."""
    status: Literal["ok", "degraded"]
    timestamp: str
    response_time_ms: int
    services: ServiceStatus
    documents: int
    environment: str
    model: str


class ErrorResponse(BaseModel):
    """Error body returned to clients; never carries stack traces."""
    error: str
    details: Optional[List[Dict[str, Any]]] = None
