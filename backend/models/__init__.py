"""Data models for the PENS admissions RAG chatbot."""
from .document import Document, Page
from .chunk import Chunk, StoredRecord, RetrievedSource, RetrievalResult, make_chunk_id
from .conversation import ConversationTurn, USER_ROLE, MODEL_ROLE
from .api import ChatRequest, ChatResponse, HistoryTurn, HistoryPart, Source, HealthResponse, ServiceStatus, ErrorResponse

__all__ = [
    "Document",
    "Page",
    "Chunk",
    "StoredRecord",
    "RetrievedSource",
    "RetrievalResult",
    "make_chunk_id",
    "ConversationTurn",
    "USER_ROLE",
    "MODEL_ROLE",
    "ChatRequest",
    "ChatResponse",
    "HistoryTurn",
    "HistoryPart",
    "Source",
    "HealthResponse",
    "ServiceStatus",
    "ErrorResponse",
]
