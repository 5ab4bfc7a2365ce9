"""Services for the PENS admissions RAG chatbot."""
from .errors import RAGError, ExtractionError, UnsupportedFormatError, EmptyTextLayerError, EmbeddingError, StoreError, GenerationError
from .document_loader import DocumentLoader
from .chunking_engine import ChunkingEngine
from .embedding_model import EmbeddingModel, EmbeddingMode
from .vector_store import VectorStore
from .ingestion_pipeline import IngestionPipeline
from .retrieval_engine import RetrievalEngine
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .response_composer import ResponseComposer, FALLBACK_MESSAGE
from .chat_service import ChatService, ChatResult

__all__ = [
    'RAGError', 'ExtractionError', 'UnsupportedFormatError', 'EmptyTextLayerError', 'EmbeddingError', 'StoreError', 'GenerationError',
    'DocumentLoader', 'ChunkingEngine', 'EmbeddingModel', 'EmbeddingMode', 'VectorStore', 'IngestionPipeline',
    'RetrievalEngine', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError', 'ResponseComposer', 'FALLBACK_MESSAGE',
    'ChatService', 'ChatResult'
]
