"""Exception hierarchy for the RAG pipeline.

    RAGError
    +-- ExtractionError          (fatal, operator must resupply input)
    |   +-- UnsupportedFormatError
    |   +-- EmptyTextLayerError
    +-- EmbeddingError           (fatal per ingestion, nothing written)
    +-- StoreError               (fatal for ingestion, empty result for retrieval)
    +-- GenerationError          (fatal per chat turn, generic message only)
"""
from typing import Optional


class RAGError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str = "An unexpected error occurred", provider_name: Optional[str] = None):
        self.message = message
        self.provider_name = provider_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.provider_name:
            return f"[{self.provider_name}] {self.message}"
        return self.message


class ExtractionError(RAGError):
    """Raised when no usable text can be obtained from a source document."""


class UnsupportedFormatError(ExtractionError):
    """Raised for file kinds the extractor cannot read."""


class EmptyTextLayerError(ExtractionError):
    """Raised when extracted text is too short to be a real text layer (scanned PDF)."""


class EmbeddingError(RAGError):
    """Raised when the embedding provider fails."""


class StoreError(RAGError):
    """Raised when a vector store operation fails."""


class GenerationError(RAGError):
    """Raised when the generation capability fails; provider detail is not exposed."""
