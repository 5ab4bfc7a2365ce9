"""Chunk, stored record and retrieval result models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def make_chunk_id(source: str, chunk_index: int) -> str:
    """Deterministic record id; re-ingesting a source reproduces the same ids."""
    return f"{source}_chunk_{chunk_index}"


@dataclass
class Chunk:
    """A contiguous slice of a document's normalized text."""
    text: str
    source: str
    chunk_index: int
    char_start: int
    char_end: int
    page_number: Optional[int] = None

    @property
    def chunk_id(self) -> str:
        return make_chunk_id(self.source, self.chunk_index)

    @property
    def metadata(self) -> Dict[str, Any]:
        """Metadata object persisted alongside the chunk in the vector store."""
        metadata: Dict[str, Any] = {
            "source": self.source,
            "chunkIndex": self.chunk_index,
            "charStart": self.char_start,
            "charEnd": self.char_end,
        }
        if self.page_number is not None:
            metadata["page"] = self.page_number
        return metadata


@dataclass
class StoredRecord:
    """The persisted unit: id, vector, raw text and metadata."""
    id: str
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    embedding: Optional[List[float]] = None
    distance: Optional[float] = None  # only set on query results

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding: List[float]) -> "StoredRecord":
        return cls(
            id=chunk.chunk_id,
            text=chunk.text,
            metadata=chunk.metadata,
            embedding=embedding
        )


@dataclass
class RetrievedSource:
    """Source entry of a retrieval result."""
    id: str
    score: float  # 1 - cosine distance
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RetrievalResult:
    """Context block for the LLM plus the ranked sources it was built from."""
    context: str
    sources: List[RetrievedSource]

    @classmethod
    def empty(cls) -> "RetrievalResult":
        return cls(context="", sources=[])

    @property
    def is_empty(self) -> bool:
        return not self.sources
