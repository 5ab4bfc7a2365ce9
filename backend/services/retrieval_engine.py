"""Retrieval engine for orchestrating query embedding and chunk retrieval."""
import logging

from models.chunk import RetrievalResult, RetrievedSource, StoredRecord
from services.vector_store import VectorStore
from services.embedding_model import EmbeddingModel, EmbeddingMode
from services.errors import StoreError
from config import RETRIEVAL_TOP_K

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"
DEFAULT_SOURCE_LABEL = "Dokumen"


class RetrievalEngine:
    """Embed a question, fetch the nearest chunks and format them as LLM context."""

    def __init__(self, vector_store: VectorStore, embedding_model: EmbeddingModel):
        """
        Initialize the retrieval engine.

        Args:
            vector_store: VectorStore instance for similarity search
            embedding_model: EmbeddingModel instance for query embedding
        """
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        logger.info("Initialized RetrievalEngine")

    def retrieve(self, query: str, top_k: int = RETRIEVAL_TOP_K) -> RetrievalResult:
        """
        Retrieve context for a question.

        1. Embed the query in QUERY mode
        2. Ask the store for the top_k nearest records
        3. Format each record as a labeled block and join the blocks
        4. Score each source as 1 - cosine distance, keeping store order

        An empty or unreachable store is not an error: the result is empty
        and the caller answers without grounding.

        Args:
            query: User question
            top_k: Number of chunks to retrieve (default: 3)

        Returns:
            RetrievalResult, empty if nothing was found

        Raises:
            EmbeddingError: If the query cannot be embedded
        """
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return RetrievalResult.empty()

        query_embedding = self.embedding_model.embed(query, EmbeddingMode.QUERY)

        try:
            records = self.vector_store.query(query_embedding, top_k=top_k)
        except StoreError as e:
            logger.warning(f"Vector store query failed, continuing without context: {e}")
            return RetrievalResult.empty()

        if not records:
            logger.warning(f"No documents found for query: {query[:80]}")
            return RetrievalResult.empty()

        context = CONTEXT_SEPARATOR.join(self.format_block(record) for record in records)
        sources = [
            RetrievedSource(
                id=record.id,
                score=1 - (record.distance or 0),  # cosine: similarity = 1 - distance
                metadata=record.metadata or {}
            )
            for record in records
        ]

        logger.info(
            f"Retrieved {len(sources)} chunks (top score: {sources[0].score:.3f})",
            extra={"query": query[:80], "docs_found": len(sources)}
        )
        return RetrievalResult(context=context, sources=sources)

    @staticmethod
    def format_block(record: StoredRecord) -> str:
        """Render a record as "[<source> Hal. <page>]" followed by its text."""
        metadata = record.metadata or {}
        source = metadata.get("source") or DEFAULT_SOURCE_LABEL
        page = f" Hal. {metadata['page']}" if metadata.get("page") else ""
        return f"[{source}{page}]\n{record.text}"

    def document_count(self) -> int:
        """Number of records in the store, 0 if it cannot be reached."""
        try:
            return self.vector_store.count()
        except StoreError:
            return 0
