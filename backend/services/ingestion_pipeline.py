"""Ingestion pipeline: extract, chunk, embed and (re)store one source document."""
import logging
import os
import time
from typing import List, Optional, Union

from models.document import Document, Page
from models.chunk import Chunk, StoredRecord
from services.chunking_engine import ChunkingEngine
from services.document_loader import DocumentLoader, detect_file_kind
from services.embedding_model import EmbeddingModel, EmbeddingMode
from services.vector_store import VectorStore
from services.errors import EmbeddingError, ExtractionError
from config import EMBED_DELAY_SECONDS, EMBED_PROGRESS_EVERY

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """
    Populate the knowledge base for one source at a time.

    Prior records of a source are purged before the new ones are written,
    so the final store state depends only on the current document content.
    The read-purge-write sequence is not transactional: never run two
    ingestions of the same source concurrently.
    """

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        vector_store: VectorStore,
        chunking_engine: Optional[ChunkingEngine] = None,
        document_loader: Optional[DocumentLoader] = None,
        embed_delay: float = EMBED_DELAY_SECONDS
    ):
        """
        Initialize the pipeline.

        Args:
            embedding_model: Embedding capability used in DOCUMENT mode
            vector_store: Store receiving the records
            chunking_engine: Chunker (defaults to the configured window sizes)
            document_loader: Text extraction capability
            embed_delay: Seconds to wait between embedding calls (provider rate limits)
        """
        self.embedding_model = embedding_model
        self.vector_store = vector_store
        self.chunking_engine = chunking_engine or ChunkingEngine()
        self.document_loader = document_loader or DocumentLoader()
        self.embed_delay = embed_delay
        logger.info("Initialized IngestionPipeline")

    def ingest_file(self, filepath: str, source_id: Optional[str] = None) -> int:
        """
        Ingest a file from disk. The source id defaults to the file's base name.

        Returns:
            Number of chunks stored
        """
        document = self.document_loader.load_file(filepath)
        return self.ingest(document, source_id or os.path.basename(filepath))

    def ingest(
        self,
        document: Union[bytes, str, Document],
        source_id: str,
        file_kind: Optional[str] = None
    ) -> int:
        """
        (Re)populate the store with the chunks of one source.

        Args:
            document: Raw file bytes, already-extracted text, or a Document
            source_id: Source identifier (normally the file name)
            file_kind: "pdf" or "txt" for bytes input; inferred from source_id if omitted

        Returns:
            Number of chunks stored

        Raises:
            ExtractionError: If no usable text could be obtained
            EmbeddingError: If any chunk fails to embed (nothing is written)
            StoreError: If the purge or the write fails
        """
        if not source_id or not source_id.strip():
            raise ValueError("source_id cannot be empty")

        logger.info(f"Ingesting {source_id}")
        start_time = time.time()

        # Step 1: Extract text
        doc = self._to_document(document, source_id, file_kind)

        # Step 2: Chunk
        chunks = self.chunking_engine.chunk_document(doc, source=source_id)
        if not chunks:
            raise ExtractionError(f"No chunks produced for {source_id}", provider_name="chunker")
        avg_size = sum(len(c.text) for c in chunks) // len(chunks)
        logger.info(f"Split {source_id} into {len(chunks)} chunks (avg {avg_size} chars)")

        # Step 3: Embed every chunk before touching the store
        embeddings = self._embed_chunks(chunks)

        # Step 4: Purge prior records of this source
        deleted = self.vector_store.delete_where({"source": source_id})
        if deleted:
            logger.info(f"Deleted {len(deleted)} existing chunks of {source_id} for re-ingest")

        # Step 5: Write the new records in one batch
        records = [StoredRecord.from_chunk(chunk, embedding) for chunk, embedding in zip(chunks, embeddings)]
        self.vector_store.upsert(records)

        elapsed = time.time() - start_time
        logger.info(
            f"Ingested {source_id}: {len(records)} chunks stored in {elapsed:.1f}s",
            extra={"source": source_id, "chunks": len(records), "replaced": len(deleted)}
        )
        return len(records)

    def _to_document(
        self,
        document: Union[bytes, str, Document],
        source_id: str,
        file_kind: Optional[str]
    ) -> Document:
        if isinstance(document, Document):
            self.document_loader.check_text_layer(document.text, source_id)
            return document

        if isinstance(document, (bytes, bytearray)):
            return self.document_loader.extract(
                bytes(document),
                file_kind or detect_file_kind(source_id),
                filename=source_id
            )

        if isinstance(document, str):
            self.document_loader.check_text_layer(document, source_id)
            page = Page(page_number=1, text=document, word_count=len(document.split()))
            return Document(filename=source_id, pages=[page], total_pages=1)

        raise TypeError(f"Unsupported document type: {type(document).__name__}")

    def _embed_chunks(self, chunks: List[Chunk]) -> List[List[float]]:
        """
        Embed chunks sequentially, pausing between calls.

        Raises:
            EmbeddingError: On the first failure; no partial result is returned
        """
        embeddings = []
        total = len(chunks)

        for i, chunk in enumerate(chunks):
            try:
                embeddings.append(self.embedding_model.embed(chunk.text, EmbeddingMode.DOCUMENT))
            except EmbeddingError:
                logger.error(f"Embedding failed for {chunk.chunk_id}; aborting ingestion")
                raise
            except Exception as e:
                logger.error(f"Embedding failed for {chunk.chunk_id}: {e}; aborting ingestion")
                raise EmbeddingError(f"Failed to embed {chunk.chunk_id}: {e}") from e

            if i < total - 1 and self.embed_delay > 0:
                time.sleep(self.embed_delay)

            if (i + 1) % EMBED_PROGRESS_EVERY == 0 or i == total - 1:
                logger.info(f"Embedding progress: {i + 1}/{total}")

        return embeddings
