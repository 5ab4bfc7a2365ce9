"""Vector store implementation using Supabase pgvector."""
import logging
from typing import Any, Dict, List
from supabase import create_client, Client

from models.chunk import StoredRecord
from services.errors import StoreError
from config import SUPABASE_URL, SUPABASE_KEY, SUPABASE_TABLE

logger = logging.getLogger(__name__)

# Keeps `id=in.(...)` filters well under URL length limits
DELETE_BATCH_SIZE = 100

# Schema expected in Supabase (cosine distance via the <=> operator):
#
# CREATE EXTENSION IF NOT EXISTS vector;
#
# CREATE TABLE pens_docs (
#   id text PRIMARY KEY,
#   text text NOT NULL,
#   metadata jsonb NOT NULL DEFAULT '{}'::jsonb,
#   embedding vector(768) NOT NULL
# );
# CREATE INDEX ON pens_docs USING hnsw (embedding vector_cosine_ops);
# CREATE INDEX ON pens_docs USING gin (metadata);
#
# CREATE OR REPLACE FUNCTION match_chunks(
#   query_embedding vector(768),
#   match_count int
# )
# RETURNS TABLE (id text, text text, metadata jsonb, distance float)
# LANGUAGE sql STABLE
# AS $$
#   SELECT pens_docs.id, pens_docs.text, pens_docs.metadata,
#          pens_docs.embedding <=> query_embedding AS distance
#   FROM pens_docs
#   ORDER BY pens_docs.embedding <=> query_embedding
#   LIMIT match_count;
# $$;


class VectorStore:
    """Persist chunk records and run nearest-neighbour queries on Supabase pgvector."""

    def __init__(
        self,
        supabase_url: str = SUPABASE_URL,
        supabase_key: str = SUPABASE_KEY,
        table_name: str = SUPABASE_TABLE,
        match_function: str = "match_chunks"
    ):
        """
        Initialize the vector store with Supabase client.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            table_name: Name of the table storing records
            match_function: RPC returning records ordered by cosine distance

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.table_name = table_name
        self.match_function = match_function

        self.client: Client = create_client(supabase_url, supabase_key)

        logger.info(f"Initialized VectorStore with table: {table_name}")

    def upsert(self, records: List[StoredRecord]) -> None:
        """
        Write records in a single batch upsert.

        Args:
            records: Records with id, text, metadata and embedding

        Raises:
            ValueError: If records list is empty or a record has no embedding
            StoreError: If database operation fails
        """
        if not records:
            raise ValueError("Records list cannot be empty")

        rows = []
        for record in records:
            if not record.embedding:
                raise ValueError(f"Record {record.id} has no embedding")
            rows.append({
                "id": record.id,
                "text": record.text,
                "metadata": record.metadata,
                "embedding": record.embedding
            })

        try:
            self.client.table(self.table_name).upsert(rows).execute()
        except Exception as e:
            error_msg = f"Failed to upsert records: {e}"
            logger.error(error_msg)
            raise StoreError(error_msg, provider_name="supabase") from e

        logger.info(f"Upserted {len(rows)} records into {self.table_name}")

    def delete_where(self, metadata_filter: Dict[str, Any]) -> List[str]:
        """
        Delete every record whose metadata contains metadata_filter.

        Args:
            metadata_filter: Key/value pairs matched against the metadata object,
                e.g. {"source": "brosur.pdf"}

        Returns:
            Ids of the deleted records

        Raises:
            ValueError: If the filter is empty
            StoreError: If database operation fails
        """
        if not metadata_filter:
            raise ValueError("metadata_filter cannot be empty")

        try:
            response = (
                self.client.table(self.table_name)
                .select("id")
                .contains("metadata", metadata_filter)
                .execute()
            )
            ids = [row["id"] for row in (response.data or [])]

            for i in range(0, len(ids), DELETE_BATCH_SIZE):
                batch = ids[i:i + DELETE_BATCH_SIZE]
                self.client.table(self.table_name).delete().in_("id", batch).execute()
        except Exception as e:
            error_msg = f"Failed to delete records matching {metadata_filter}: {e}"
            logger.error(error_msg)
            raise StoreError(error_msg, provider_name="supabase") from e

        if ids:
            logger.info(f"Deleted {len(ids)} records matching {metadata_filter}")
        return ids

    def query(self, query_embedding: List[float], top_k: int = 3) -> List[StoredRecord]:
        """
        Find the records nearest to query_embedding by cosine distance.

        Args:
            query_embedding: Query vector
            top_k: Number of records to return

        Returns:
            Records closest first, each with `distance` set

        Raises:
            ValueError: If query_embedding is empty or top_k is invalid
            StoreError: If database operation fails
        """
        if not query_embedding:
            raise ValueError("Query embedding cannot be empty")

        if top_k <= 0:
            raise ValueError("top_k must be positive")

        try:
            response = self.client.rpc(
                self.match_function,
                {
                    "query_embedding": query_embedding,
                    "match_count": top_k
                }
            ).execute()
        except Exception as e:
            error_msg = f"Failed to query vector store: {e}"
            logger.error(error_msg)
            raise StoreError(error_msg, provider_name="supabase") from e

        try:
            records = [
                StoredRecord(
                    id=row["id"],
                    text=row.get("text") or "",
                    metadata=row.get("metadata") or {},
                    distance=row.get("distance")
                )
                for row in (response.data or [])
            ]
        except (KeyError, TypeError, AttributeError) as e:
            error_msg = f"Malformed row returned by {self.match_function}: {e!r}"
            logger.error(error_msg)
            raise StoreError(error_msg, provider_name="supabase") from e

        logger.debug(f"Found {len(records)} records for query")
        return records

    def count(self) -> int:
        """
        Get the total number of records in the vector store.

        Raises:
            StoreError: If database operation fails
        """
        try:
            response = self.client.table(self.table_name).select("id", count="exact").limit(1).execute()
            return response.count if response.count is not None else 0
        except Exception as e:
            error_msg = f"Failed to count records in vector store: {e}"
            logger.error(error_msg)
            raise StoreError(error_msg, provider_name="supabase") from e

    def ping(self) -> bool:
        """Return True if the store answers a count query."""
        try:
            self.count()
            return True
        except StoreError:
            return False
