"""
Document Ingestion Script for the PENS admissions RAG chatbot.

For every file given on the command line this script:
1. Extracts text (PDF or plain text)
2. Splits it into overlapping chunks
3. Generates embeddings using the HuggingFace API
4. Replaces the file's previous chunks in Supabase pgvector

Re-running it on the same file is safe: old chunks of that source are
purged before the new ones are written. Do not run two ingestions of the
same file at the same time.

Usage:
    python ingest_documents.py path/to/brosur.pdf [more files...]
    python ingest_documents.py scanned_ocr.txt --source brosur.pdf
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from services.embedding_model import EmbeddingModel
from services.vector_store import VectorStore
from services.ingestion_pipeline import IngestionPipeline
from services.errors import RAGError
from config import LOG_LEVEL, LOG_FORMAT
from logger import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest documents into the PENS chatbot knowledge base")
    parser.add_argument("files", nargs="+", help="PDF or .txt files to ingest")
    parser.add_argument(
        "--source",
        help="Source id to store the chunks under (single file only; defaults to the file name)"
    )
    parser.add_argument("--log-format", default=LOG_FORMAT, choices=["json", "text"])
    return parser.parse_args(argv)


def run(files: List[str], pipeline: IngestionPipeline, source: Optional[str] = None) -> int:
    """
    Ingest every file in order, stopping at the first failure.

    Returns:
        Total number of chunks stored
    """
    total = 0
    for index, file_path in enumerate(files, start=1):
        path = Path(file_path).resolve()
        logger.info(f"[{index}/{len(files)}] Ingesting {path.name}")
        count = pipeline.ingest_file(str(path), source_id=source)
        logger.info(f"  ✓ {path.name}: {count} chunks stored")
        total += count
    return total


def main(argv: Optional[List[str]] = None) -> int:
    """Main ingestion process. Returns the process exit code."""
    args = parse_args(argv)
    setup_logging(LOG_LEVEL, args.log_format)

    if args.source and len(args.files) > 1:
        logger.error("--source can only be used with a single file")
        return 2

    missing = [f for f in args.files if not Path(f).is_file()]
    if missing:
        logger.error(f"File(s) not found: {', '.join(missing)}")
        return 1

    try:
        logger.info("=" * 60)
        logger.info("Starting PENS document ingestion")
        logger.info("=" * 60)

        embedding_model = EmbeddingModel()
        vector_store = VectorStore()
        pipeline = IngestionPipeline(embedding_model, vector_store)

        logger.info("Warming up embedding model (may take 15-20 seconds on a cold start)...")
        embedding_model.warmup()

        total = run(args.files, pipeline, source=args.source)

        final_count = vector_store.count()
        logger.info("=" * 60)
        logger.info(f"INGESTION COMPLETE: {total} chunks from {len(args.files)} file(s)")
        logger.info(f"Chunks in database: {final_count}")
        logger.info("=" * 60)
        return 0

    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        return 1
    except (RAGError, ValueError) as e:
        logger.error(f"Ingestion failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Ingestion failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
