"""Chunking engine with word-boundary-respecting sliding windows."""
import bisect
import logging
import re
from typing import List, Optional

from models.document import Document
from models.chunk import Chunk
from config import CHUNK_SIZE, CHUNK_OVERLAP, MIN_CHUNK_LENGTH

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim."""
    return _WHITESPACE.sub(" ", text or "").strip()


class ChunkingEngine:
    """Segments document text into overlapping retrievable chunks."""

    def __init__(
        self,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        min_chunk_length: int = MIN_CHUNK_LENGTH
    ):
        """
        Initialize ChunkingEngine.

        Sizes are in characters. The defaults approximate 450-token windows
        with a 75-token overlap at roughly 4 characters per token.

        Args:
            chunk_size: Window width in characters
            chunk_overlap: Characters shared by consecutive windows
            min_chunk_length: Chunks must be strictly longer than this to be kept

        Raises:
            ValueError: If the sizes are inconsistent
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")
        if min_chunk_length < 0:
            raise ValueError("min_chunk_length must be >= 0")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.min_chunk_length = min_chunk_length

    def split(self, text: str, source: str) -> List[Chunk]:
        """
        Split text into overlapping chunks that never end inside a word.

        The window end is moved back to the last space at or before it, as
        long as that space lies after the window start. The next window
        starts `chunk_overlap` characters before the previous end.

        Args:
            text: Raw extracted text
            source: Source identifier recorded on every chunk

        Returns:
            Chunks in increasing offset order; offsets locate the chunk text
            exactly in the normalized text
        """
        clean_text = normalize_text(text)
        length = len(clean_text)

        chunks: List[Chunk] = []
        start = 0

        while start < length:
            end = start + self.chunk_size

            if end < length:
                last_space = clean_text.rfind(" ", 0, end + 1)
                if last_space > start:
                    end = last_space
            else:
                end = length

            window = clean_text[start:end]
            chunk_text = window.strip()

            if len(chunk_text) > self.min_chunk_length:
                chunks.append(Chunk(
                    text=chunk_text,
                    source=source,
                    chunk_index=len(chunks),
                    # offset of the trimmed text, not of the raw window
                    char_start=start + len(window) - len(window.lstrip()),
                    char_end=start + len(window.rstrip())
                ))

            if end >= length:
                break

            next_start = end - self.chunk_overlap
            # Always make forward progress
            start = next_start if next_start > start else start + 1

        logger.debug(f"Split {source} ({length} chars) into {len(chunks)} chunks")
        return chunks

    def chunk_document(self, document: Document, source: Optional[str] = None) -> List[Chunk]:
        """
        Split a whole document and tag every chunk with its page number.

        Args:
            document: Extracted document
            source: Source identifier, defaults to the document's filename

        Returns:
            Chunks with page_number set to the page their char_start falls on
        """
        chunks = self.split(document.text, source or document.filename)
        self.assign_pages(chunks, document)
        logger.info(f"Created {len(chunks)} chunks from {document.filename}")
        return chunks

    @staticmethod
    def assign_pages(chunks: List[Chunk], document: Document) -> None:
        """
        Annotate chunks with 1-based page numbers.

        The normalized full text equals the normalized non-empty pages joined
        by single spaces, which gives each page a start offset.
        """
        page_starts: List[int] = []
        page_numbers: List[int] = []
        offset = 0
        for page in document.pages:
            page_text = normalize_text(page.text)
            if not page_text:
                continue
            page_starts.append(offset)
            page_numbers.append(page.page_number)
            offset += len(page_text) + 1

        if not page_starts:
            return

        for chunk in chunks:
            idx = bisect.bisect_right(page_starts, chunk.char_start) - 1
            chunk.page_number = page_numbers[max(idx, 0)]
