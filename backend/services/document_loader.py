"""Document loading service for PDF and plain-text extraction."""
import logging
import os
from typing import List, Optional
import fitz  # PyMuPDF

from models.document import Document, Page
from services.errors import EmptyTextLayerError, ExtractionError, UnsupportedFormatError
from config import MIN_EXTRACTED_TEXT_LENGTH

logger = logging.getLogger(__name__)

SUPPORTED_KINDS = ("pdf", "txt")


def detect_file_kind(filename: str) -> str:
    """Return the lower-cased extension of filename without the dot."""
    return os.path.splitext(filename)[1].lstrip(".").lower()


class DocumentLoader:
    """Extracts text from PDF and plain-text files."""

    def __init__(self, min_text_length: int = MIN_EXTRACTED_TEXT_LENGTH):
        """
        Initialize DocumentLoader.

        Args:
            min_text_length: Extracted text shorter than this is treated as an
                empty text layer (typically an image-only scanned PDF)
        """
        self.min_text_length = min_text_length

    def load_file(self, filepath: str) -> Document:
        """
        Read a file from disk and extract its text.

        Args:
            filepath: Path to a .pdf or .txt file

        Returns:
            Document named after the file's base name

        Raises:
            FileNotFoundError: If the file does not exist
            ExtractionError: If the format is unsupported or no text layer is found
        """
        if not os.path.isfile(filepath):
            raise FileNotFoundError(f"File not found: {filepath}")

        filename = os.path.basename(filepath)
        with open(filepath, "rb") as f:
            data = f.read()

        return self.extract(data, detect_file_kind(filename), filename=filename)

    def extract(self, file_bytes: bytes, file_kind: str, filename: Optional[str] = None) -> Document:
        """
        Extract text from raw file bytes.

        Args:
            file_bytes: File content
            file_kind: "pdf" or "txt" (a leading dot is tolerated)
            filename: Name recorded on the returned document

        Returns:
            Document with one Page per PDF page (a single page for text files)

        Raises:
            UnsupportedFormatError: For unknown file kinds
            EmptyTextLayerError: If the extracted text is implausibly short
        """
        kind = (file_kind or "").lstrip(".").lower()
        filename = filename or f"document.{kind or 'bin'}"

        if kind == "txt":
            pages = [self._make_page(1, file_bytes.decode("utf-8", errors="replace"))]
        elif kind == "pdf":
            pages = self._extract_pdf_pages(file_bytes)
        else:
            raise UnsupportedFormatError(
                f"Unsupported file format: .{kind}. Use .pdf or .txt",
                provider_name="extractor"
            )

        document = Document(filename=filename, pages=pages, total_pages=len(pages))
        self.check_text_layer(document.text, filename)

        logger.info(f"Extracted {filename}: {document.total_pages} pages, {len(document.text)} characters")
        return document

    def check_text_layer(self, text: str, filename: str) -> None:
        """
        Reject text that is too short to come from a real text layer.

        Raises:
            EmptyTextLayerError: If text has fewer than min_text_length characters
        """
        if len(text.strip()) < self.min_text_length:
            logger.warning(f"{filename} has no usable text layer ({len(text.strip())} characters)")
            raise EmptyTextLayerError(
                f"{filename} appears to be a scanned image (empty text layer). "
                "Convert it to text with an OCR tool, save it as a .txt file "
                "and ingest that file instead.",
                provider_name="extractor"
            )

    def _extract_pdf_pages(self, file_bytes: bytes) -> List[Page]:
        """Extract text page-by-page from PDF bytes."""
        pages = []
        try:
            pdf_document = fitz.open(stream=file_bytes, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"Could not open PDF: {e}", provider_name="pymupdf") from e
        try:
            for page_num in range(len(pdf_document)):
                pages.append(self._make_page(page_num + 1, pdf_document[page_num].get_text()))
        finally:
            pdf_document.close()
        return pages

    @staticmethod
    def _make_page(page_number: int, text: str) -> Page:
        return Page(page_number=page_number, text=text, word_count=len(text.split()))
