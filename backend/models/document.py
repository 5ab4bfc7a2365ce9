"""Document data models."""
from dataclasses import dataclass
from typing import List


@dataclass
class Page:
    """Represents a single page from a document."""
    page_number: int
    text: str
    word_count: int


@dataclass
class Document:
    """Represents an extracted PDF or plain-text document."""
    filename: str
    pages: List[Page]
    total_pages: int

    @property
    def text(self) -> str:
        """Full extracted text, pages separated by newlines."""
        return "\n".join(page.text for page in self.pages)
