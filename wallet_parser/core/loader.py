"""
PDF loading and line extraction using pdfplumber.
"""
import io
import pdfplumber
from pathlib import Path
from typing import List, Union
import logging

from .errors import ExtractionError

logger = logging.getLogger(__name__)

DocumentSource = Union[str, Path, bytes]

LIGATURES = {
    'ﬁ': 'fi',
    'ﬂ': 'fl',
    'ﬀ': 'ff',
    'ﬃ': 'ffi',
    'ﬄ': 'ffl',
    'ﬆ': 'st',
    'ﬅ': 'st'
}


def preprocess_lines(text: str) -> List[str]:
    """
    Split raw extracted text into trimmed, non-empty lines.

    Args:
        text: Text blob produced by document text extraction

    Returns:
        Ordered list of lines with blank lines removed
    """
    if not text:
        return []

    lines = []
    for raw_line in text.split("\n"):
        line = raw_line.strip().strip("\ufeff").strip()
        if line:
            lines.append(line)
    return lines


class PDFLoader:
    """Handles PDF loading and text extraction."""

    def __init__(self, source: DocumentSource):
        self.source = source
        self._pdf = None
        self._pages = []

    def _open(self):
        if isinstance(self.source, (bytes, bytearray)):
            return pdfplumber.open(io.BytesIO(self.source))
        return pdfplumber.open(Path(self.source))

    def load(self) -> List[str]:
        """Load the PDF and extract the text of every page, in order."""
        if self._pages:
            return self._pages

        try:
            self._pdf = self._open()
            logger.info(f"Loaded PDF with {len(self._pdf.pages)} pages")

            for i, page in enumerate(self._pdf.pages, 1):
                text = self._normalize_text(page.extract_text() or "")
                self._pages.append(text)
                logger.debug(f"Page {i}: {len(text)} characters extracted")

            return self._pages

        except Exception as e:
            logger.error(f"Error loading PDF: {e}")
            self.close()
            raise ExtractionError(f"Failed to parse PDF: {e}") from e

    def _normalize_text(self, text: str) -> str:
        """Replace typographic ligatures with their plain letters."""
        for ligature, replacement in LIGATURES.items():
            text = text.replace(ligature, replacement)
        return text

    def text(self) -> str:
        """Full document text with pages joined by newlines."""
        return "\n".join(self.load())

    def lines(self) -> List[str]:
        """Preprocessed lines of the whole document."""
        return preprocess_lines(self.text())

    def close(self):
        """Close the PDF file."""
        if self._pdf:
            self._pdf.close()
            self._pdf = None


def extract_lines(source: DocumentSource) -> List[str]:
    """
    Extract the preprocessed lines of a PDF document.

    Args:
        source: Path to a PDF file or the raw document bytes

    Returns:
        Ordered list of non-empty trimmed lines
    """
    loader = PDFLoader(source)
    try:
        return loader.lines()
    finally:
        loader.close()
