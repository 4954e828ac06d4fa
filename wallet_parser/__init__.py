"""
Wallet Statement Parser

A line-oriented PDF parser for NGN wallet statements: pdfplumber turns the
document into text lines and a single forward scan recovers the account
metadata and the transaction list.
"""

__version__ = "1.0.0"
__author__ = "Wallet Parser Developers"

from .core.runner import (
    StatementExtractor, parse_statement, extract_statement, parse_lines, parse_text,
)
from .core.detectors import detect_template
from .core.errors import ExtractionError
from .core.loader import preprocess_lines, extract_lines
from .models.schema import StatementRecord, TransactionRecord, LineFailure, ExtractionResult

__all__ = [
    "StatementExtractor",
    "parse_statement",
    "extract_statement",
    "parse_lines",
    "parse_text",
    "detect_template",
    "preprocess_lines",
    "extract_lines",
    "ExtractionError",
    "StatementRecord",
    "TransactionRecord",
    "LineFailure",
    "ExtractionResult"
]
