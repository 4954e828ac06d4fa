"""
Exceptions raised by the statement parser.
"""


class ExtractionError(Exception):
    """The source document could not be read; no partial result exists."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
