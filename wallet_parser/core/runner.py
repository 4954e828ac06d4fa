"""
End-to-end parsing orchestration.
"""
from typing import List, Sequence
import logging

from .detectors import DEFAULT_TEMPLATE_ID, TemplateDetector
from .loader import DocumentSource, extract_lines, preprocess_lines
from .rules import ScanState, build_rules
from ..models.schema import ExtractionResult, StatementRecord

logger = logging.getLogger(__name__)


class StatementExtractor:
    """Scans statement lines once and assembles the statement record."""

    def __init__(self, template_id: str = DEFAULT_TEMPLATE_ID, verbose: bool = False):
        self.template_id = template_id
        self.verbose = verbose

        # Load template
        detector = TemplateDetector()
        self.template = detector.get_template(template_id)
        if not self.template:
            raise ValueError(f"Template not found: {template_id}")

        self.rules = build_rules(self.template)

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def extract(self, lines: Sequence[str]) -> ExtractionResult:
        """
        Run every rule against every line in a single forward pass.

        Args:
            lines: Preprocessed statement lines

        Returns:
            ExtractionResult with the statement and any line failures
        """
        lines = list(lines)
        state = ScanState()

        for index, line in enumerate(lines):
            for rule in self.rules:
                if rule.matches(line):
                    rule.apply(state, lines, index)

        statement = state.to_statement()
        logger.info(
            f"Extracted {len(statement.transactions)} transactions "
            f"({len(state.failures)} failed) from {len(lines)} lines"
        )
        return ExtractionResult(
            template_id=self.template_id,
            statement=statement,
            failures=state.failures
        )

    def classify(self, lines: Sequence[str]) -> List[List[str]]:
        """Names of the rules each line triggers."""
        return [[rule.name for rule in self.rules if rule.matches(line)] for line in lines]


def parse_lines(lines: Sequence[str], template_id: str = DEFAULT_TEMPLATE_ID) -> StatementRecord:
    """
    Parse preprocessed statement lines.

    Args:
        lines: Ordered, trimmed, non-empty lines
        template_id: Template ID to use

    Returns:
        StatementRecord object
    """
    return StatementExtractor(template_id).extract(lines).statement


def parse_text(text: str, template_id: str = DEFAULT_TEMPLATE_ID) -> StatementRecord:
    """Parse the raw text of a statement."""
    return parse_lines(preprocess_lines(text), template_id)


def extract_statement(source: DocumentSource, template_id: str = DEFAULT_TEMPLATE_ID,
                      verbose: bool = False) -> ExtractionResult:
    """
    Parse a wallet statement PDF, keeping line diagnostics.

    Args:
        source: Path to PDF file or raw PDF bytes
        template_id: Template ID to use
        verbose: Enable verbose logging

    Returns:
        ExtractionResult object

    Raises:
        ExtractionError: the document could not be read
    """
    extractor = StatementExtractor(template_id, verbose)
    return extractor.extract(extract_lines(source))


def parse_statement(source: DocumentSource, template_id: str = DEFAULT_TEMPLATE_ID,
                    verbose: bool = False) -> StatementRecord:
    """
    Parse a wallet statement PDF.

    Args:
        source: Path to PDF file or raw PDF bytes
        template_id: Template ID to use
        verbose: Enable verbose logging

    Returns:
        StatementRecord object
    """
    return extract_statement(source, template_id, verbose).statement
