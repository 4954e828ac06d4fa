"""
Template loading and detection.
"""
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List, Sequence, Union
import logging

from rapidfuzz import fuzz

from .loader import DocumentSource, extract_lines

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_ID = "wallet_statement_v1"


class TemplateDetector:
    """Detects which template matches a statement."""

    def __init__(self, templates_dir: Path = None):
        self.templates_dir = templates_dir or Path(__file__).parent.parent / "templates"
        self.templates = {}
        self._load_templates()

    def _load_templates(self):
        """Load all available templates."""
        if not self.templates_dir.exists():
            logger.warning(f"Templates directory not found: {self.templates_dir}")
            return

        for yaml_file in sorted(self.templates_dir.glob("*.yaml")):
            try:
                with open(yaml_file, 'r', encoding='utf-8') as f:
                    template_data = yaml.safe_load(f)
                template_id = template_data.get('template_id')
                if template_id:
                    self.templates[template_id] = template_data
                    logger.debug(f"Loaded template: {template_id}")
            except (OSError, yaml.YAMLError, AttributeError) as e:
                logger.error(f"Error loading template {yaml_file}: {e}")

    def detect_template(self, lines: Sequence[str]) -> Optional[str]:
        """
        Detect which template matches the statement lines.

        Args:
            lines: Preprocessed statement lines

        Returns:
            Template ID if found, None otherwise
        """
        if not lines:
            logger.error("No lines to match against templates")
            return None

        for template_id, template_config in self.templates.items():
            if self._matches_template(lines, template_config):
                logger.info(f"Statement matches template: {template_id}")
                return template_id

        logger.warning("No matching template found")
        return None

    def _matches_template(self, lines: Sequence[str], template_config: Dict[str, Any]) -> bool:
        """Check whether every required anchor appears on some line."""
        page_match = template_config.get('page_match', {})
        must_contain = page_match.get('must_contain', [])
        fuzzy_threshold = page_match.get('fuzzy_threshold', 85)

        if not must_contain:
            logger.warning("Template has no 'must_contain' requirements")
            return False

        found = [anchor for anchor in must_contain
                 if find_anchor(lines, anchor, fuzzy_threshold) is not None]
        logger.debug(f"Found {len(found)}/{len(must_contain)} required anchors")
        return len(found) == len(must_contain)

    def get_template(self, template_id: str) -> Optional[Dict[str, Any]]:
        """Get template configuration by ID."""
        return self.templates.get(template_id)

    def list_templates(self) -> List[str]:
        """List all available template IDs."""
        return list(self.templates.keys())


def find_anchor(lines: Sequence[str], target: str, fuzzy_threshold: float = 85) -> Optional[int]:
    """
    Find the index of the line best matching an anchor phrase.

    Args:
        lines: Lines to search through
        target: Target text to find
        fuzzy_threshold: Minimum confidence score (0-100)

    Returns:
        Line index if found, None otherwise
    """
    best_index = None
    best_confidence = 0
    target_lower = target.lower()

    for index, line in enumerate(lines):
        line_lower = line.lower()
        if target_lower in line_lower:
            return index

        confidence = fuzz.partial_ratio(target_lower, line_lower)
        if confidence > best_confidence and confidence >= fuzzy_threshold:
            best_confidence = confidence
            best_index = index

    return best_index


def detect_template(source: Union[Sequence[str], DocumentSource]) -> Optional[str]:
    """
    Convenience function to detect the template of a statement.

    Args:
        source: Preprocessed lines, a PDF path or raw PDF bytes

    Returns:
        Template ID if found, None otherwise
    """
    if isinstance(source, (str, Path, bytes, bytearray)):
        lines = extract_lines(source)
    else:
        lines = list(source)
    return TemplateDetector().detect_template(lines)
