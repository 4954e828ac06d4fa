"""
Debug overlay tool for visual QA of line recognition.
"""
from pathlib import Path
from typing import Dict, List, Tuple
import logging
from PIL import Image, ImageDraw, ImageFont
import fitz  # PyMuPDF

from ..core.loader import PDFLoader, preprocess_lines
from ..core.runner import StatementExtractor

logger = logging.getLogger(__name__)

ZOOM = 2.0

RULE_COLOURS: Dict[str, Tuple[int, int, int, int]] = {
    'transaction': (0, 200, 0, 200),
    'date_heading': (0, 150, 255, 200),
}
FIELD_COLOUR = (255, 0, 0, 200)


def _load_font(size: int):
    try:
        return ImageFont.truetype("arial.ttf", size)
    except OSError:
        return ImageFont.load_default()


class DebugOverlay:
    """Creates page images with every recognised line boxed and labelled."""

    def __init__(self, pdf_path: Path, template_id: str):
        self.pdf_path = pdf_path
        self.template_id = template_id
        self.extractor = StatementExtractor(template_id)

        # Load PDF with PyMuPDF for rendering
        self.pdf_doc = fitz.open(str(pdf_path))

        self.loader = PDFLoader(pdf_path)
        try:
            self.page_texts = self.loader.load()
        except Exception:
            self.pdf_doc.close()
            raise

    def create_overlays(self, output_dir: Path) -> List[Path]:
        """
        Create debug overlay images for all pages.

        Args:
            output_dir: Directory to save overlay images

        Returns:
            Paths of the written images
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        written = []

        for page_num, page_text in enumerate(self.page_texts, 1):
            pdf_page = self.pdf_doc[page_num - 1]
            pix = pdf_page.get_pixmap(matrix=fitz.Matrix(ZOOM, ZOOM))
            img = Image.frombytes("RGB", [pix.width, pix.height], pix.samples)

            lines = preprocess_lines(page_text)
            labels = self.extractor.classify(lines)
            overlay = self._create_page_overlay(pdf_page, lines, labels, img.size)

            combined = Image.alpha_composite(img.convert("RGBA"), overlay)
            output_path = output_dir / f"page_{page_num:02d}_overlay.png"
            combined.save(output_path)
            written.append(output_path)
            logger.info(f"Created overlay: {output_path}")

        return written

    def _create_page_overlay(self, pdf_page, lines: List[str], labels: List[List[str]],
                             img_size: Tuple[int, int]) -> Image.Image:
        """Draw a box around each line that triggered at least one rule."""
        overlay = Image.new("RGBA", img_size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        font = _load_font(10)

        for line, rule_names in zip(lines, labels):
            if not rule_names:
                continue

            colour = RULE_COLOURS.get(rule_names[-1], FIELD_COLOUR)
            rects = pdf_page.search_for(line)
            if not rects:
                logger.debug(f"Line not located on page {pdf_page.number + 1}: {line}")
                continue

            for rect in rects:
                box = [int(rect.x0 * ZOOM), int(rect.y0 * ZOOM),
                       int(rect.x1 * ZOOM), int(rect.y1 * ZOOM)]
                draw.rectangle(box, outline=colour, width=2)
            first = rects[0]
            draw.text((int(first.x0 * ZOOM), int(first.y0 * ZOOM) - 12),
                      ", ".join(rule_names), fill=colour, font=font)

        return overlay

    def close(self):
        """Close resources."""
        self.loader.close()
        self.pdf_doc.close()


def create_debug_overlay(pdf_path: Path, template_id: str, output_dir: Path) -> List[Path]:
    """
    Create debug overlay images for a PDF.

    Args:
        pdf_path: Path to PDF file
        template_id: Template ID to use
        output_dir: Directory to save overlay images
    """
    overlay = DebugOverlay(pdf_path, template_id)
    try:
        return overlay.create_overlays(output_dir)
    finally:
        overlay.close()
