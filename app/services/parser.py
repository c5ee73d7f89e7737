# =============================================================================
# PDF Parser — Docling Document Intelligence
# =============================================================================
#
# Turns a PDF (a policy document, or an uploaded audit submission) into
# plain text for storage and question extraction.
#
# DESIGN DECISION: We iterate Docling items (not export_to_markdown())
# because we need the page number of every element. When the text is
# flattened, an explicit "Page N of M" line is written at the start of each
# page. The Page Segmenter splits stored policies on exactly those lines,
# so page labels come from provenance rather than from whatever footers
# the PDF happens to print. Docling's own page headers/footers are skipped
# to avoid duplicate markers.
#
# DESIGN DECISION: Our own dataclasses (ParsedElement, ParsedDocument)
# rather than Docling types downstream. Only this module imports Docling.
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from docling.datamodel.base_models import InputFormat
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption
from docling_core.types.doc.labels import DocItemLabel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class ParsedElement:
    """One paragraph, heading, list item or table from the PDF."""

    text: str
    page_number: int  # 1-indexed; 0 when Docling gave no provenance
    element_type: str  # "text", "table", or "heading"


@dataclass
class ParsedDocument:
    """All extracted elements in reading order, plus page count."""

    elements: list[ParsedElement] = field(default_factory=list)
    page_count: int = 0
    filename: str = ""

    def to_text(self, page_markers: bool = True) -> str:
        """
        Flatten to plain text, one blank line between elements.

        With page_markers, a "Page N of M" line opens every page.
        """
        parts: list[str] = []
        current_page = None
        for element in self.elements:
            if (
                page_markers
                and element.page_number > 0
                and element.page_number != current_page
            ):
                current_page = element.page_number
                parts.append(f"Page {current_page} of {self.page_count}")
            parts.append(element.text)
        return "\n\n".join(parts)


_TEXT_LABELS = (
    DocItemLabel.TEXT,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
)


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton
# ---------------------------------------------------------------------------
# Initialization loads ML models into memory (a few seconds on first use),
# so a single DocumentConverter is reused.
# ---------------------------------------------------------------------------

_converter: DocumentConverter | None = None


def _get_converter() -> DocumentConverter:
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )

        # Policy PDFs are often scanned; audit tools contain tables.
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = True

        _converter = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
        logger.info("Docling DocumentConverter initialized")
    return _converter


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_pdf(file_path: str | Path) -> ParsedDocument:
    """
    Parse a PDF file with Docling.

    Raises:
        FileNotFoundError: If the file does not exist.
        RuntimeError: If Docling fails to convert the document.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"PDF not found: {file_path}")

    logger.info("Parsing PDF: %s", path.name)
    converter = _get_converter()

    try:
        result = converter.convert(str(path))
    except Exception as exc:
        raise RuntimeError(
            f"Docling failed to parse '{path.name}': {exc}"
        ) from exc

    elements: list[ParsedElement] = []
    page_numbers_seen: set[int] = set()

    for item, _level in result.document.iterate_items():
        page_no = 0
        if hasattr(item, "prov") and item.prov:
            page_no = item.prov[0].page_no
        page_numbers_seen.add(page_no)

        label = getattr(item, "label", None)

        if label in (DocItemLabel.SECTION_HEADER, DocItemLabel.TITLE):
            element_type = "heading"
            text = getattr(item, "text", "").strip()
        elif label == DocItemLabel.TABLE:
            element_type = "table"
            text = _table_to_text(item, result.document)
        elif label in _TEXT_LABELS:
            element_type = "text"
            text = getattr(item, "text", "").strip()
        else:
            # Page headers/footers, pictures, formulas
            continue

        if text:
            elements.append(ParsedElement(
                text=text,
                page_number=page_no,
                element_type=element_type,
            ))

    page_count = max(page_numbers_seen) if page_numbers_seen - {0} else 0

    logger.info(
        "Parsed '%s': %d elements, %d pages",
        path.name, len(elements), page_count,
    )

    return ParsedDocument(
        elements=elements,
        page_count=page_count,
        filename=path.name,
    )


def _table_to_text(table_item: object, document: object) -> str:
    """
    Render a Docling TableItem as markdown.

    Falls back to the item's plain text if the export fails.
    """
    try:
        if hasattr(table_item, "export_to_markdown"):
            return table_item.export_to_markdown(doc=document).strip()
    except Exception as exc:
        logger.warning("Table export to markdown failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
