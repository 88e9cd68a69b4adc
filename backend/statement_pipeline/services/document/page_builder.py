"""Convert raw Document AI pages into ProcessedPage models."""

import logging

from google.cloud import documentai

from statement_pipeline.services.document.models import (
    BoundingBox,
    ProcessedPage,
    ProcessedTable,
    TextBlock,
)

logger = logging.getLogger(__name__)


def layout_text(layout: documentai.Document.Page.Layout, document_text: str) -> str:
    """Concatenate, in order, every slice of the document text the layout points at."""
    return "".join(
        document_text[int(segment.start_index or 0) : int(segment.end_index or 0)]
        for segment in layout.text_anchor.text_segments
    )


def layout_box(layout: documentai.Document.Page.Layout) -> BoundingBox | None:
    """Bounding box from the first and third normalized vertices, or None if incomplete."""
    vertices = layout.bounding_poly.normalized_vertices
    if len(vertices) < 4:
        return None
    return BoundingBox(
        x1=vertices[0].x or 0.0,
        y1=vertices[0].y or 0.0,
        x2=vertices[2].x or 1.0,
        y2=vertices[2].y or 1.0,
    )


def build_text_blocks(page: documentai.Document.Page, document_text: str) -> list[TextBlock]:
    """
    Extract positioned text blocks from a page.

    Paragraphs carry more coherent spans than tokens, so tokens are only used
    when the page has no paragraphs at all. Units without a text anchor or a
    complete bounding polygon are skipped.
    """
    units = page.paragraphs if len(page.paragraphs) > 0 else page.tokens

    blocks: list[TextBlock] = []
    for unit in units:
        if not unit.layout.text_anchor.text_segments:
            continue
        box = layout_box(unit.layout)
        if box is None:
            continue
        blocks.append(TextBlock(text=layout_text(unit.layout, document_text), bounding_box=box))

    return blocks


def build_tables(page: documentai.Document.Page, document_text: str) -> list[ProcessedTable]:
    """Describe OCR-detected tables by their first header row and body row count."""
    tables: list[ProcessedTable] = []
    for index, table in enumerate(page.tables):
        header_cells: list[str] = []
        if table.header_rows:
            for cell in table.header_rows[0].cells:
                text = layout_text(cell.layout, document_text).strip()
                if text:
                    header_cells.append(text)

        tables.append(
            ProcessedTable(
                table_index=index,
                header_cells=header_cells,
                row_count=len(table.body_rows),
            )
        )
    return tables


def build_page(
    page_number: int, page: documentai.Document.Page, document_text: str
) -> ProcessedPage:
    """Build the normalized model for one page (1-based page_number)."""
    text_blocks = build_text_blocks(page, document_text)
    tables = build_tables(page, document_text)

    full_text = layout_text(page.layout, document_text)
    if not full_text:
        full_text = "\n".join(block.text for block in text_blocks)

    logger.debug(
        f"Built page {page_number}: {len(text_blocks)} text blocks, {len(tables)} tables"
    )

    return ProcessedPage(
        page_number=page_number,
        text_blocks=text_blocks,
        tables=tables,
        full_text=full_text,
    )
