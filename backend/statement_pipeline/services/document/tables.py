"""Geometric table reconstruction from positioned text blocks.

The OCR service's own table cells are unreliable for multi-column financial
tables with uneven row heights, so rows are rebuilt from raw block positions:
blocks are clustered into rows by vertical proximity, ordered left to right
within a row, and the region of interest is bounded by anchor phrases that
banks print around each section.
"""

import logging

from statement_pipeline.config import settings
from statement_pipeline.enums import BoundaryMode
from statement_pipeline.services.document.loader import DocumentLoader
from statement_pipeline.services.document.models import (
    BoundaryOptions,
    BoundingConstraints,
    ProcessedTable,
    ReconstructedTable,
    TextBlock,
)

logger = logging.getLogger(__name__)

# Column header terms expected on the row right after a transaction section title
TRANSACTION_HEADER_KEYWORDS = ("date", "description", "transaction description", "amount")

MIN_CELLS_GENERIC = 2
MIN_CELLS_TRANSACTION = 1


def cluster_rows(blocks: list[TextBlock], threshold: float) -> list[list[TextBlock]]:
    """
    Group blocks into rows in a single greedy pass over vertical centers.

    A block joins the current row unless its center lies more than threshold
    below the previous block's center.
    """
    ordered = sorted(blocks, key=lambda block: block.bounding_box.center_y)

    rows: list[list[TextBlock]] = []
    current: list[TextBlock] = []
    last_y: float | None = None

    for block in ordered:
        center_y = block.bounding_box.center_y
        if last_y is not None and center_y - last_y > threshold and current:
            rows.append(current)
            current = []
        current.append(block)
        last_y = center_y

    if current:
        rows.append(current)

    return rows


def row_center_y(row: list[TextBlock]) -> float:
    return sum(block.bounding_box.center_y for block in row) / len(row)


def row_cells(row: list[TextBlock]) -> list[str]:
    """Cell texts of a row, left to right."""
    return [block.text for block in sorted(row, key=lambda block: block.bounding_box.center_x)]


def row_text(row: list[TextBlock]) -> str:
    return " ".join(block.text for block in row)


def within_bounds(
    center_y: float,
    y1: float | None,
    y2: float | None,
    options: BoundaryOptions,
) -> bool:
    """Whether a vertical center passes the top and bottom bounds under their modes."""
    if y1 is not None:
        if options.top_mode == BoundaryMode.INCLUSIVE:
            if center_y < y1:
                return False
        elif center_y <= y1:
            return False

    if y2 is not None:
        if options.bottom_mode == BoundaryMode.INCLUSIVE:
            if center_y > y2:
                return False
        elif center_y >= y2:
            return False

    return True


class TableReconstructor:
    """Rebuilds table grids for pages held by a DocumentLoader."""

    def __init__(
        self,
        loader: DocumentLoader,
        row_threshold: float | None = None,
        header_min_keywords: int | None = None,
    ):
        self.loader = loader
        self.row_threshold = (
            row_threshold if row_threshold is not None else settings.row_proximity_threshold
        )
        self.header_min_keywords = (
            header_min_keywords
            if header_min_keywords is not None
            else settings.transaction_header_min_keywords
        )

    def reconstruct_table(
        self,
        page_number: int,
        table: ProcessedTable | None,
        constraints: BoundingConstraints | None = None,
        options: BoundaryOptions | None = None,
    ) -> ReconstructedTable | None:
        """
        Rebuild a generic table (e.g. an account summary) on a page.

        Anchors resolve to the first block containing the phrase. An anchor
        that cannot be found only drops that bound; all other blocks are kept.
        Blocks are filtered by their own centers before row clustering, and
        rows with fewer than two cells are discarded as noise.
        """
        page = self.loader.process_page(page_number)
        if not page:
            return None

        constraints = constraints or BoundingConstraints()
        options = options or BoundaryOptions()
        y1, y2 = constraints.y1, constraints.y2

        if constraints.top_anchor:
            top_block = _find_block(page.text_blocks, constraints.top_anchor)
            if top_block:
                y1 = top_block.bounding_box.y1 if options.include_anchors else top_block.bounding_box.y2
            else:
                logger.info(f"Top anchor '{constraints.top_anchor}' not found on page {page_number}")

        if constraints.bottom_anchor:
            bottom_block = _find_block(page.text_blocks, constraints.bottom_anchor)
            if bottom_block:
                y2 = bottom_block.bounding_box.y2 if options.include_anchors else bottom_block.bounding_box.y1
            else:
                logger.info(
                    f"Bottom anchor '{constraints.bottom_anchor}' not found on page {page_number}"
                )

        blocks = [
            block
            for block in page.text_blocks
            if within_bounds(block.bounding_box.center_y, y1, y2, options)
        ]

        rows = [
            row_cells(row)
            for row in cluster_rows(blocks, self.row_threshold)
            if len(row) >= MIN_CELLS_GENERIC
        ]

        return ReconstructedTable(headers=list(table.header_cells) if table else [], rows=rows)

    def reconstruct_transaction_table(
        self,
        page_number: int,
        table: ProcessedTable | None,
        constraints: BoundingConstraints | None = None,
        options: BoundaryOptions | None = None,
    ) -> ReconstructedTable | None:
        """
        Rebuild a transaction table bounded by a section title and its total line.

        The whole page is clustered into rows first. The top anchor is only
        accepted on a row whose text together with the following row carries
        enough column-header keywords, which tells a section title apart from
        the same phrase used elsewhere (e.g. in the account summary). The
        bottom anchor is searched below the accepted top row. Returns None if
        either requested anchor cannot be resolved.
        """
        page = self.loader.process_page(page_number)
        if not page:
            return None

        constraints = constraints or BoundingConstraints()
        options = options or BoundaryOptions()
        y1, y2 = constraints.y1, constraints.y2

        rows = cluster_rows(page.text_blocks, self.row_threshold)

        search_from = 0
        if constraints.top_anchor:
            anchor_index = self._find_section_title_row(rows, constraints.top_anchor)
            if anchor_index is None:
                logger.info(
                    f"No section title row for '{constraints.top_anchor}' on page {page_number}"
                )
                return None
            top_row = rows[anchor_index]
            y1 = _mean_y1(top_row) if options.include_anchors else _mean_y2(top_row)
            search_from = anchor_index + 1

        if constraints.bottom_anchor:
            phrase = constraints.bottom_anchor.lower()
            bottom_row = next(
                (row for row in rows[search_from:] if phrase in row_text(row).lower()),
                None,
            )
            if bottom_row is None:
                logger.info(
                    f"Bottom anchor '{constraints.bottom_anchor}' not found on page {page_number}"
                )
                return None
            y2 = _mean_y2(bottom_row) if options.include_anchors else _mean_y1(bottom_row)

        kept = [
            row_cells(row)
            for row in rows
            if within_bounds(row_center_y(row), y1, y2, options)
            and len(row) >= MIN_CELLS_TRANSACTION
        ]

        return ReconstructedTable(headers=list(table.header_cells) if table else [], rows=kept)

    def _find_section_title_row(self, rows: list[list[TextBlock]], anchor: str) -> int | None:
        phrase = anchor.lower()
        for index, row in enumerate(rows[:-1]):
            text = row_text(row).lower()
            if phrase not in text:
                continue

            combined = f"{text} {row_text(rows[index + 1]).lower()}"
            matched = sum(1 for keyword in TRANSACTION_HEADER_KEYWORDS if keyword in combined)
            if matched >= self.header_min_keywords:
                return index

            logger.debug(f"Row {index} contains '{anchor}' but is not followed by column headers")
        return None


def _find_block(blocks: list[TextBlock], phrase: str) -> TextBlock | None:
    phrase = phrase.lower()
    return next((block for block in blocks if phrase in block.text.lower()), None)


def _mean_y1(row: list[TextBlock]) -> float:
    return sum(block.bounding_box.y1 for block in row) / len(row)


def _mean_y2(row: list[TextBlock]) -> float:
    return sum(block.bounding_box.y2 for block in row) / len(row)
