"""Data models for OCR page reconstruction."""

import re
from dataclasses import dataclass, field

from statement_pipeline.enums import BoundaryMode, ExtractionType


@dataclass(frozen=True)
class BoundingBox:
    """Normalized (0..1) rectangle locating a text unit on the page image."""

    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def center_x(self) -> float:
        return (self.x1 + self.x2) / 2

    @property
    def center_y(self) -> float:
        return (self.y1 + self.y2) / 2

    def to_dict(self) -> dict:
        return {"x1": self.x1, "y1": self.y1, "x2": self.x2, "y2": self.y2}


@dataclass(frozen=True)
class TextBlock:
    """One OCR paragraph (or token) with its position."""

    text: str
    bounding_box: BoundingBox


@dataclass
class ProcessedTable:
    """Coarse descriptor of a table found by the OCR service's own detector.

    Cell contents are not kept; they are re-derived from text-block geometry.
    """

    table_index: int
    header_cells: list[str]
    row_count: int


@dataclass
class ProcessedPage:
    """Normalized view of a single page, memoizing template extractions."""

    page_number: int
    text_blocks: list[TextBlock]
    tables: list[ProcessedTable]
    full_text: str
    extracted_data: dict[str, dict[ExtractionType, list["TemplateMatch"]]] = field(
        default_factory=dict
    )


@dataclass(frozen=True)
class ExtractionPattern:
    """A regex rule producing candidate values of one extraction type."""

    regex: re.Pattern
    type: ExtractionType
    group_index: int | None = None


@dataclass(frozen=True)
class ExtractionTemplate:
    """Named, immutable bundle of extraction patterns shared across documents."""

    id: str
    patterns: tuple[ExtractionPattern, ...]


@dataclass(frozen=True)
class TemplateMatch:
    """A pattern hit: captured value plus the block it came from."""

    value: str
    text: str
    position: BoundingBox


@dataclass
class BoundingConstraints:
    """Vertical limits of a table, by anchor phrase or explicit coordinate."""

    top_anchor: str | None = None
    bottom_anchor: str | None = None
    y1: float | None = None
    y2: float | None = None


@dataclass(frozen=True)
class BoundaryOptions:
    top_mode: BoundaryMode = BoundaryMode.INCLUSIVE
    bottom_mode: BoundaryMode = BoundaryMode.INCLUSIVE
    include_anchors: bool = False


@dataclass
class ReconstructedTable:
    """Grid of cell texts rebuilt from block geometry."""

    headers: list[str]
    rows: list[list[str]]
