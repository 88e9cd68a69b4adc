"""OCR document services (loading, page models, templates, table reconstruction)."""

from statement_pipeline.services.document.cache import OCRCache, content_hash
from statement_pipeline.services.document.loader import DocumentLoader
from statement_pipeline.services.document.models import (
    BoundaryOptions,
    BoundingBox,
    BoundingConstraints,
    ExtractionPattern,
    ExtractionTemplate,
    ProcessedPage,
    ProcessedTable,
    ReconstructedTable,
    TemplateMatch,
    TextBlock,
)
from statement_pipeline.services.document.tables import TableReconstructor, cluster_rows

__all__ = [
    # Loading
    "DocumentLoader",
    "OCRCache",
    "content_hash",
    # Models
    "BoundaryOptions",
    "BoundingBox",
    "BoundingConstraints",
    "ExtractionPattern",
    "ExtractionTemplate",
    "ProcessedPage",
    "ProcessedTable",
    "ReconstructedTable",
    "TemplateMatch",
    "TextBlock",
    # Tables
    "TableReconstructor",
    "cluster_rows",
]
