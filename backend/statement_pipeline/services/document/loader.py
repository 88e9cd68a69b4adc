"""Document loader: one OCR pass per source file, pages built lazily on demand."""

import asyncio
import logging
import re
from pathlib import Path

from google.cloud import documentai

from statement_pipeline.config import settings
from statement_pipeline.exceptions import CONFIGURATION_ERRORS, OCR_ERRORS, TRANSPORT_ERRORS
from statement_pipeline.services.document import ocr
from statement_pipeline.services.document.cache import OCRCache, content_hash
from statement_pipeline.services.document.models import (
    ExtractionTemplate,
    ProcessedPage,
    ProcessedTable,
)
from statement_pipeline.services.document.page_builder import build_page
from statement_pipeline.services.document.templates import TemplateResult, extract_template

logger = logging.getLogger(__name__)


class DocumentLoader:
    """
    Owns the raw OCR document and the page cache for one parse session.

    Parsers borrow the loader through its read-only accessors; nothing here is
    shared across documents.
    """

    def __init__(self, cache: OCRCache | None = None):
        self.cache = cache or OCRCache(settings.ocr_cache_dir)
        self.document: documentai.Document | None = None
        self.document_hash: str | None = None
        self.source_path: str | None = None
        self.mime_type: str | None = None
        self._pages: dict[int, ProcessedPage] = {}

    async def load(self, source_path: str, mime_type: str, processor_hint: str | None = None) -> bool:
        """
        Obtain OCR output for a local file, from the disk cache when possible.

        Returns False (never raises) when the processor is not configured, the
        file cannot be read, or the OCR service fails or returns nothing. A
        failed cache write is only logged: the OCR result is still usable.
        """
        logger.info(f"Loading document {source_path} ({mime_type})")

        processor_id = processor_hint or settings.default_processor_id
        if not processor_id:
            logger.error("No Document AI processor ID available. Check your environment variables.")
            return False

        try:
            loop = asyncio.get_event_loop()
            content = await loop.run_in_executor(None, Path(source_path).read_bytes)
        except OSError as e:
            logger.error(f"Failed to read source document {source_path}: {e}")
            return False

        self.source_path = source_path
        self.mime_type = mime_type
        self.document_hash = content_hash(content)
        self.document = None
        self._pages.clear()

        cached = await self.cache.get(self.document_hash, processor_id)
        if cached is not None:
            self.document = cached
            return True

        try:
            document = await ocr.process_document(content, mime_type, processor_id)
        except CONFIGURATION_ERRORS as e:
            logger.error(f"Document AI is not configured: {e}")
            return False
        except OCR_ERRORS + TRANSPORT_ERRORS as e:
            logger.error(f"Document AI processing failed: {e}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error processing document: {e}")
            return False

        self.document = document
        await self.cache.put(self.document_hash, processor_id, document)

        logger.info(f"Processed document with {self.page_count} pages")
        return True

    @property
    def page_count(self) -> int:
        if self.document is None:
            return 0
        return len(self.document.pages)

    @property
    def document_text(self) -> str:
        if self.document is None:
            return ""
        return self.document.text or ""

    def process_page(self, page_number: int) -> ProcessedPage | None:
        """Build (or return the cached) model of a 1-based page."""
        if self.document is None:
            logger.error("No document loaded. Call load() first.")
            return None

        if page_number < 1 or page_number > self.page_count:
            logger.error(
                f"Page {page_number} is out of bounds. Document has {self.page_count} pages."
            )
            return None

        if page_number in self._pages:
            return self._pages[page_number]

        page = build_page(page_number, self.document.pages[page_number - 1], self.document_text)
        logger.info(f"Detected {len(page.tables)} tables on page {page_number}")

        self._pages[page_number] = page
        return page

    def process_page_range(self, start_page: int, end_page: int) -> list[ProcessedPage]:
        """Process pages start..end inclusive, skipping any that fail."""
        pages = []
        for page_number in range(start_page, end_page + 1):
            page = self.process_page(page_number)
            if page:
                pages.append(page)
        return pages

    def find_first_page_matching(self, pattern: str) -> int | None:
        """First page whose text blocks match pattern (case-insensitive)."""
        if self.document is None:
            logger.error("No document loaded. Call load() first.")
            return None

        regex = re.compile(pattern, re.IGNORECASE)
        for page_number in range(1, self.page_count + 1):
            page = self.process_page(page_number)
            if not page:
                continue
            if any(regex.search(block.text) for block in page.text_blocks):
                return page_number

        return None

    def find_tables(
        self, page_number: int, required_headers: list[str] | None = None
    ) -> list[ProcessedTable]:
        """Tables on a page whose header cells contain every required term."""
        page = self.process_page(page_number)
        if not page:
            return []

        if not required_headers:
            return list(page.tables)

        matching = []
        for table in page.tables:
            lower_headers = [header.lower() for header in table.header_cells]
            if all(
                any(required.lower() in header for header in lower_headers)
                for required in required_headers
            ):
                matching.append(table)
        return matching

    def extract_using_template(
        self, page_number: int, template: ExtractionTemplate
    ) -> TemplateResult | None:
        """Template extraction memoized per (page, template id)."""
        page = self.process_page(page_number)
        if not page:
            return None

        if template.id in page.extracted_data:
            logger.debug(f"Using cached extraction for template {template.id} on page {page_number}")
            return page.extracted_data[template.id]

        result = extract_template(page, template)
        page.extracted_data[template.id] = result
        return result

    def clear_page_cache(self, page_number: int) -> None:
        self._pages.pop(page_number, None)

    def clear_all_caches(self) -> None:
        self._pages.clear()
