"""Top-level statement processing: load, detect the bank, dispatch to a parser."""

import logging
from dataclasses import dataclass

import httpx

from statement_pipeline.exceptions import SourceFetchError
from statement_pipeline.services.document import DocumentLoader
from statement_pipeline.services.statements.account_extractor import extract_financial_institution
from statement_pipeline.services.statements.models import ProcessedStatementData
from statement_pipeline.services.statements.parsers import GenericStatementParser, create_parser, detect_bank
from statement_pipeline.services.statements.source import local_source

logger = logging.getLogger(__name__)

UNKNOWN_BANK = "Unknown"


@dataclass
class ProcessUploadResult:
    success: bool
    data: ProcessedStatementData | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "error": self.error,
        }


async def process_statement(
    source_path: str,
    mime_type: str,
    processor_id: str | None = None,
    loader: DocumentLoader | None = None,
) -> ProcessedStatementData | None:
    """
    Parse a local statement file.

    Returns None when the document cannot be loaded (OCR unavailable,
    misconfigured or unreadable source); otherwise the selected parser's
    result, which may be partial.
    """
    logger.info(f"Processing statement: {source_path}, MIME Type: {mime_type}")

    loader = loader or DocumentLoader()
    if not await loader.load(source_path, mime_type, processor_id):
        logger.error("Document processing failed.")
        return None

    first_page = loader.process_page(1)
    if not first_page:
        logger.error("Failed to process the first page")
        return None

    bank_name = detect_bank(first_page)
    if bank_name:
        logger.info(f"Detected bank: {bank_name}")
        parser = create_parser(bank_name, source_path, mime_type, loader, processor_id)
    else:
        # A name found anywhere in the text only labels the result
        bank_name = extract_financial_institution(loader.document_text) or UNKNOWN_BANK
        logger.warning(f"Could not identify the bank from page 1, using: {bank_name}")
        parser = GenericStatementParser(source_path, mime_type, bank_name, loader, processor_id)

    return await parser.process()


async def process_uploaded_file(
    source: str,
    mime_type: str,
    processor_id: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> ProcessUploadResult:
    """Process a local path or URL; every failure becomes an unsuccessful result."""
    logger.info(f"Processing uploaded file: {source} ({mime_type})")

    try:
        async with local_source(source, mime_type, client) as path:
            data = await process_statement(path, mime_type, processor_id)
    except SourceFetchError as e:
        logger.error(f"Source unavailable: {e}")
        return ProcessUploadResult(success=False, error=str(e))
    except Exception as e:
        logger.exception(f"Error during statement processing: {e}")
        return ProcessUploadResult(success=False, error=f"Error during statement processing: {e}")

    if data is None:
        return ProcessUploadResult(
            success=False,
            error="Document AI processing failed or returned no data. Check server logs.",
        )

    missing = data.missing_fields()
    if missing:
        logger.warning(f"Statement processed with missing fields: {', '.join(missing)}")

    logger.info(f"Successfully processed document. Raw text length: {len(data.raw_text)}")
    return ProcessUploadResult(success=True, data=data)
