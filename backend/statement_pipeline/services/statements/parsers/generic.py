import logging

from statement_pipeline.services.document import DocumentLoader
from statement_pipeline.services.statements.models import ProcessedStatementData
from statement_pipeline.services.statements.parsers.base import BankStatementParser

logger = logging.getLogger(__name__)


class GenericStatementParser(BankStatementParser):
    """Fallback for institutions without a layout-aware parser: base data only."""

    def __init__(
        self,
        source_path: str,
        mime_type: str,
        bank_name: str,
        loader: DocumentLoader | None = None,
        processor_id: str | None = None,
    ):
        super().__init__(source_path, mime_type, loader, processor_id)
        self.bank_name = bank_name

    async def process(self) -> ProcessedStatementData:
        logger.info(f"Processing generic statement for: {self.bank_name}")
        if not await self.ensure_document():
            logger.error(f"Failed to load document for {self.bank_name}")
        return self.create_base_data()
