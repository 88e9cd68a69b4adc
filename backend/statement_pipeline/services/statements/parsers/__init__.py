"""Bank detection and parser dispatch."""

import re

from statement_pipeline.services.document import DocumentLoader, ProcessedPage
from statement_pipeline.services.statements.parsers.bank_of_america import BankOfAmericaStatementParser
from statement_pipeline.services.statements.parsers.base import (
    BankStatementParser,
    TransactionSection,
    compute_page_ranges,
    extract_amount,
)
from statement_pipeline.services.statements.parsers.chase import ChaseStatementParser
from statement_pipeline.services.statements.parsers.generic import GenericStatementParser

# Checked in order against page 1 text blocks
BANK_PATTERNS = (
    ("Bank of America", re.compile(r"bank\s+of\s+america|bankofamerica|bofa", re.IGNORECASE)),
    ("Chase", re.compile(r"\bchase\b|jpmorgan", re.IGNORECASE)),
    ("Wells Fargo", re.compile(r"wells\s+fargo", re.IGNORECASE)),
    ("Citibank", re.compile(r"\bciti(?:bank)?\b", re.IGNORECASE)),
    ("Capital One", re.compile(r"capital\s+one", re.IGNORECASE)),
)

PARSERS: dict[str, type[BankStatementParser]] = {
    "Bank of America": BankOfAmericaStatementParser,
    "Chase": ChaseStatementParser,
}


def detect_bank(page: ProcessedPage) -> str | None:
    """Institution named by the first pattern matching the page text, if any."""
    for bank_name, pattern in BANK_PATTERNS:
        if pattern.search(page.full_text):
            return bank_name
    return None


def create_parser(
    bank_name: str,
    source_path: str,
    mime_type: str,
    loader: DocumentLoader | None = None,
    processor_id: str | None = None,
) -> BankStatementParser:
    """Dedicated parser for the bank, else the generic one carrying its name."""
    parser_class = PARSERS.get(bank_name)
    if parser_class is None:
        return GenericStatementParser(source_path, mime_type, bank_name, loader, processor_id)
    return parser_class(source_path, mime_type, loader, processor_id)


__all__ = [
    "BANK_PATTERNS",
    "PARSERS",
    "BankOfAmericaStatementParser",
    "BankStatementParser",
    "ChaseStatementParser",
    "GenericStatementParser",
    "TransactionSection",
    "compute_page_ranges",
    "create_parser",
    "detect_bank",
    "extract_amount",
]
