"""Base class and shared layout logic for bank statement parsers."""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from statement_pipeline.config import settings
from statement_pipeline.enums import BoundaryMode, ExtractionType, TransactionType
from statement_pipeline.services.document import (
    BoundaryOptions,
    BoundingConstraints,
    DocumentLoader,
    ExtractionTemplate,
    ProcessedPage,
    ProcessedTable,
    TableReconstructor,
)
from statement_pipeline.services.document.templates import ACCOUNT_TEMPLATE, TemplateResult, has_section_markers
from statement_pipeline.services.statements.models import (
    UNKNOWN_ACCOUNT,
    Account,
    ProcessedStatementData,
    Transaction,
)

logger = logging.getLogger(__name__)

AMOUNT_RE = re.compile(r"\$?([\d,]+\.\d{2})")
NEGATIVE_AMOUNT_RE = re.compile(r"\(\$?[\d,]+\.\d{2}\)")
DATE_CELL_RE = re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b")
PAGE_REFERENCE_RE = re.compile(r"page\s+(\d+)", re.IGNORECASE)

# "Account number: ****1234", "Account # 0000 1234 5678", "account xxxx-1234"
ACCOUNT_NUMBER_RE = re.compile(
    r"account\s*(?:number|#|no\.?)?\s*[:.#]?\s*((?:[x*•]+[\s-]?|\d{4,}[\s-]?)+)",
    re.IGNORECASE,
)

MONTH_PERIOD_RE = re.compile(
    r"(January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+(\d{1,2}),?\s+(\d{4})\s+(?:to|through|-)\s+"
    r"(January|February|March|April|May|June|July|August|September|October|November|December)"
    r"\s+(\d{1,2}),?\s+(\d{4})",
    re.IGNORECASE,
)

HEADER_TERMS = ("date", "description", "amount", "balance", "transaction description")
TRANSACTION_TABLE_HEADERS = ("date", "description", "amount")
SUMMARY_TABLE_TERMS = ("beginning balance", "deposits", "withdrawals")

# Label alternatives for each summary total; the value may follow an item count
SUMMARY_FIELDS = (
    ("beginning_balance", r"beginning\s+balance|opening\s+balance"),
    ("ending_balance", r"ending\s+balance|closing\s+balance"),
    ("deposits_total", r"deposits\s+and\s+other\s+additions|deposits\s+and\s+additions|total\s+deposits"),
    ("atm_debit_total", r"atm\s+(?:and|&)\s+debit\s+card\s+(?:transactions|subtractions|withdrawals)"),
    ("checks_total", r"checks(?:\s+paid)?|total\s+checks"),
    ("service_fees", r"service\s+fees|total\s+fees|fees"),
    ("other_subtractions", r"other\s+subtractions|other\s+withdrawals|electronic\s+withdrawals"),
)
SUMMARY_PATTERNS = tuple(
    (name, re.compile(rf"(?:{labels})[^a-z0-9]*(?:\d{{1,4}}\s+[^a-z0-9]*)?([\d,]+\.\d{{2}})"))
    for name, labels in SUMMARY_FIELDS
)

TRANSACTION_BOUNDARIES = BoundaryOptions(
    top_mode=BoundaryMode.EXCLUSIVE,
    bottom_mode=BoundaryMode.EXCLUSIVE,
    include_anchors=False,
)
SUMMARY_BOUNDARIES = BoundaryOptions(
    top_mode=BoundaryMode.INCLUSIVE,
    bottom_mode=BoundaryMode.EXCLUSIVE,
    include_anchors=True,
)


@dataclass(frozen=True)
class TransactionSection:
    """A bank-standard transaction table and the anchor phrases around it."""

    category: str  # Attribute of TransactionCategories
    type: TransactionType
    top_anchors: tuple[str, ...]
    bottom_anchors: tuple[str, ...]


def extract_amount(text: str) -> float | None:
    """Parse $1,234.56 style amounts; a minus sign or parentheses make it negative."""
    match = AMOUNT_RE.search(text)
    if not match:
        return None
    amount = float(match.group(1).replace(",", ""))
    if "-" in text or NEGATIVE_AMOUNT_RE.search(text):
        amount = -amount
    return amount


def account_last4(text: str) -> str | None:
    """Last four digits of the first account number mentioned in text."""
    match = ACCOUNT_NUMBER_RE.search(text)
    if not match:
        return None
    digits = re.sub(r"\D", "", match.group(1))
    return digits[-4:] if len(digits) >= 4 else None


def compute_page_ranges(accounts: list[Account], page_count: int) -> list[tuple[Account, int, int]]:
    """
    Page range of each referenced account.

    Each range runs from the account's page reference to the page before the
    next account's reference; the last account runs to the end of the document.
    """
    referenced = sorted(
        (account for account in accounts if account.page_reference),
        key=lambda account: account.page_reference,
    )

    ranges = []
    for index, account in enumerate(referenced):
        start = account.page_reference
        if index < len(referenced) - 1:
            end = referenced[index + 1].page_reference - 1
        else:
            end = page_count
        ranges.append((account, start, max(start, end)))
    return ranges


class BankStatementParser(ABC):
    """
    Strategy for one institution's statement layout.

    ``process`` never raises: any failure leaves the partially built result
    in place and it is returned as is.
    """

    bank_name = "Unknown"

    SUMMARY_TOP_ANCHORS: tuple[str, ...] = ()
    SUMMARY_BOTTOM_ANCHOR: str | None = None
    TRANSACTION_SECTIONS: tuple[TransactionSection, ...] = ()
    ACCOUNT_TYPE_PATTERNS: tuple[tuple[re.Pattern, str], ...] = ()
    SUMMARY_PAGE_PATTERN = r"account\s+summary"
    SECTION_TEMPLATE: ExtractionTemplate | None = None

    def __init__(
        self,
        source_path: str,
        mime_type: str,
        loader: DocumentLoader | None = None,
        processor_id: str | None = None,
    ):
        self.source_path = source_path
        self.mime_type = mime_type
        self.processor_id = processor_id
        self.loader = loader
        self.reconstructor = TableReconstructor(loader) if loader else None

    @abstractmethod
    async def process(self) -> ProcessedStatementData:
        """Parse the statement into structured data."""

    async def ensure_document(self) -> bool:
        """Load the document into the supplied loader, or a new one, unless already loaded."""
        if self.loader is None:
            logger.info("No DocumentLoader was provided, creating a new one")
            self.loader = DocumentLoader()
            self.reconstructor = TableReconstructor(self.loader)
        elif self.loader.document is not None:
            return True

        return await self.loader.load(self.source_path, self.mime_type, self.processor_id)

    def create_base_data(self) -> ProcessedStatementData:
        """Empty result for this bank; parsers fill in what they find."""
        return ProcessedStatementData(
            bank_name=self.bank_name,
            raw_text=self.loader.document_text if self.loader else "",
        )

    # Statement period

    def extract_statement_period(self, date_data: TemplateResult, data: ProcessedStatementData) -> None:
        """Prefer "Month D, YYYY to Month D, YYYY"; else the first two mm/dd/yyyy dates."""
        periods = date_data.get(ExtractionType.STATEMENT_PERIOD, [])
        dates = date_data.get(ExtractionType.DATE_MM_DD_YYYY, [])

        if periods:
            match = MONTH_PERIOD_RE.search(periods[0].text)
            if match:
                data.statement_period_start_date = f"{match[1]} {match[2]}, {match[3]}"
                data.statement_period_end_date = f"{match[4]} {match[5]}, {match[6]}"
                logger.info(
                    f"Found statement period: {data.statement_period_start_date} "
                    f"to {data.statement_period_end_date}"
                )
                return

        if len(dates) >= 2:
            data.statement_period_start_date = dates[0].value
            data.statement_period_end_date = dates[1].value
            logger.info(
                f"Using dates as statement period: {data.statement_period_start_date} "
                f"to {data.statement_period_end_date}"
            )

    # Accounts

    def detect_account_from_text(self, page: ProcessedPage) -> Account:
        """Single implicit account from an account-number and account-type sweep."""
        account = Account()
        for block in page.text_blocks:
            last4 = account_last4(block.text)
            if last4 and account.account_number_last4 == UNKNOWN_ACCOUNT:
                account.account_number_last4 = last4

            if account.account_type is None:
                for pattern, account_type in self.ACCOUNT_TYPE_PATTERNS:
                    if pattern.search(block.text):
                        account.account_type = account_type
                        break

        logger.info(
            f"Detected account from text: {account.account_number_last4}, "
            f"type: {account.account_type or 'unknown'}"
        )
        return account

    def apply_account_template(self, page_number: int, account: Account) -> None:
        """
        Cross-check an account against the account template hits of a page.

        Fills the last four digits, type and balances the text sweep left
        empty. Balances found here are provisional; a reconstructed account
        summary overwrites them.
        """
        found = self.loader.extract_using_template(page_number, ACCOUNT_TEMPLATE)
        if not found:
            return

        last4_hits = [match.value for match in found[ExtractionType.ACCOUNT_LAST4]]
        if account.account_number_last4 == UNKNOWN_ACCOUNT:
            if last4_hits:
                account.account_number_last4 = last4_hits[0]
                logger.info(f"Account number from template on page {page_number}: {last4_hits[0]}")
        elif last4_hits and account.account_number_last4 not in last4_hits:
            logger.warning(
                f"Account {account.account_number_last4} not among template hits "
                f"on page {page_number}: {', '.join(last4_hits)}"
            )

        type_hits = found[ExtractionType.ACCOUNT_TYPE]
        if account.account_type is None and type_hits:
            account.account_type = type_hits[0].value.title()

        for tag, name in (
            (ExtractionType.BEGINNING_BALANCE, "beginning_balance"),
            (ExtractionType.ENDING_BALANCE, "ending_balance"),
        ):
            hits = found[tag]
            if hits and getattr(account.metadata, name) is None:
                setattr(account.metadata, name, float(hits[0].value.replace(",", "")))

    def find_summary_page(self) -> int:
        """First page matching the summary pattern; page 1 if none."""
        page_number = self.loader.find_first_page_matching(self.SUMMARY_PAGE_PATTERN)
        return page_number or 1

    def is_end_of_account_section(self, page: ProcessedPage, account: Account) -> bool:
        """A different account number on the page means the next account has started."""
        if account.account_number_last4 == UNKNOWN_ACCOUNT:
            return False

        for block in page.text_blocks:
            last4 = account_last4(block.text)
            if last4 and account.account_number_last4 not in block.text:
                return True
        return False

    def process_account_detail_pages(self, data: ProcessedStatementData) -> None:
        """Fill every referenced account from its own page range."""
        for account, start_page, end_page in compute_page_ranges(data.accounts, self.loader.page_count):
            logger.info(
                f"Processing account {account.account_number_last4} statement "
                f"from page {start_page} to {end_page}"
            )
            first_page = self.loader.process_page(start_page)
            if not first_page:
                logger.error(f"Failed to process page {start_page}")
                continue

            try:
                self.process_account_summary(first_page, account)
            except Exception:
                logger.exception(f"Account summary failed on page {start_page}")

            self.process_transaction_pages(start_page, end_page, account)

    # Account summary

    def process_account_summary(self, page: ProcessedPage, account: Account) -> None:
        """Balances and section totals from the account summary block of a page."""
        top_anchor = self.find_phrase(page, self.SUMMARY_TOP_ANCHORS)
        if not top_anchor:
            logger.info(f"No account summary found on page {page.page_number}")
            return

        table = next(
            (
                tables[0]
                for term in SUMMARY_TABLE_TERMS
                if (tables := self.loader.find_tables(page.page_number, [term]))
            ),
            None,
        )

        reconstructed = self.reconstructor.reconstruct_table(
            page.page_number,
            table,
            BoundingConstraints(top_anchor=top_anchor, bottom_anchor=self.SUMMARY_BOTTOM_ANCHOR),
            SUMMARY_BOUNDARIES,
        )
        if reconstructed and reconstructed.rows:
            self.extract_account_summary(reconstructed.rows, account)

    def extract_account_summary(self, rows: list[list[str]], account: Account) -> None:
        """
        Key-value extraction over reconstructed rows.

        Label and value may sit in the same cell or in adjacent cells, so each
        row is matched as one line of text. The first value found per field wins.
        """
        found: dict[str, float] = {}

        for row in rows:
            text = " ".join(row).lower()

            for name, pattern in SUMMARY_PATTERNS:
                if name in found:
                    continue
                match = pattern.search(text)
                if match:
                    found[name] = float(match.group(1).replace(",", ""))
                    break
            else:
                # Dated balance lines: "Beginning balance on March 1, 2024 $1,000.00"
                if "beginning_balance" not in found and "beginning balance" in text:
                    amount = extract_amount(text)
                    if amount is not None:
                        found["beginning_balance"] = amount
                elif "ending_balance" not in found and "ending balance" in text:
                    amount = extract_amount(text)
                    if amount is not None:
                        found["ending_balance"] = amount

        for name, value in found.items():
            setattr(account.metadata, name, value)

        missing = [name for name, _ in SUMMARY_FIELDS if getattr(account.metadata, name) is None]
        if missing:
            logger.info(
                f"Account summary for {account.account_number_last4} missing: {', '.join(missing)}"
            )

    # Transactions

    def process_transaction_pages(self, start_page: int, end_page: int, account: Account) -> None:
        """Collect every transaction section across an account's pages."""
        for page_number in range(start_page, end_page + 1):
            page = self.loader.process_page(page_number)
            if not page:
                continue

            if page_number > start_page and self.is_end_of_account_section(page, account):
                logger.info(
                    f"Reached end of account {account.account_number_last4} section on page {page_number}"
                )
                break

            if self.SECTION_TEMPLATE is not None and not has_section_markers(
                self.loader.extract_using_template(page_number, self.SECTION_TEMPLATE)
            ):
                logger.debug(f"No transaction sections on page {page_number}")
                continue

            for section in self.TRANSACTION_SECTIONS:
                try:
                    transactions = self.extract_section_transactions(page, section)
                except Exception:
                    logger.exception(f"Failed to extract {section.category} on page {page_number}")
                    continue
                account.all_transactions.add(section.category, transactions)

        logger.info(
            f"Added {account.all_transactions.count()} total transactions "
            f"to account {account.account_number_last4}"
        )

    def extract_section_transactions(self, page: ProcessedPage, section: TransactionSection) -> list[Transaction]:
        """Rebuild one transaction section of a page into transactions."""
        top_anchor = self.find_phrase(page, section.top_anchors)
        if not top_anchor:
            logger.debug(f"No {section.category} section on page {page.page_number}")
            return []
        bottom_anchor = self.find_phrase(page, section.bottom_anchors)

        candidates = self.loader.find_tables(page.page_number, list(TRANSACTION_TABLE_HEADERS))
        table = self.find_table_near_anchor(page, candidates, top_anchor)

        reconstructed = self.reconstructor.reconstruct_transaction_table(
            page.page_number,
            table,
            BoundingConstraints(top_anchor=top_anchor, bottom_anchor=bottom_anchor),
            TRANSACTION_BOUNDARIES,
        )
        if reconstructed is None:
            return []

        transactions = []
        for row in reconstructed.rows:
            if " ".join(row).strip().lower().startswith("total"):
                break
            if len(row) < 2:
                continue

            is_header, is_transaction = self.is_header_row(row)
            if is_header and not is_transaction:
                continue

            transaction = self.transaction_from_row(row, section.type)
            if transaction.amount is not None:
                transactions.append(transaction)

        logger.info(
            f"Extracted {len(transactions)} {section.category} transactions from page {page.page_number}"
        )
        return transactions

    def is_header_row(self, row: list[str]) -> tuple[bool, bool]:
        """(is_header, is_transaction); a row with a date and an amount is never a header."""
        has_date = any(DATE_CELL_RE.search(cell.strip()) for cell in row)
        has_amount = any(AMOUNT_RE.search(cell.strip()) for cell in row)
        if has_date and has_amount:
            return False, True

        text = " ".join(row).lower()
        header_count = sum(1 for term in HEADER_TERMS if term in text)
        return header_count >= settings.header_row_min_terms, False

    def transaction_from_row(self, row: list[str], transaction_type: TransactionType) -> Transaction:
        """
        Infer date, description and amount columns of a row.

        The date is the first date-shaped cell, the amount is taken from the
        last cell (else the first cell holding one), and the remaining cells
        form the description.
        """
        date_index = next(
            (index for index, cell in enumerate(row) if DATE_CELL_RE.search(cell)), None
        )
        date = DATE_CELL_RE.search(row[date_index]).group(0) if date_index is not None else None

        amount = None
        amount_index = None
        for index in [len(row) - 1, *range(len(row))]:
            if index == date_index or index < 0:
                continue
            amount = extract_amount(row[index])
            if amount is not None:
                amount_index = index
                break

        description = " ".join(
            cell for index, cell in enumerate(row) if index not in (date_index, amount_index)
        ).strip()

        if amount is not None:
            if transaction_type in (TransactionType.WITHDRAWAL, TransactionType.ATM_DEBIT):
                amount = -abs(amount)
            elif transaction_type == TransactionType.DEPOSIT:
                amount = abs(amount)

        return Transaction(
            date=date,
            description=description,
            amount=amount,
            type=transaction_type,
            raw_row_text=" ".join(row),
        )

    # Page helpers

    def find_phrase(self, page: ProcessedPage, options: tuple[str, ...]) -> str | None:
        """First option (in priority order) that occurs on the page, case-insensitive."""
        for option in options:
            lower_option = option.lower()
            if any(lower_option in block.text.lower() for block in page.text_blocks):
                return option
        return None

    def find_table_near_anchor(
        self, page: ProcessedPage, tables: list[ProcessedTable], anchor: str
    ) -> ProcessedTable | None:
        """Detected table whose header blocks sit closest to the anchor phrase."""
        if not tables:
            return None

        anchor_lower = anchor.lower()
        anchor_block = next(
            (block for block in page.text_blocks if anchor_lower in block.text.lower()), None
        )
        if anchor_block is None:
            return tables[0]

        anchor_y = anchor_block.bounding_box.center_y
        return min(tables, key=lambda table: abs(self.estimate_table_position(page, table) - anchor_y))

    def estimate_table_position(self, page: ProcessedPage, table: ProcessedTable) -> float:
        """Mean vertical center of blocks containing a header cell; mid-page if none."""
        headers = [header.lower() for header in table.header_cells]
        centers = [
            block.bounding_box.center_y
            for block in page.text_blocks
            if any(header in block.text.lower() for header in headers)
        ]
        return sum(centers) / len(centers) if centers else 0.5

