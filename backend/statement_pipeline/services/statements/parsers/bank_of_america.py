"""Bank of America statement parser.

Handles both single-account statements and combined statements, where page 1
carries a "Your deposit accounts" summary table listing every account with
the page its details start on.
"""

import logging
import re

from statement_pipeline.config import settings
from statement_pipeline.enums import BoundaryMode, TransactionType
from statement_pipeline.services.document import (
    BoundaryOptions,
    BoundingConstraints,
    ProcessedPage,
    ProcessedTable,
)
from statement_pipeline.services.document.templates import BANK_OF_AMERICA_TEMPLATE, DATE_TEMPLATE
from statement_pipeline.services.statements.models import Account, AccountMetadata, ProcessedStatementData
from statement_pipeline.services.statements.parsers.base import (
    AMOUNT_RE,
    PAGE_REFERENCE_RE,
    BankStatementParser,
    TransactionSection,
    account_last4,
)

logger = logging.getLogger(__name__)

COMBINED_STATEMENT_PATTERNS = (
    re.compile(r"your\s+combined\s+statement", re.IGNORECASE),
    re.compile(r"combined\s+statement", re.IGNORECASE),
    re.compile(r"your\s+deposit\s+accounts", re.IGNORECASE),
)

# Header hints of the combined summary table, by column
SUMMARY_HEADER_HINTS = {
    "account": ("account", "deposit", "banking"),
    "number": ("number", "account/plan", "acct"),
    "balance": ("balance", "amount"),
    "page": ("page", "details"),
}

SUMMARY_HEADER_KEYWORDS = ("your deposit accounts", "account/plan number", "ending balance", "details on")

ACCOUNT_INFO_RE = re.compile(r"\d{4}|\*+\s*\d")

COMBINED_SUMMARY_BOUNDARIES = BoundaryOptions(
    top_mode=BoundaryMode.EXCLUSIVE,
    bottom_mode=BoundaryMode.EXCLUSIVE,
    include_anchors=True,
)


class BankOfAmericaStatementParser(BankStatementParser):
    bank_name = "Bank of America"

    SUMMARY_TOP_ANCHORS = ("Account summary",)
    SUMMARY_BOTTOM_ANCHOR = "Ending balance on"
    SECTION_TEMPLATE = BANK_OF_AMERICA_TEMPLATE

    ACCOUNT_TYPE_PATTERNS = (
        (re.compile(r"adv\s+plus\s+banking|advantage\s+plus\s+banking", re.IGNORECASE), "Advantage Plus Banking"),
        (re.compile(r"advantage\s+savings", re.IGNORECASE), "Advantage Savings"),
        (re.compile(r"\bsavings\b", re.IGNORECASE), "Savings"),
        (re.compile(r"\bchecking\b", re.IGNORECASE), "Checking"),
    )

    TRANSACTION_SECTIONS = (
        TransactionSection(
            category="deposits",
            type=TransactionType.DEPOSIT,
            top_anchors=("Deposits and other additions - continued", "Deposits and other additions"),
            bottom_anchors=("Total deposits and other additions", "continued on the next page"),
        ),
        TransactionSection(
            category="withdrawals",
            type=TransactionType.WITHDRAWAL,
            top_anchors=(
                "Withdrawals and other subtractions - continued",
                "Withdrawals and other subtractions",
                "Other subtractions",
            ),
            bottom_anchors=(
                "Total withdrawals and other subtractions",
                "Total other subtractions",
                "continued on the next page",
            ),
        ),
        TransactionSection(
            category="atm_debit",
            type=TransactionType.ATM_DEBIT,
            top_anchors=("ATM and debit card subtractions - continued", "ATM and debit card subtractions"),
            bottom_anchors=("Total ATM and debit card subtractions", "continued on the next page"),
        ),
        TransactionSection(
            category="fees",
            type=TransactionType.WITHDRAWAL,
            top_anchors=("Service fees",),
            bottom_anchors=("Total service fees", "continued on the next page"),
        ),
    )

    async def process(self) -> ProcessedStatementData:
        logger.info("Processing Bank of America statement")

        if not await self.ensure_document():
            logger.error("Failed to load document for Bank of America parser")
            return self.create_base_data()

        data = self.create_base_data()

        try:
            first_page = self.loader.process_page(1)
            if not first_page:
                logger.error("Failed to process first page")
                return data

            date_data = self.loader.extract_using_template(1, DATE_TEMPLATE)
            self.extract_statement_period(date_data, data)

            if self.is_combined_statement(first_page):
                logger.info("Detected combined statement")
                self.process_combined_summary(first_page, data)

            if not data.accounts:
                account = self.detect_account_from_text(first_page)
                self.apply_account_template(1, account)
                account.page_reference = 1
                data.accounts.append(account)

            self.process_account_detail_pages(data)
        except Exception:
            logger.exception("Error processing Bank of America statement")

        return data

    def is_combined_statement(self, page: ProcessedPage) -> bool:
        """Combined-statement wording, or two distinct account numbers on the page."""
        for block in page.text_blocks:
            if any(pattern.search(block.text) for pattern in COMBINED_STATEMENT_PATTERNS):
                return True

        numbers = {last4 for block in page.text_blocks if (last4 := account_last4(block.text))}
        return len(numbers) > 1

    def find_account_summary_table(self, tables: list[ProcessedTable]) -> ProcessedTable | None:
        """Detected table whose headers look like the combined account listing."""
        for table in tables:
            headers = [header.lower() for header in table.header_cells]
            hints = sum(
                1
                for terms in SUMMARY_HEADER_HINTS.values()
                if any(term in header for header in headers for term in terms)
            )
            if hints >= settings.summary_table_min_hints:
                return table
        return None

    def process_combined_summary(self, page: ProcessedPage, data: ProcessedStatementData) -> None:
        """Account stubs (last4, ending balance, page reference) from the deposit accounts table."""
        table = self.find_account_summary_table(page.tables)
        if table is None:
            logger.info("No account summary table detected, inferring columns from content")

        reconstructed = self.reconstructor.reconstruct_table(
            page.page_number,
            table,
            BoundingConstraints(top_anchor="Your deposit accounts", bottom_anchor="Total balance"),
            COMBINED_SUMMARY_BOUNDARIES,
        )
        if reconstructed is None:
            return

        columns = self.header_columns(reconstructed.headers)

        for row in reconstructed.rows:
            row_lower = " ".join(row).lower()

            if "total" in row_lower:
                total = self.balance_from_row(row, columns.get("balance"))
                if total is not None:
                    data.total_balance = total
                    logger.info(f"Found total balance: {total}")
                continue

            has_account_info = any(ACCOUNT_INFO_RE.search(cell) for cell in row)
            if not has_account_info:
                continue
            cells = [cell for cell in row if cell.strip().lower() not in SUMMARY_HEADER_KEYWORDS]

            account = self.account_from_summary_row(cells, columns)
            if account:
                data.accounts.append(account)

        logger.info(f"Extracted {len(data.accounts)} accounts from combined summary")

    def header_columns(self, headers: list[str]) -> dict[str, int]:
        columns = {}
        for index, header in enumerate(header.lower() for header in headers):
            for column, terms in SUMMARY_HEADER_HINTS.items():
                if column not in columns and any(term in header for term in terms):
                    columns[column] = index
                    break
        return columns

    def account_from_summary_row(self, cells: list[str], columns: dict[str, int]) -> Account | None:
        """
        Build an account stub from one summary row.

        A column index from the detected header is used when its cell has the
        expected shape; otherwise the value is inferred from cell content.
        """
        number_cell = _cell(cells, columns.get("number"))
        if not number_cell or len(re.sub(r"\D", "", number_cell)) < 4:
            number_cell = next(
                (
                    cell
                    for cell in cells
                    if len(re.sub(r"\D", "", cell)) >= 4
                    and not AMOUNT_RE.search(cell)
                    and not PAGE_REFERENCE_RE.search(cell)
                ),
                None,
            )
        if not number_cell:
            return None

        last4 = re.sub(r"\D", "", number_cell)[-4:]

        page_cell = _cell(cells, columns.get("page"))
        page_match = PAGE_REFERENCE_RE.search(page_cell or "")
        if not page_match:
            page_match = next(
                (match for cell in cells if (match := PAGE_REFERENCE_RE.search(cell))), None
            )

        name_cell = _cell(cells, columns.get("account"))
        if not name_cell or re.search(r"\d", name_cell):
            name_cell = next((cell for cell in cells if not re.search(r"\d", cell)), None)

        account = Account(
            account_number_last4=last4,
            account_type=name_cell.strip() if name_cell else None,
            page_reference=int(page_match.group(1)) if page_match else None,
            metadata=AccountMetadata(ending_balance=self.balance_from_row(cells, columns.get("balance"))),
        )
        logger.info(
            f"Found account {account.account_number_last4} ({account.account_type}) "
            f"on page {account.page_reference}"
        )
        return account

    def balance_from_row(self, cells: list[str], index: int | None) -> float | None:
        candidates = [_cell(cells, index)] if index is not None else []
        candidates.extend(reversed(cells))
        for cell in candidates:
            match = AMOUNT_RE.search(cell or "")
            if match:
                return float(match.group(1).replace(",", ""))
        return None


def _cell(cells: list[str], index: int | None) -> str | None:
    if index is None or index >= len(cells):
        return None
    return cells[index]
