"""Chase statement parser (single checking or savings account per statement)."""

import logging
import re

from statement_pipeline.enums import TransactionType
from statement_pipeline.services.document.templates import CHASE_TEMPLATE, DATE_TEMPLATE
from statement_pipeline.services.statements.models import ProcessedStatementData
from statement_pipeline.services.statements.parsers.base import BankStatementParser, TransactionSection

logger = logging.getLogger(__name__)

NUMERIC_PERIOD_RE = re.compile(
    r"statement\s+period:?\s+(\d{1,2}/\d{1,2}/\d{2,4})\s*(?:to|-|through)\s*(\d{1,2}/\d{1,2}/\d{2,4})",
    re.IGNORECASE,
)


class ChaseStatementParser(BankStatementParser):
    bank_name = "Chase"

    SUMMARY_TOP_ANCHORS = ("Checking Summary", "Savings Summary", "Account Summary")
    SUMMARY_BOTTOM_ANCHOR = "Ending Balance"
    SUMMARY_PAGE_PATTERN = r"checking\s+summary|savings\s+summary|account\s+summary"
    SECTION_TEMPLATE = CHASE_TEMPLATE

    ACCOUNT_TYPE_PATTERNS = (
        (re.compile(r"chase\s+total\s+checking", re.IGNORECASE), "Chase Total Checking"),
        (re.compile(r"chase\s+savings", re.IGNORECASE), "Chase Savings"),
        (re.compile(r"\bsavings\b", re.IGNORECASE), "Savings"),
        (re.compile(r"\bchecking\b", re.IGNORECASE), "Checking"),
    )

    TRANSACTION_SECTIONS = (
        TransactionSection(
            category="deposits",
            type=TransactionType.DEPOSIT,
            top_anchors=("Deposits and Additions",),
            bottom_anchors=("Total Deposits and Additions",),
        ),
        TransactionSection(
            category="checks",
            type=TransactionType.WITHDRAWAL,
            top_anchors=("Checks Paid",),
            bottom_anchors=("Total Checks Paid",),
        ),
        TransactionSection(
            category="atm_debit",
            type=TransactionType.ATM_DEBIT,
            top_anchors=("ATM & Debit Card Withdrawals",),
            bottom_anchors=("Total ATM & Debit Card Withdrawals",),
        ),
        TransactionSection(
            category="withdrawals",
            type=TransactionType.WITHDRAWAL,
            top_anchors=("Electronic Withdrawals",),
            bottom_anchors=("Total Electronic Withdrawals",),
        ),
        TransactionSection(
            category="fees",
            type=TransactionType.WITHDRAWAL,
            top_anchors=("Fees",),
            bottom_anchors=("Total Fees",),
        ),
    )

    async def process(self) -> ProcessedStatementData:
        logger.info("Processing Chase statement")

        if not await self.ensure_document():
            logger.error("Failed to load document for Chase parser")
            return self.create_base_data()

        data = self.create_base_data()

        try:
            summary_page_number = self.find_summary_page()
            logger.info(f"Using page {summary_page_number} as summary page")

            summary_page = self.loader.process_page(summary_page_number)
            if not summary_page:
                return data

            self.extract_chase_period(summary_page_number, data)

            account = self.detect_account_from_text(summary_page)
            self.apply_account_template(summary_page_number, account)
            account.page_reference = summary_page_number
            data.accounts.append(account)

            self.process_account_detail_pages(data)
        except Exception:
            logger.exception("Error processing Chase statement")

        return data

    def extract_chase_period(self, page_number: int, data: ProcessedStatementData) -> None:
        """Numeric "Statement Period: mm/dd/yy to mm/dd/yy" first, then month-name periods."""
        page = self.loader.process_page(page_number)
        for block in page.text_blocks:
            match = NUMERIC_PERIOD_RE.search(block.text)
            if match:
                data.statement_period_start_date = match.group(1)
                data.statement_period_end_date = match.group(2)
                logger.info(f"Found statement period: {match.group(1)} to {match.group(2)}")
                return

        date_data = self.loader.extract_using_template(page_number, DATE_TEMPLATE)
        self.extract_statement_period(date_data, data)
