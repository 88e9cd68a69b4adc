"""Enums for tagged values used throughout the pipeline."""

from enum import StrEnum


class ExtractionType(StrEnum):
    """Tag of a template pattern; keys the per-page extraction results."""

    DATE_MM_DD_YYYY = "date-mm-dd-yyyy"
    DATE_MONTH_NAME = "date-month-name"
    STATEMENT_PERIOD = "statement-period"
    BANK_NAME = "bank-name"
    ACCOUNT_LAST4 = "account-last4"
    ACCOUNT_TYPE = "account-type"
    BEGINNING_BALANCE = "beginning-balance"
    ENDING_BALANCE = "ending-balance"
    ACCOUNT_SUMMARY_SECTION = "account-summary-section"
    DEPOSITS_SECTION = "deposits-section"
    WITHDRAWALS_SECTION = "withdrawals-section"
    ELECTRONIC_WITHDRAWALS_SECTION = "electronic-withdrawals-section"
    DEBIT_CARD_SECTION = "debit-card-section"
    CHECKS_SECTION = "checks-section"
    FEES_SECTION = "fees-section"


class TransactionType(StrEnum):
    """Kind of a statement transaction. Withdrawals and ATM/debit are negative."""

    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    ATM_DEBIT = "ATM_DEBIT"
    OTHER = "OTHER"


class AccountType(StrEnum):
    """Normalized account classification."""

    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT = "CREDIT"
    INVESTMENT = "INVESTMENT"
    OTHER = "OTHER"


class BoundaryMode(StrEnum):
    """How a resolved vertical bound treats rows sitting exactly on it."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class StatementStatus(StrEnum):
    """Status of a background statement-processing task."""

    COMPLETED = "completed"
    FAILED = "failed"
