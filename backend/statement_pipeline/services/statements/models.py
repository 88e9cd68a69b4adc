"""Structured statement data produced by the parsers.

``to_dict`` emits the camelCase shape the persistence layer consumes.
"""

from dataclasses import dataclass, field, fields
from datetime import UTC, datetime

from statement_pipeline.enums import TransactionType
from statement_pipeline.services.statements.account_extractor import normalize_account_type, statement_fingerprint

UNKNOWN_ACCOUNT = "unknown"


@dataclass
class Transaction:
    """A single statement line. Withdrawals and ATM/debit amounts are negative."""

    date: str | None
    description: str | None
    amount: float | None
    type: TransactionType
    raw_row_text: str | None = None

    def to_dict(self) -> dict:
        data = {
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "type": str(self.type),
        }
        if self.raw_row_text is not None:
            data["rawRowText"] = self.raw_row_text
        return data


@dataclass
class TransactionCategories:
    deposits: list[Transaction] = field(default_factory=list)
    atm_debit: list[Transaction] = field(default_factory=list)
    withdrawals: list[Transaction] = field(default_factory=list)
    checks: list[Transaction] = field(default_factory=list)
    fees: list[Transaction] = field(default_factory=list)
    other: list[Transaction] = field(default_factory=list)

    def add(self, category: str, transactions: list[Transaction]) -> None:
        """Append transactions to a category, dropping those without an amount."""
        getattr(self, category).extend(t for t in transactions if t.amount is not None)

    def count(self) -> int:
        return sum(len(getattr(self, f.name)) for f in fields(self))

    def to_dict(self) -> dict:
        return {
            "deposits": [t.to_dict() for t in self.deposits],
            "atmDebit": [t.to_dict() for t in self.atm_debit],
            "withdrawals": [t.to_dict() for t in self.withdrawals],
            "checks": [t.to_dict() for t in self.checks],
            "fees": [t.to_dict() for t in self.fees],
            "other": [t.to_dict() for t in self.other],
        }


@dataclass
class AccountMetadata:
    beginning_balance: float | None = None
    ending_balance: float | None = None
    deposits_total: float | None = None
    atm_debit_total: float | None = None
    checks_total: float | None = None
    service_fees: float | None = None
    other_subtractions: float | None = None

    def to_dict(self) -> dict:
        values = {
            "beginningBalance": self.beginning_balance,
            "endingBalance": self.ending_balance,
            "depositsTotal": self.deposits_total,
            "atmDebitTotal": self.atm_debit_total,
            "checksTotal": self.checks_total,
            "serviceFees": self.service_fees,
            "otherSubtractions": self.other_subtractions,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass
class Account:
    """One account of a statement, filled in as its pages are processed."""

    account_number_last4: str = UNKNOWN_ACCOUNT
    account_type: str | None = None
    page_reference: int | None = None
    all_transactions: TransactionCategories = field(default_factory=TransactionCategories)
    metadata: AccountMetadata = field(default_factory=AccountMetadata)

    def to_dict(self) -> dict:
        return {
            "accountNumberLast4": self.account_number_last4,
            "accountType": self.account_type,
            "pageReference": self.page_reference,
            "allTransactions": self.all_transactions.to_dict(),
            "metadata": self.metadata.to_dict(),
        }


@dataclass
class ProcessedStatementData:
    """The pipeline's only externally consumed artifact."""

    bank_name: str | None
    accounts: list[Account] = field(default_factory=list)
    statement_period_start_date: str | None = None
    statement_period_end_date: str | None = None
    raw_text: str = ""
    entities: list[dict] = field(default_factory=list)
    total_balance: float | None = None

    @property
    def is_combined_statement(self) -> bool:
        return sum(1 for account in self.accounts if account.page_reference is not None) > 1

    def missing_fields(self) -> list[str]:
        """Fields persistence requires but the parse did not produce."""
        missing = []
        if not self.bank_name:
            missing.append("bank name")
        if not self.accounts:
            missing.append("accounts")
        if not self.statement_period_start_date or not self.statement_period_end_date:
            missing.append("statement period")
        return missing

    def to_dict(self) -> dict:
        data = {
            "bankName": self.bank_name,
            "accounts": [account.to_dict() for account in self.accounts],
            "statementPeriodStartDate": self.statement_period_start_date,
            "statementPeriodEndDate": self.statement_period_end_date,
            "rawText": self.raw_text,
            "entities": self.entities,
        }
        if self.total_balance is not None:
            data["totalBalance"] = self.total_balance
        return data

    def summary(self) -> dict:
        """Condensed view of the extraction for inspection and debugging."""
        return {
            "bankName": self.bank_name,
            "statementPeriod": {
                "start": self.statement_period_start_date,
                "end": self.statement_period_end_date,
            },
            "accounts": [
                {
                    "accountNumberLast4": account.account_number_last4,
                    "accountType": account.account_type,
                    "normalizedAccountType": str(normalize_account_type(account.account_type)),
                    "pageReference": account.page_reference,
                    "transactionCount": account.all_transactions.count(),
                    **account.metadata.to_dict(),
                }
                for account in self.accounts
            ],
            "totalBalance": self.total_balance,
            "isCombinedStatement": self.is_combined_statement,
            "fingerprint": statement_fingerprint(self.raw_text),
            "extractionTimestamp": datetime.now(UTC).isoformat(),
        }
