"""Statement parsing: output models, bank parsers and the top-level pipeline."""

from statement_pipeline.services.statements.models import (
    UNKNOWN_ACCOUNT,
    Account,
    AccountMetadata,
    ProcessedStatementData,
    Transaction,
    TransactionCategories,
)
from statement_pipeline.services.statements.processor import (
    ProcessUploadResult,
    process_statement,
    process_uploaded_file,
)

__all__ = [
    # Models
    "UNKNOWN_ACCOUNT",
    "Account",
    "AccountMetadata",
    "ProcessedStatementData",
    "Transaction",
    "TransactionCategories",
    # Pipeline
    "ProcessUploadResult",
    "process_statement",
    "process_uploaded_file",
]
