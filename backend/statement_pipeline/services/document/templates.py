"""Reusable regex extraction templates for financial documents.

A template is applied to every text block of a page; each pattern's hits
accumulate under the pattern's extraction type, in block scan order.
"""

import logging
import re

from statement_pipeline.enums import ExtractionType
from statement_pipeline.services.document.models import (
    ExtractionPattern,
    ExtractionTemplate,
    ProcessedPage,
    TemplateMatch,
)

logger = logging.getLogger(__name__)

MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)

TemplateResult = dict[ExtractionType, list[TemplateMatch]]


DATE_TEMPLATE = ExtractionTemplate(
    id="common-dates",
    patterns=(
        ExtractionPattern(
            regex=re.compile(r"(\d{1,2}/\d{1,2}/\d{2,4})"),
            type=ExtractionType.DATE_MM_DD_YYYY,
        ),
        ExtractionPattern(
            regex=re.compile(rf"({MONTHS})\s+\d{{1,2}},?\s+\d{{4}}", re.IGNORECASE),
            type=ExtractionType.DATE_MONTH_NAME,
        ),
        # e.g. "for March 12, 2024 to April 10, 2024"
        ExtractionPattern(
            regex=re.compile(
                rf"({MONTHS})\s+(\d{{1,2}}),\s+(\d{{4}})\s*(?:to|-|through)\s*"
                rf"({MONTHS})\s+(\d{{1,2}}),\s+(\d{{4}})",
                re.IGNORECASE,
            ),
            type=ExtractionType.STATEMENT_PERIOD,
        ),
    ),
)

ACCOUNT_TEMPLATE = ExtractionTemplate(
    id="account-info",
    patterns=(
        # Block ending in the last four digits of a masked or spaced account number
        ExtractionPattern(
            regex=re.compile(r"(?:account|acct)\b[^\n]*?[\s*x•-](\d{4})\s*$", re.IGNORECASE),
            type=ExtractionType.ACCOUNT_LAST4,
            group_index=1,
        ),
        ExtractionPattern(
            regex=re.compile(r"(?:checking|savings|credit\s+card|deposit)\s+account", re.IGNORECASE),
            type=ExtractionType.ACCOUNT_TYPE,
        ),
        ExtractionPattern(
            regex=re.compile(r"(?:beginning|opening)\s+balance:?\s*\$?([\d,]+\.\d{2})", re.IGNORECASE),
            type=ExtractionType.BEGINNING_BALANCE,
            group_index=1,
        ),
        ExtractionPattern(
            regex=re.compile(r"(?:ending|closing)\s+balance:?\s*\$?([\d,]+\.\d{2})", re.IGNORECASE),
            type=ExtractionType.ENDING_BALANCE,
            group_index=1,
        ),
    ),
)

# Section tags whose presence means a page may hold transaction tables
SECTION_TYPES = frozenset(
    {
        ExtractionType.DEPOSITS_SECTION,
        ExtractionType.WITHDRAWALS_SECTION,
        ExtractionType.ELECTRONIC_WITHDRAWALS_SECTION,
        ExtractionType.DEBIT_CARD_SECTION,
        ExtractionType.CHECKS_SECTION,
        ExtractionType.FEES_SECTION,
    }
)

BANK_OF_AMERICA_TEMPLATE = ExtractionTemplate(
    id="bank-of-america",
    patterns=(
        ExtractionPattern(
            regex=re.compile(r"bank\s+of\s+america|bankofamerica|bofa", re.IGNORECASE),
            type=ExtractionType.BANK_NAME,
        ),
        ExtractionPattern(
            regex=re.compile(r"your\s+account\s+at\s+a\s+glance|account\s+summary", re.IGNORECASE),
            type=ExtractionType.ACCOUNT_SUMMARY_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"deposits\s+and\s+other\s+additions", re.IGNORECASE),
            type=ExtractionType.DEPOSITS_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"(?:withdrawals\s+and\s+)?other\s+subtractions", re.IGNORECASE),
            type=ExtractionType.WITHDRAWALS_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"atm\s+and\s+debit\s+card\s+subtractions", re.IGNORECASE),
            type=ExtractionType.DEBIT_CARD_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"service\s+fees", re.IGNORECASE),
            type=ExtractionType.FEES_SECTION,
        ),
    ),
)

CHASE_TEMPLATE = ExtractionTemplate(
    id="chase",
    patterns=(
        ExtractionPattern(
            regex=re.compile(r"chase|jpmorgan\s+chase", re.IGNORECASE),
            type=ExtractionType.BANK_NAME,
        ),
        ExtractionPattern(
            regex=re.compile(r"checking\s+summary|savings\s+summary|account\s+summary", re.IGNORECASE),
            type=ExtractionType.ACCOUNT_SUMMARY_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"deposits\s+and\s+additions", re.IGNORECASE),
            type=ExtractionType.DEPOSITS_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"checks\s+paid", re.IGNORECASE),
            type=ExtractionType.CHECKS_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"electronic\s+withdrawals", re.IGNORECASE),
            type=ExtractionType.ELECTRONIC_WITHDRAWALS_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"atm\s+&\s+debit\s+card\s+(?:transactions|withdrawals)", re.IGNORECASE),
            type=ExtractionType.DEBIT_CARD_SECTION,
        ),
        ExtractionPattern(
            regex=re.compile(r"\bfees\b", re.IGNORECASE),
            type=ExtractionType.FEES_SECTION,
        ),
    ),
)


def has_section_markers(result: TemplateResult | None) -> bool:
    """Whether a template result holds any transaction section marker."""
    if not result:
        return False
    return any(result.get(section) for section in SECTION_TYPES)


def extract_template(page: ProcessedPage, template: ExtractionTemplate) -> TemplateResult:
    """
    Apply every pattern of a template to every text block of a page.

    A hit records the capture group named by the pattern (whole match when
    none), the block text and the block position. Every pattern type is
    present in the result, possibly with an empty list.
    """
    results: TemplateResult = {}

    for pattern in template.patterns:
        matches: list[TemplateMatch] = []
        for block in page.text_blocks:
            match = pattern.regex.search(block.text)
            if not match:
                continue
            group = pattern.group_index if pattern.group_index is not None else 0
            matches.append(
                TemplateMatch(
                    value=match.group(group),
                    text=block.text,
                    position=block.bounding_box,
                )
            )
        results[pattern.type] = matches

    logger.debug(
        f"Template {template.id} on page {page.page_number}: "
        + ", ".join(f"{kind}={len(hits)}" for kind, hits in results.items())
    )
    return results
