"""Text-only account heuristics.

Used when no dedicated parser can be selected for the institution, and as the
basis for duplicate-statement detection. Works on raw concatenated text, with
no geometry.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from statement_pipeline.enums import AccountType

logger = logging.getLogger(__name__)

COMMON_BANKS = [
    "chase",
    "bank of america",
    "wells fargo",
    "citibank",
    "capital one",
    "us bank",
    "pnc bank",
    "td bank",
    "truist",
    "hsbc",
    "ally",
    "discover",
    "american express",
    "amex",
    "goldman sachs",
    "barclays",
    "bmo harris",
    "citizens bank",
    "fifth third bank",
    "regions bank",
    "santander",
    "usaa",
    "navy federal",
    "fidelity",
    "vanguard",
    "charles schwab",
    "robinhood",
]

BANK_NAME_PATTERNS = [
    re.compile(
        r"(?:welcome to|statement from|issued by)\s+([A-Z][A-Za-z\s]{2,30}(?:Bank|Financial|Credit Union|Card))"
    ),
    re.compile(
        r"([A-Z][A-Za-z\s]{2,30}(?:Bank|Financial|Credit Union|Card))\s+(?:statement|account)",
        re.IGNORECASE,
    ),
]

# Keyword groups checked in precedence order
ACCOUNT_TYPE_KEYWORDS = [
    (AccountType.CHECKING, ("checking", "current account")),
    (AccountType.SAVINGS, ("savings", "save account")),
    (AccountType.CREDIT, ("credit card", "visa", "mastercard", "amex", "american express")),
    (AccountType.INVESTMENT, ("investment", "brokerage", "trading", "securities", "portfolio")),
]

ACCOUNT_TYPE_PATTERNS = [
    (AccountType.CHECKING, re.compile(r"(?:primary|premier|advantage|basic|standard|regular)\s+checking", re.IGNORECASE)),
    (AccountType.SAVINGS, re.compile(r"(?:high\s+yield|premier|advantage)\s+savings", re.IGNORECASE)),
    (AccountType.CREDIT, re.compile(r"(?:platinum|gold|rewards|cash\s+back|travel)\s+card", re.IGNORECASE)),
    (AccountType.INVESTMENT, re.compile(r"(?:retirement|ira|401k|roth|individual|joint)\s+(?:account|portfolio)", re.IGNORECASE)),
]

# Product names printed by banks that map onto a known account type
PRODUCT_ACCOUNT_TYPES = {
    "advantage plus banking": AccountType.CHECKING,
    "adv plus banking": AccountType.CHECKING,
    "chase total checking": AccountType.CHECKING,
    "chase savings": AccountType.SAVINGS,
}

ACCOUNT_NAME_PATTERNS = [
    re.compile(r"(?:account name|account title)\s*[:;-]?\s*([A-Za-z\s]{3,30}?)(?:\r|\n|,|\s{2,}|$)", re.IGNORECASE),
    re.compile(r"(?:account|card) holder\s*[:;-]?\s*([A-Za-z\s]{3,30}?)(?:\r|\n|,|\s{2,}|$)", re.IGNORECASE),
    re.compile(
        r"([A-Za-z\s]{2,}?)\s+(?:Platinum|Gold|Rewards|Signature|Premier|Cash)\s+(?:Card|Credit Card|Visa|MasterCard)",
        re.IGNORECASE,
    ),
]

_MASK = r"(?:x{1,10}|\.{1,10}|\*{1,10}|•{1,10})"
_END = r"(?:\s|$|\.|,)"

LAST_FOUR_PATTERNS = [
    re.compile(rf"account\s+(?:number|#|no)?\s*[:*\-]+\s*(?:{_MASK}|\s+)(\d{{4}}){_END}", re.IGNORECASE),
    re.compile(rf"account\s+(?:number|ending in|ending with)(?:\s|:)+(\d{{4}}){_END}", re.IGNORECASE),
    re.compile(rf"(?:card|account)(?:\s|:)+(?:{_MASK}|\s+)(\d{{4}}){_END}", re.IGNORECASE),
    re.compile(r"(?:x{4}|\.{4}|\*{4}|•{4})-(?:x{4}|\.{4}|\*{4}|•{4})-(?:x{4}|\.{4}|\*{4}|•{4})-(\d{4})", re.IGNORECASE),
    re.compile(rf"ending in\s+(\d{{4}}){_END}", re.IGNORECASE),
]
LAST_FOUR_FALLBACK = re.compile(rf"{_MASK}(\d{{4}}){_END}", re.IGNORECASE)

_AMOUNT = r"[$£€]?(\d{1,3}(?:,\d{3})*(?:\.\d{2})?)"
BALANCE_PATTERNS = [
    re.compile(rf"(?:current balance|ending balance|new balance|balance|total due)(?:\s|:)+{_AMOUNT}{_END}", re.IGNORECASE),
    re.compile(
        rf"(?:balance(?:\s|:)+(?:as of|on)(?:\s|:)+\d{{1,2}}/\d{{1,2}}/\d{{2,4}}(?:\s|:)+)?{_AMOUNT}{_END}",
        re.IGNORECASE,
    ),
    re.compile(rf"[$£€](\d{{1,3}}(?:,\d{{3}})*(?:\.\d{{2}})?)(?:\s+(?:cr|dr))?{_END}", re.IGNORECASE),
]

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"
PERIOD_PATTERNS = [
    re.compile(rf"statement period:?\s+{_DATE}\s+(?:to|-|through)\s+{_DATE}", re.IGNORECASE),
    re.compile(rf"(?:billing|statement) cycle:?\s+{_DATE}\s+(?:to|-|through)\s+{_DATE}", re.IGNORECASE),
    re.compile(rf"from\s+{_DATE}\s+(?:to|-|through)\s+{_DATE}", re.IGNORECASE),
]
STATEMENT_DATE_PATTERNS = [
    re.compile(rf"statement date:?\s+{_DATE}", re.IGNORECASE),
    re.compile(rf"as of:?\s+{_DATE}", re.IGNORECASE),
    re.compile(rf"closing date:?\s+{_DATE}", re.IGNORECASE),
]


@dataclass
class ExtractedAccountInfo:
    account_name: str | None = None
    financial_institution: str | None = None
    last_four_digits: str | None = None
    account_type: AccountType | None = None
    balance: float | None = None


@dataclass
class StatementPeriod:
    start: date | None = None
    end: date | None = None


def extract_account_info(text: str) -> ExtractedAccountInfo:
    """Best-effort account description from unstructured statement text."""
    institution = extract_financial_institution(text)
    return ExtractedAccountInfo(
        account_name=extract_account_name(text, institution),
        financial_institution=institution,
        last_four_digits=extract_last_four_digits(text),
        account_type=extract_account_type(text),
        balance=extract_balance(text),
    )


def extract_financial_institution(text: str) -> str | None:
    lower_text = text.lower()
    for bank in COMMON_BANKS:
        if re.search(rf"\b{re.escape(bank)}\b", lower_text):
            return " ".join(word.capitalize() for word in bank.split(" "))

    for pattern in BANK_NAME_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1).strip()

    return None


def extract_account_type(text: str) -> AccountType:
    """Keyword classification: checking, then savings, credit, investment, else OTHER."""
    lower_text = text.lower()
    for account_type, keywords in ACCOUNT_TYPE_KEYWORDS:
        if any(keyword in lower_text for keyword in keywords):
            return account_type

    for account_type, pattern in ACCOUNT_TYPE_PATTERNS:
        if pattern.search(text):
            return account_type

    return AccountType.OTHER


def extract_account_name(text: str, bank: str | None = None) -> str | None:
    for pattern in ACCOUNT_NAME_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()

    if bank:
        account_type = extract_account_type(text)
        return f"{bank} {account_type.capitalize()}"

    return None


def extract_last_four_digits(text: str) -> str | None:
    """Last four account digits, trying explicit labels before masked groups."""
    for pattern in LAST_FOUR_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)

    match = LAST_FOUR_FALLBACK.search(text)
    if match:
        return match.group(1)

    return None


def extract_balance(text: str) -> float | None:
    """Labeled balances first, then any currency-looking number."""
    for pattern in BALANCE_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return float(match.group(1).replace(",", ""))
    return None


def parse_us_date(value: str) -> date | None:
    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def extract_statement_period(text: str) -> StatementPeriod:
    """
    Statement period from explicit "from X to Y" style phrasing.

    Falls back to a single statement / as-of / closing date, taken as the
    period end, with the start estimated as the first of that month.
    """
    for pattern in PERIOD_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        start, end = parse_us_date(match.group(1)), parse_us_date(match.group(2))
        if start and end:
            return StatementPeriod(start=start, end=end)
        logger.warning(f"Failed to parse dates: {match.group(1)}, {match.group(2)}")

    for pattern in STATEMENT_DATE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        end = parse_us_date(match.group(1))
        if end:
            return StatementPeriod(start=end.replace(day=1), end=end)
        logger.warning(f"Failed to parse date: {match.group(1)}")

    return StatementPeriod()


def normalize_account_type(raw: str | None) -> AccountType:
    """Map a parser's account type (product name or enum value) to AccountType."""
    if not raw:
        return AccountType.OTHER

    value = raw.strip()
    if value.upper() in AccountType.__members__:
        return AccountType(value.upper())

    product = PRODUCT_ACCOUNT_TYPES.get(value.lower())
    if product:
        return product

    return extract_account_type(value)


def statement_fingerprint(text: str) -> dict:
    """Identity of a statement for duplicate-upload detection."""
    info = extract_account_info(text)
    period = extract_statement_period(text)
    return {
        "financialInstitution": info.financial_institution,
        "lastFourDigits": info.last_four_digits,
        "periodStart": period.start.isoformat() if period.start else None,
        "periodEnd": period.end.isoformat() if period.end else None,
    }
