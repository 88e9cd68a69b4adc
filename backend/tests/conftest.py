"""Test configuration and fixtures.

Fixtures build real Document AI ``Document`` protos from compact row specs, so
page building, caching and the parsers run end to end without network access.
"""

import os
import tempfile

# Override settings before importing statement_pipeline modules
os.environ["GOOGLE_CLOUD_PROJECT_ID"] = "test-project"
os.environ["GOOGLE_CLOUD_LOCATION"] = "us"
os.environ["GOOGLE_DOCUMENT_AI_FORM_PROCESSOR_ID"] = "test-form-processor"
os.environ["GOOGLE_DOCUMENT_AI_OCR_PROCESSOR_ID"] = "test-ocr-processor"
os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = ""
os.environ["OCR_CACHE_DIR"] = tempfile.mkdtemp(prefix="ocr-cache-")
os.environ["STORAGE_SERVICE_KEY"] = ""
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

import pytest
from google.cloud import documentai

from statement_pipeline.services.document import DocumentLoader, OCRCache

Row = tuple[float, list[str]]

ROW_HALF_HEIGHT = 0.01
CELL_STEP = 0.23
CELL_WIDTH = 0.2


def _layout(start: int, end: int, box: tuple[float, float, float, float] | None = None):
    layout = documentai.Document.Page.Layout(
        text_anchor=documentai.Document.TextAnchor(
            text_segments=[documentai.Document.TextAnchor.TextSegment(start_index=start, end_index=end)]
        )
    )
    if box is not None:
        x1, y1, x2, y2 = box
        layout.bounding_poly = documentai.BoundingPoly(
            normalized_vertices=[
                documentai.NormalizedVertex(x=x1, y=y1),
                documentai.NormalizedVertex(x=x2, y=y1),
                documentai.NormalizedVertex(x=x2, y=y2),
                documentai.NormalizedVertex(x=x1, y=y2),
            ]
        )
    return layout


def row_blocks(rows: list[Row]) -> list[tuple[str, tuple[float, float, float, float]]]:
    """Expand (center_y, cells) rows into positioned blocks, cells laid out left to right."""
    blocks = []
    for center_y, cells in rows:
        for index, text in enumerate(cells):
            x1 = 0.05 + CELL_STEP * index
            blocks.append(
                (text, (x1, center_y - ROW_HALF_HEIGHT, x1 + CELL_WIDTH, center_y + ROW_HALF_HEIGHT))
            )
    return blocks


def build_document(
    pages: list[list[Row]],
    tables: dict[int, list[list[str]]] | None = None,
    use_tokens: bool = False,
) -> documentai.Document:
    """
    Document with one paragraph (or token) per cell.

    ``tables`` maps a 1-based page number to the header rows of the tables
    detected on that page.
    """
    tables = tables or {}
    text = ""
    doc_pages = []

    for page_number, rows in enumerate(pages, start=1):
        page_start = len(text)
        units = []
        for block_text, box in row_blocks(rows):
            start = len(text)
            text += block_text
            units.append(_layout(start, len(text), box))
            text += "\n"
        page_end = len(text)

        page_tables = []
        for header_cells in tables.get(page_number, []):
            cells = []
            for header in header_cells:
                start = len(text)
                text += header
                cells.append(documentai.Document.Page.Table.TableCell(layout=_layout(start, len(text))))
                text += "\n"
            page_tables.append(
                documentai.Document.Page.Table(
                    header_rows=[documentai.Document.Page.Table.TableRow(cells=cells)],
                    body_rows=[documentai.Document.Page.Table.TableRow()],
                )
            )

        if use_tokens:
            text_units = {"tokens": [documentai.Document.Page.Token(layout=layout) for layout in units]}
        else:
            text_units = {"paragraphs": [documentai.Document.Page.Paragraph(layout=layout) for layout in units]}

        doc_pages.append(
            documentai.Document.Page(
                page_number=page_number,
                layout=_layout(page_start, page_end),
                tables=page_tables,
                **text_units,
            )
        )

    return documentai.Document(text=text, pages=doc_pages)


@pytest.fixture
def document_factory():
    """Factory building Document protos from row specs."""
    return build_document


@pytest.fixture
def ocr_cache(tmp_path):
    return OCRCache(tmp_path / "cache")


@pytest.fixture
def loader_factory(ocr_cache):
    """Factory for a DocumentLoader already holding a document built from row specs."""

    def _make(pages: list[list[Row]], tables: dict[int, list[list[str]]] | None = None) -> DocumentLoader:
        loader = DocumentLoader(cache=ocr_cache)
        loader.document = build_document(pages, tables)
        loader.source_path = "statement.pdf"
        loader.mime_type = "application/pdf"
        return loader

    return _make


@pytest.fixture
def statement_file(tmp_path):
    """A local source file; its bytes only feed the content hash."""
    path = tmp_path / "statement.pdf"
    path.write_bytes(b"%PDF-1.4 test statement")
    return path


# Page layouts shared by parser and pipeline tests

BOA_SINGLE_ACCOUNT_PAGES: list[list[Row]] = [
    [
        (0.05, ["Bank of America"]),
        (0.10, ["Account number: ****1234"]),
        (0.15, ["Savings"]),
        (0.20, ["for March 1, 2024 to March 31, 2024"]),
        (0.30, ["Account summary"]),
        (0.35, ["Beginning balance on March 1, 2024", "$1,000.00"]),
        (0.40, ["Deposits and other additions", "500.00"]),
        (0.45, ["Withdrawals and other subtractions", "-200.00"]),
        (0.50, ["Ending balance on March 31, 2024", "$1,300.00"]),
        (0.60, ["Deposits and other additions"]),
        (0.65, ["Date", "Description", "Amount"]),
        (0.70, ["03/05/24", "Payroll ACME", "500.00"]),
        (0.75, ["Total deposits and other additions", "$500.00"]),
        (0.80, ["Withdrawals and other subtractions"]),
        (0.85, ["Date", "Description", "Amount"]),
        (0.90, ["03/10/24", "Rent payment", "200.00"]),
        (0.95, ["Total withdrawals and other subtractions", "-$200.00"]),
    ],
    [
        (0.05, ["Account number: ****1234"]),
        (0.10, ["ATM and debit card subtractions"]),
        (0.15, ["Date", "Transaction description", "Amount"]),
        (0.20, ["03/12/24", "CHECKCARD 0312 COFFEE", "4.50"]),
        (0.25, ["03/15/24", "ATM WITHDRAWAL", "(60.00)"]),
        (0.30, ["Total ATM and debit card subtractions", "-$64.50"]),
        (0.40, ["Service fees"]),
        (0.45, ["Date", "Transaction description", "Amount"]),
        (0.50, ["03/31/24", "Monthly Maintenance Fee", "12.00"]),
        (0.55, ["Total service fees", "-$12.00"]),
    ],
]

BOA_SUMMARY_HEADERS = ["Your deposit accounts", "Account/Plan number", "Ending balance", "Details on"]


def boa_combined_pages() -> list[list[Row]]:
    """Fifteen-page combined statement with accounts starting on pages 3, 7 and 12."""
    pages: list[list[Row]] = [[] for _ in range(15)]
    pages[0] = [
        (0.05, ["Bank of America"]),
        (0.10, ["Your combined statement"]),
        (0.15, ["for January 1, 2024 to January 31, 2024"]),
        (0.25, BOA_SUMMARY_HEADERS),
        (0.30, ["Adv Plus Banking", "0000 1111 2222", "$1,500.00", "Page 3"]),
        (0.35, ["Advantage Savings", "0000 3333 4444", "$2,000.00", "Page 7"]),
        (0.40, ["Regular Savings", "0000 5555 6666", "$500.25", "Page 12"]),
        (0.45, ["Total balance", "$4,000.25"]),
    ]
    pages[2] = [
        (0.05, ["Adv Plus Banking", "Account number: 0000 1111 2222"]),
        (0.10, ["Account summary"]),
        (0.15, ["Beginning balance on January 1, 2024", "$1,200.00"]),
        (0.20, ["Ending balance on January 31, 2024", "$1,500.00"]),
    ]
    pages[3] = [
        (0.10, ["Deposits and other additions"]),
        (0.15, ["Date", "Description", "Amount"]),
        (0.20, ["01/05/24", "Transfer from savings", "250.00"]),
        (0.25, ["Total deposits and other additions", "$250.00"]),
    ]
    pages[4] = [
        (0.05, ["Account number: 0000 9999 8888"]),
        (0.10, ["Deposits and other additions"]),
        (0.15, ["Date", "Description", "Amount"]),
        (0.20, ["01/07/24", "Unrelated deposit", "999.00"]),
        (0.25, ["Total deposits and other additions", "$999.00"]),
    ]
    pages[6] = [(0.05, ["Advantage Savings", "Account number: 0000 3333 4444"])]
    pages[11] = [(0.05, ["Regular Savings", "Account number: 0000 5555 6666"])]
    return pages


CHASE_PAGES: list[list[Row]] = [
    [
        (0.05, ["JPMorgan Chase Bank, N.A."]),
        (0.10, ["March 12, 2024 through April 10, 2024"]),
        (0.15, ["Account Number: 000000123456789"]),
        (0.20, ["Chase Total Checking"]),
        (0.25, ["CHECKING SUMMARY"]),
        (0.30, ["Beginning Balance", "$2,000.00"]),
        (0.35, ["Deposits and Additions", "3", "1,500.00"]),
        (0.40, ["ATM & Debit Card Withdrawals", "2", "-80.00"]),
        (0.45, ["Electronic Withdrawals", "1", "-400.00"]),
        (0.50, ["Ending Balance", "6", "$3,020.00"]),
        (0.60, ["DEPOSITS AND ADDITIONS"]),
        (0.65, ["DATE", "DESCRIPTION", "AMOUNT"]),
        (0.70, ["03/15", "Payroll Direct Dep", "$1,500.00"]),
        (0.75, ["Total Deposits and Additions", "$1,500.00"]),
        (0.80, ["ATM & DEBIT CARD WITHDRAWALS"]),
        (0.85, ["DATE", "DESCRIPTION", "AMOUNT"]),
        (0.90, ["03/20", "Card Purchase Grocery", "80.00"]),
        (0.95, ["Total ATM & Debit Card Withdrawals", "$80.00"]),
    ],
]


@pytest.fixture
def boa_single_account_pages():
    return BOA_SINGLE_ACCOUNT_PAGES


@pytest.fixture
def boa_combined():
    """(pages, tables) of a combined statement whose page 1 has a detected summary table."""
    return boa_combined_pages(), {1: [BOA_SUMMARY_HEADERS]}


@pytest.fixture
def chase_pages():
    return CHASE_PAGES
