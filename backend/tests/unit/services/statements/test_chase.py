"""Tests for the Chase parser."""

from unittest.mock import patch

import pytest

from statement_pipeline.services.statements.parsers import ChaseStatementParser


class TestChaseStatement:
    """Tests for a single-account Chase statement."""

    @pytest.mark.asyncio
    async def test_account_and_period(self, loader_factory, chase_pages):
        """Account details come from the summary page."""
        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader_factory(chase_pages)).process()

        assert data.bank_name == "Chase"
        assert data.statement_period_start_date == "March 12, 2024"
        assert data.statement_period_end_date == "April 10, 2024"

        account = data.accounts[0]
        assert account.account_number_last4 == "6789"
        assert account.account_type == "Chase Total Checking"
        assert account.page_reference == 1

    @pytest.mark.asyncio
    async def test_summary_with_item_counts(self, loader_factory, chase_pages):
        """Item count columns are skipped when reading totals."""
        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader_factory(chase_pages)).process()

        metadata = data.accounts[0].metadata
        assert metadata.beginning_balance == 2000.0
        assert metadata.deposits_total == 1500.0
        assert metadata.atm_debit_total == 80.0
        assert metadata.other_subtractions == 400.0
        assert metadata.ending_balance == 3020.0

    @pytest.mark.asyncio
    async def test_transactions(self, loader_factory, chase_pages):
        """Sections are read below their titles, not from the summary."""
        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader_factory(chase_pages)).process()

        transactions = data.accounts[0].all_transactions
        assert [t.amount for t in transactions.deposits] == [1500.0]
        assert [t.amount for t in transactions.atm_debit] == [-80.0]
        assert transactions.withdrawals == []
        assert transactions.deposits[0].date == "03/15"

    @pytest.mark.asyncio
    async def test_numeric_period(self, loader_factory):
        """A numeric statement period is preferred."""
        loader = loader_factory(
            [
                [
                    (0.05, ["Chase"]),
                    (0.10, ["Statement Period: 03/12/24 to 04/10/24"]),
                    (0.15, ["Account Number: 000000123456789"]),
                ]
            ]
        )

        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader).process()

        assert data.statement_period_start_date == "03/12/24"
        assert data.statement_period_end_date == "04/10/24"
        assert data.accounts[0].account_number_last4 == "6789"

    @pytest.mark.asyncio
    async def test_summary_page_after_cover(self, loader_factory, chase_pages):
        """The account is anchored on the first page with a summary."""
        loader = loader_factory([[(0.05, ["JPMorgan Chase Bank, N.A."])], *chase_pages])

        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader).process()

        account = data.accounts[0]
        assert account.page_reference == 2
        assert account.metadata.ending_balance == 3020.0
        assert [t.amount for t in account.all_transactions.deposits] == [1500.0]

    @pytest.mark.asyncio
    async def test_account_template_fills_gaps(self, loader_factory):
        """Account number and balances the text sweep misses come from the account template."""
        loader = loader_factory(
            [
                [
                    (0.05, ["Chase"]),
                    (0.10, ["Primary checking account ending in 4321"]),
                    (0.15, ["Opening balance: $1,000.00"]),
                    (0.20, ["Closing balance: $1,250.00"]),
                ]
            ]
        )

        data = await ChaseStatementParser("statement.pdf", "application/pdf", loader).process()

        account = data.accounts[0]
        assert account.account_number_last4 == "4321"
        assert account.account_type == "Checking"
        assert account.metadata.beginning_balance == 1000.0
        assert account.metadata.ending_balance == 1250.0

    @pytest.mark.asyncio
    async def test_pages_without_sections_skipped(self, loader_factory, chase_pages):
        """Only pages carrying a section title are searched for transactions."""
        loader = loader_factory([*chase_pages, [(0.05, ["Important disclosures"])]])
        parser = ChaseStatementParser("statement.pdf", "application/pdf", loader)

        with patch.object(
            ChaseStatementParser, "extract_section_transactions", autospec=True, return_value=[]
        ) as mock_extract:
            await parser.process()

        assert {call.args[1].page_number for call in mock_extract.call_args_list} == {1}

    @pytest.mark.asyncio
    async def test_tables_located_through_loader(self, loader_factory, chase_pages):
        """Summary and transaction table candidates are found by header terms."""
        loader = loader_factory(chase_pages)
        parser = ChaseStatementParser("statement.pdf", "application/pdf", loader)

        with patch.object(loader, "find_tables", wraps=loader.find_tables) as mock_find_tables:
            await parser.process()

        mock_find_tables.assert_any_call(1, ["beginning balance"])
        mock_find_tables.assert_any_call(1, ["date", "description", "amount"])
