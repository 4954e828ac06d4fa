"""
Test suite for the wallet statement extractor.
"""
import json
from decimal import InvalidOperation

import pytest

import wallet_parser
from wallet_parser.core import rules as rules_module
from wallet_parser.core.loader import preprocess_lines
from wallet_parser.core.runner import StatementExtractor, parse_lines, parse_text
from wallet_parser.models.schema import ExtractionResult, StatementRecord

SAMPLE_TEXT = """
        Wallet Statement
Ada Obi
Account Number: 0123456789
Statement Period
01 Mar 2025 - 31 Mar 2025
Opening Balance NGN 5,000.00
Closing Balance NGN 9,250.00

March 5, 2025
09:15:30 Transfer from Musa/Salary TXT-1001 NGN 10,000.00 NGN 5,000.00
14:02:11 POS Purchase/Shoprite TXT-1002 NGN 9,250.00 NGN 750.00
March 6, 2025
08:00:00 Airtime/MTN NGN 9,150.00
"""


class TestWalletStatementV1:
    """Test cases for the wallet statement template."""

    @pytest.fixture
    def sample_lines(self):
        return preprocess_lines(SAMPLE_TEXT)

    @pytest.fixture
    def extractor(self):
        return StatementExtractor("wallet_statement_v1")

    def test_metadata(self, sample_lines):
        """Test that header metadata is extracted."""
        result = parse_lines(sample_lines)

        assert result.account_holder == "Ada Obi"
        assert result.account_number == "0123456789"
        assert result.statement_period == "01 Mar 2025 - 31 Mar 2025"
        assert result.opening_balance == "NGN 5,000.00"
        assert result.closing_balance == "NGN 9,250.00"

    def test_transactions(self, sample_lines):
        """Test that transaction lines are decomposed in document order."""
        result = parse_lines(sample_lines)

        assert len(result.transactions) == 2
        first, second = result.transactions

        assert first.date == "March 5, 2025"
        assert first.time == "09:15:30"
        assert first.type == "Credit"
        assert first.amount == "NGN 5,000.00"
        assert first.balance == "NGN 10,000.00"
        assert first.category == "Wallet"
        assert first.to_from == "Transfer from Musa"
        assert first.description == "Transfer from Musa/Salary TXT-1001"
        assert first.transaction_reference == "TXT-1001"

        assert second.time == "14:02:11"
        assert second.amount == "NGN 750.00"
        assert second.balance == "NGN 9,250.00"
        assert second.to_from == "POS Purchase"
        assert second.transaction_reference == "TXT-1002"

    def test_single_amount_line_is_skipped(self, extractor):
        """A line with one currency amount emits no record and no failure."""
        result = extractor.extract(["08:00:00 Airtime/MTN NGN 9,150.00"])

        assert result.statement.transactions == []
        assert result.failures == []

    def test_empty_document_defaults(self):
        """Test that every field falls back to its default."""
        result = parse_lines([])

        assert result == StatementRecord()
        assert result.account_holder == "Unknown"
        assert result.account_number == "Unknown"
        assert result.opening_balance == "NGN 0.00"
        assert result.closing_balance == "NGN 0.00"
        assert result.statement_period == "Unknown"
        assert result.transactions == []

    def test_account_number_and_opening_balance_only(self):
        result = parse_lines(["Account Number 0123456789", "Opening Balance NGN 5,000.00"])

        assert result.account_number == "0123456789"
        assert result.opening_balance == "NGN 5,000.00"
        assert result.transactions == []

    def test_smaller_amount_without_credit_word(self):
        """Amount below the balance and no "credit" word is labelled Credit."""
        result = parse_lines(["10:00:00 Transfer to Bola/Rent NGN 10,000.00 NGN 500.00"])

        transaction = result.transactions[0]
        assert transaction.type == "Credit"
        assert transaction.balance == "NGN 10,000.00"
        assert transaction.amount == "NGN 500.00"

    def test_amount_above_balance_is_labelled_debit(self):
        """Amount above the balance meets the credit condition, labelled Debit."""
        result = parse_lines(["09:15:30 Deposit NGN 1,000.00 NGN 1,500.00"])

        transaction = result.transactions[0]
        assert transaction.time == "09:15:30"
        assert transaction.type == "Debit"
        assert transaction.amount == "NGN 1,500.00"
        assert transaction.balance == "NGN 1,000.00"

    def test_credit_word_is_labelled_debit(self):
        result = parse_lines(["11:30:00 Wallet Credit/Reversal NGN 2,000.00 NGN 100.00"])

        assert result.transactions[0].type == "Debit"

    def test_description_and_counterparty(self):
        result = parse_lines(["09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00"])

        transaction = result.transactions[0]
        assert transaction.description == "Transfer to John/Ref"
        assert transaction.to_from == "Transfer to John"
        assert transaction.transaction_reference == "Unknown"

    def test_counterparty_without_separator(self):
        result = parse_lines(["09:00:00 Cash deposit NGN 200.00 NGN 50.00"])

        transaction = result.transactions[0]
        assert transaction.description == "Cash deposit"
        assert transaction.to_from == "Cash deposit"

    def test_date_context_carries_forward(self):
        lines = [
            "March 5, 2025",
            "09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00",
            "Some unrelated line",
            "10:00:00 Transfer to Ada/Ref NGN 150.00 NGN 50.00",
            "March 7, 2025",
            "11:00:00 Transfer to Femi/Ref NGN 100.00 NGN 50.00",
        ]
        dates = [t.date for t in parse_lines(lines).transactions]

        assert dates == ["March 5, 2025", "March 5, 2025", "March 7, 2025"]

    def test_fallback_date_before_any_heading(self):
        result = parse_lines(["09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00"])

        assert result.transactions[0].date == "2025-03-05"

    def test_header_marker_on_last_line(self):
        result = parse_lines(["Account Number 123", "Wallet Statement"])

        assert result.account_holder == "Unknown"

    def test_balance_marker_without_amount(self):
        result = parse_lines(["Closing Balance", "Account Number N/A"])

        assert result.closing_balance == "NGN 0.00"
        assert result.account_number == "Unknown"

    def test_line_failure_is_recorded_and_scan_continues(self, extractor, monkeypatch):
        """A malformed transaction line is skipped without aborting the scan."""
        original = rules_module.find_amounts

        def flaky_find_amounts(line, pattern):
            if "BROKEN" in line:
                raise InvalidOperation("malformed amount")
            return original(line, pattern)

        monkeypatch.setattr(rules_module, "find_amounts", flaky_find_amounts)

        lines = [
            "09:00:00 BROKEN/Ref NGN 200.00 NGN 50.00",
            "10:00:00 Transfer to Ada/Ref NGN 150.00 NGN 50.00",
        ]
        result = extractor.extract(lines)

        assert isinstance(result, ExtractionResult)
        assert len(result.statement.transactions) == 1
        assert result.statement.transactions[0].to_from == "Transfer to Ada"
        assert len(result.failures) == 1
        assert result.failures[0].line_number == 1
        assert result.failures[0].line == lines[0]
        assert "malformed amount" in result.failures[0].error

    def test_parse_text_matches_parse_lines(self, sample_lines):
        assert parse_text(SAMPLE_TEXT) == parse_lines(sample_lines)

    def test_idempotence(self, sample_lines):
        """Parsing the same lines twice gives byte-identical output."""
        first = parse_lines(sample_lines).model_dump_json()
        second = parse_lines(sample_lines).model_dump_json()

        assert first == second

    def test_extractors_do_not_share_state(self, extractor, sample_lines):
        extractor.extract(sample_lines)
        later = extractor.extract(["09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00"])

        assert later.statement.account_holder == "Unknown"
        assert later.statement.transactions[0].date == "2025-03-05"

    def test_json_shape(self, sample_lines):
        data = json.loads(parse_lines(sample_lines).model_dump_json())

        assert list(data) == [
            "account_holder", "account_number", "opening_balance",
            "closing_balance", "statement_period", "transactions",
        ]
        assert list(data["transactions"][0]) == [
            "date", "time", "type", "amount", "balance", "category",
            "to_from", "description", "transaction_reference",
        ]

    def test_schema_round_trip(self, sample_lines):
        result = parse_lines(sample_lines)

        recreated = StatementRecord.model_validate_json(result.model_dump_json())
        assert recreated == result

    def test_line_matching_several_rules(self, extractor):
        """Every rule a line triggers is applied, not just the first."""
        line = "Closing Balance NGN 9,250.00 09:00:00 Reversal NGN 100.00 NGN 5.00"
        result = parse_lines([line])

        assert result.closing_balance == "NGN 9,250.00"
        assert len(result.transactions) == 1
        assert result.transactions[0].balance == "NGN 9,250.00"
        assert result.transactions[0].amount == "NGN 100.00"
        assert extractor.classify([line]) == [["closing_balance", "transaction"]]

    def test_non_ascii_digits_are_ignored(self):
        result = parse_lines(["Account Number \u0661\u0662\u0663 / 0123456789", "Mar\u00e7o 5, 2025",
                              "09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00"])

        assert result.account_number == "0123456789"
        assert result.transactions[0].date == "2025-03-05"

    def test_package_author(self):
        assert wallet_parser.__author__ == "Wallet Parser Developers"

    def test_classify(self, extractor):
        labels = extractor.classify([
            "Wallet Statement",
            "March 5, 2025",
            "09:00:00 Transfer to John/Ref NGN 200.00 NGN 50.00",
            "nothing here",
        ])

        assert labels == [["account_holder"], ["date_heading"], ["transaction"], []]

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            StatementExtractor("invalid_template")
