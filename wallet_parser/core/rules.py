"""
Line rules for the single-pass statement scan.

Every rule pairs a pure predicate (``matches``) with an extractor
(``apply``) that records what it found on the scan state. Rules are
independent: the extractor checks all of them against every line, so one
line may trigger several.
"""
import re
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from .normalize import (
    currency_amount_pattern, currency_strip_pattern, find_amounts,
    first_decimal, first_digits, format_money,
)
from ..models.schema import (
    UNKNOWN, ZERO_BALANCE, LineFailure, StatementRecord, TransactionRecord,
)

logger = logging.getLogger(__name__)

METADATA_FIELDS = (
    'account_holder', 'account_number', 'opening_balance',
    'closing_balance', 'statement_period',
)


class ScanState:
    """Running state for one forward scan over a statement's lines."""

    def __init__(self):
        self.fields: Dict[str, str] = {}
        self.current_date: Optional[str] = None
        self.last_balance: Optional[Decimal] = None
        self.transactions: List[TransactionRecord] = []
        self.failures: List[LineFailure] = []

    def to_statement(self) -> StatementRecord:
        return StatementRecord(
            **{name: self.fields[name] for name in METADATA_FIELDS if name in self.fields},
            transactions=list(self.transactions)
        )


class LineRule:
    """Base class for a line category."""
    name = "rule"

    def matches(self, line: str) -> bool:
        raise NotImplementedError

    def apply(self, state: ScanState, lines: List[str], index: int) -> None:
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}('{self.name}')"


class FieldRule(LineRule):
    """Metadata field found by a marker phrase and read with a strategy."""

    STRATEGIES = ('next_line', 'digits', 'money')

    def __init__(self, field_name: str, marker: str, strategy: str, currency: str = "NGN"):
        if strategy not in self.STRATEGIES:
            raise ValueError(f"Unknown extraction strategy: {strategy}")
        self.name = field_name
        self.marker = marker
        self.strategy = strategy
        self.currency = currency

    def matches(self, line: str) -> bool:
        return self.marker in line

    def extract(self, lines: List[str], index: int) -> str:
        line = lines[index]
        if self.strategy == 'next_line':
            following = lines[index + 1].strip() if index + 1 < len(lines) else ""
            return following or UNKNOWN
        if self.strategy == 'digits':
            return first_digits(line) or UNKNOWN
        return f"{self.currency} {first_decimal(line) or '0.00'}"

    def apply(self, state: ScanState, lines: List[str], index: int) -> None:
        value = self.extract(lines, index)
        state.fields[self.name] = value
        logger.debug(f"Line {index + 1}: {self.name} = {value}")


class DateHeadingRule(LineRule):
    """A line that is exactly a date heading, e.g. "March 5, 2025"."""
    name = "date_heading"

    def __init__(self, pattern: str = r'\w+ \d{1,2}, \d{4}'):
        self.pattern = re.compile(pattern, re.ASCII)

    def matches(self, line: str) -> bool:
        return self.pattern.fullmatch(line) is not None

    def apply(self, state: ScanState, lines: List[str], index: int) -> None:
        state.current_date = lines[index]


class TransactionRule(LineRule):
    """A line with a time token and currency amounts."""
    name = "transaction"

    def __init__(self, currency: str = "NGN", category: str = "Wallet",
                 fallback_date: str = "2025-03-05",
                 time_pattern: str = r'\d{1,2}:\d{2}:\d{2}',
                 reference_pattern: str = r'TXT-\d+',
                 credit_keyword: str = "credit",
                 counterparty_separator: str = "/",
                 min_amounts: int = 2):
        self.currency = currency
        self.category = category
        self.fallback_date = fallback_date
        self.time_re = re.compile(time_pattern, re.ASCII)
        self.reference_re = re.compile(reference_pattern, re.ASCII)
        self.credit_keyword = credit_keyword.lower()
        self.separator = counterparty_separator
        self.min_amounts = min_amounts
        self.amount_re = currency_amount_pattern(currency)
        self.strip_re = currency_strip_pattern(currency)

    def matches(self, line: str) -> bool:
        return self.time_re.search(line) is not None and self.currency in line

    def apply(self, state: ScanState, lines: List[str], index: int) -> None:
        line = lines[index]
        try:
            record = self.decompose(line, state)
        except Exception as e:
            logger.warning(f"Error parsing transaction line {index + 1}: {e} | {line}")
            state.failures.append(LineFailure(line_number=index + 1, line=line, error=str(e)))
            return

        if record is not None:
            state.transactions.append(record)

    def decompose(self, line: str, state: ScanState) -> Optional[TransactionRecord]:
        """
        Turn a transaction line into a record.

        The first amount on the line is the running balance after the
        transaction, the second is the transaction amount.

        Returns:
            TransactionRecord, or None when the line has too few amounts
        """
        time_match = self.time_re.search(line)
        amounts = find_amounts(line, self.amount_re)
        if len(amounts) < self.min_amounts:
            logger.debug(f"Skipping line with {len(amounts)} amount(s): {line}")
            return None

        balance, amount = amounts[0], amounts[1]
        state.last_balance = balance

        # Output labels are the inverse of this condition.
        is_credit = self.credit_keyword in line.lower() or amount > balance

        reference_match = self.reference_re.search(line)
        description = line.replace(time_match.group(), "", 1) if time_match else line
        description = self.strip_re.sub("", description).strip()
        to_from = description.split(self.separator, 1)[0].strip()

        if state.last_balance is not None:
            balance_text = format_money(state.last_balance, self.currency)
        else:
            balance_text = state.fields.get('closing_balance', ZERO_BALANCE)

        return TransactionRecord(
            date=state.current_date or self.fallback_date,
            time=time_match.group() if time_match else UNKNOWN,
            type="Debit" if is_credit else "Credit",
            amount=format_money(amount, self.currency),
            balance=balance_text,
            category=self.category,
            to_from=to_from,
            description=description,
            transaction_reference=reference_match.group() if reference_match else UNKNOWN
        )


def build_rules(template: Dict[str, Any]) -> List[LineRule]:
    """
    Build the rule set described by a template configuration.

    Metadata rules come first, then the date heading, then transactions,
    so a transaction always sees the date context of earlier lines.

    Args:
        template: Template configuration from YAML

    Returns:
        Ordered list of rules
    """
    currency = template.get('currency', 'NGN')
    rules: List[LineRule] = []

    for field_name, field_config in template.get('fields', {}).items():
        if field_name not in METADATA_FIELDS:
            logger.warning(f"Ignoring unknown template field: {field_name}")
            continue
        rules.append(FieldRule(
            field_name,
            field_config['find'],
            field_config.get('strategy', 'next_line'),
            currency
        ))

    transactions_config = template.get('transactions', {})
    date_pattern = transactions_config.get('date_heading_pattern')
    rules.append(DateHeadingRule(date_pattern) if date_pattern else DateHeadingRule())

    options = {
        key: transactions_config[key]
        for key in ('time_pattern', 'reference_pattern', 'credit_keyword',
                    'counterparty_separator', 'min_amounts')
        if key in transactions_config
    }
    rules.append(TransactionRule(
        currency=currency,
        category=template.get('category', 'Wallet'),
        fallback_date=str(template.get('fallback_date', '2025-03-05')),
        **options
    ))
    return rules
