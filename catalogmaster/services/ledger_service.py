"""Transaction ledger service for CatalogMaster.

This service handles income/expense records:
- Add, update (keeping the original PIC) and remove
- Inclusive date-range queries, newest first
- Income/expense/net aggregation over a queried set
"""
import uuid
from datetime import datetime, date
from dateutil.relativedelta import relativedelta
from numbers import Number

import pandas as pd

from catalogmaster import config
from catalogmaster.access import Permission, require_permission
from catalogmaster.data_structures import LedgerSummary, Transaction, TransactionType
from catalogmaster.exceptions import ValidationError
from catalogmaster.result import Result, ErrorType


def parse_iso_date(value, field="date"):
    """Validate a YYYY-MM-DD string and return it unchanged.

    Raises:
        ValidationError: If the value is not a valid ISO calendar date.
    """
    try:
        datetime.strptime(str(value), config.DATE_FORMAT_STORAGE)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field} '{value}'. Expected YYYY-MM-DD.", field)
    if len(str(value)) != 10:
        raise ValidationError(f"Invalid {field} '{value}'. Expected YYYY-MM-DD.", field)
    return str(value)


def validate_transaction(transaction):
    """Check a transaction before it is written.

    A zero amount counts as missing.

    Raises:
        ValidationError: On the first problem found.
    """
    amount = transaction.amount
    if amount is None or amount == "":
        raise ValidationError("Amount is required", "amount")
    if isinstance(amount, bool) or not isinstance(amount, Number):
        raise ValidationError("Amount must be a number", "amount")
    if amount < 0:
        raise ValidationError("Amount cannot be negative", "amount")
    if amount == 0:
        raise ValidationError("Amount is required", "amount")
    if not transaction.description or not str(transaction.description).strip():
        raise ValidationError("Description is required", "description")
    if transaction.type not in TransactionType.ALL:
        raise ValidationError(f"Unknown transaction type '{transaction.type}'", "type")
    parse_iso_date(transaction.date)


def summarize(transactions):
    """Totals for a list of transactions. An empty list gives all zeros."""
    if not transactions:
        return LedgerSummary()

    df = pd.DataFrame([t.to_dict() for t in transactions])
    totals = df.groupby("type")["amount"].sum()
    total_income = float(totals.get(TransactionType.INCOME, 0.0))
    total_expense = float(totals.get(TransactionType.EXPENSE, 0.0))
    return LedgerSummary(
        total_income=total_income,
        total_expense=total_expense,
        net_balance=total_income - total_expense,
    )


class LedgerService:
    """Handles ledger operations."""

    def __init__(self, transactions):
        """Initialize LedgerService.

        Args:
            transactions: TransactionRepository for persistence.
        """
        self.transactions = transactions

    def get_ledger_df(self):
        """All transactions as a DataFrame, with `seq` holding insertion order."""
        records = self.transactions.read_raw()
        df = pd.DataFrame(records, columns=["id", "date", "type", "description", "amount", "pic"])
        df["seq"] = range(len(df))
        return df

    def add(self, actor, transaction):
        """Record a new transaction.

        The PIC defaults to the actor's name and a missing id is generated.

        Raises:
            PermissionDenied: If the actor cannot edit the ledger.
            ValidationError: If the transaction is incomplete or its id is
                already taken (edits go through update()).
        """
        require_permission(actor, Permission.EDIT_LEDGER)
        validate_transaction(transaction)

        if transaction.id and self.transactions.exists(transaction.id):
            raise ValidationError(f"Transaction '{transaction.id}' already exists", "id")
        if not transaction.id:
            transaction.id = uuid.uuid4().hex
        if not transaction.pic:
            transaction.pic = actor.name

        self.transactions.save(transaction)
        return transaction

    def update(self, actor, transaction, pic=None):
        """Replace the stored transaction with the same id.

        The stored PIC is kept unless `pic` is given.

        Returns:
            Result with the updated transaction, or a NOT_FOUND failure.
        """
        require_permission(actor, Permission.EDIT_LEDGER)
        validate_transaction(transaction)

        existing = self.transactions.get(transaction.id) if transaction.id else None
        if existing is None:
            return Result.fail(f"Transaction '{transaction.id}' not found", ErrorType.NOT_FOUND)

        transaction.pic = pic if pic is not None else existing.pic
        self.transactions.save(transaction)
        return Result.ok(transaction)

    def remove(self, actor, transaction_id):
        """Delete a transaction. Removing a missing id is a NOT_FOUND no-op."""
        require_permission(actor, Permission.EDIT_LEDGER)
        if not self.transactions.delete(transaction_id):
            return Result.fail(f"Transaction '{transaction_id}' not found", ErrorType.NOT_FOUND)
        return Result.ok(transaction_id)

    def query(self, actor, start_date, end_date):
        """Transactions dated within [start_date, end_date], newest first.

        Both bounds are inclusive. Transactions sharing a date keep their
        insertion order. An inverted range returns an empty list.

        Raises:
            PermissionDenied: If the actor cannot view the ledger.
            ValidationError: If a bound is not a YYYY-MM-DD date.
        """
        require_permission(actor, Permission.VIEW_LEDGER)
        start_date = parse_iso_date(start_date, "start_date")
        end_date = parse_iso_date(end_date, "end_date")

        df = self.get_ledger_df()
        if df.empty:
            return []

        mask = (df["date"] >= start_date) & (df["date"] <= end_date)
        filtered = df[mask].sort_values(by=["date", "seq"], ascending=[False, True])

        return [
            Transaction.from_dict(row)
            for row in filtered.drop(columns=["seq"]).to_dict("records")
        ]

    def summarize(self, transactions):
        return summarize(transactions)

    def query_with_summary(self, actor, start_date, end_date):
        """Query a period and compute its totals from the same rows."""
        rows = self.query(actor, start_date, end_date)
        return rows, summarize(rows)

    @staticmethod
    def default_period(months_back=config.DEFAULT_REPORT_RANGE_MONTHS, today=None):
        """First day of the month `months_back` months ago, through today.

        Returns:
            Tuple of (start_date, end_date) strings.
        """
        if today is None:
            today = date.today()
        start = today.replace(day=1) - relativedelta(months=months_back)
        return (start.strftime(config.DATE_FORMAT_STORAGE),
                today.strftime(config.DATE_FORMAT_STORAGE))
