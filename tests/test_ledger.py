"""Tests for the transaction ledger: queries, aggregation, edits and validation."""
import os
import sys
import unittest
from datetime import date

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from catalogmaster import config
from catalogmaster.data_structures import Role, Transaction, TransactionType, User
from catalogmaster.database import DatabaseManager
from catalogmaster.exceptions import PermissionDenied, ValidationError
from catalogmaster.repositories import TransactionRepository
from catalogmaster.result import ErrorType
from catalogmaster.services.ledger_service import LedgerService, summarize


ADMIN = User(username="admin", name="Administrator", role=Role.ADMIN, id="1")
OWNER = User(username="owner", name="Business Owner", role=Role.OWNER, id="3")
SALES = User(username="user", name="Sales Staff", role=Role.USER, id="2")

SCENARIO = [
    {"id": "t1", "date": "2023-10-15", "type": "INCOME",
     "description": "Penjualan LED TV Sharp 32BG1", "amount": 3552000, "pic": "Sales Staff"},
    {"id": "t2", "date": "2023-10-18", "type": "EXPENSE",
     "description": "Biaya Listrik & Air", "amount": 450000, "pic": "Administrator"},
    {"id": "t3", "date": "2023-11-05", "type": "INCOME",
     "description": "Penjualan Kulkas Samsung", "amount": 4800000, "pic": "Sales Staff"},
]


class LedgerTestCase(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager(":memory:")
        self.repo = TransactionRepository(self.db)
        self.ledger = LedgerService(self.repo)

    def tearDown(self):
        self.db.close()

    def stored_payload(self):
        row = self.db.conn.execute(
            "SELECT payload FROM collections WHERE name=?", (config.COLLECTION_TRANSACTIONS,)
        ).fetchone()
        return row[0] if row else None


class TestLedgerQuery(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.db.write_collection(config.COLLECTION_TRANSACTIONS, SCENARIO)

    def test_october_scenario(self):
        """October query returns the two October records, newest first, with totals."""
        rows, summary = self.ledger.query_with_summary(ADMIN, "2023-10-01", "2023-10-31")

        self.assertEqual([t.id for t in rows], ["t2", "t1"])
        self.assertEqual([t.date for t in rows], ["2023-10-18", "2023-10-15"])
        self.assertEqual(summary.total_income, 3552000)
        self.assertEqual(summary.total_expense, 450000)
        self.assertEqual(summary.net_balance, 3102000)

    def test_bounds_are_inclusive(self):
        rows = self.ledger.query(ADMIN, "2023-10-15", "2023-10-18")
        self.assertEqual([t.id for t in rows], ["t2", "t1"])

        rows = self.ledger.query(ADMIN, "2023-11-05", "2023-11-05")
        self.assertEqual([t.id for t in rows], ["t3"])

    def test_empty_result_has_zero_totals(self):
        rows, summary = self.ledger.query_with_summary(ADMIN, "2024-01-01", "2024-12-31")
        self.assertEqual(rows, [])
        self.assertEqual(summary.total_income, 0)
        self.assertEqual(summary.total_expense, 0)
        self.assertEqual(summary.net_balance, 0)

    def test_net_balance_identity(self):
        for start, end in [("2023-01-01", "2023-12-31"), ("2023-10-16", "2023-11-30"),
                           ("2023-10-18", "2023-10-18"), ("2022-01-01", "2022-01-31")]:
            rows, summary = self.ledger.query_with_summary(ADMIN, start, end)
            self.assertEqual(summary.total_income - summary.total_expense, summary.net_balance)

    def test_totals_follow_the_filter(self):
        """Totals are recomputed for each period, never carried over."""
        _, october = self.ledger.query_with_summary(ADMIN, "2023-10-01", "2023-10-31")
        _, november = self.ledger.query_with_summary(ADMIN, "2023-11-01", "2023-11-30")
        self.assertEqual(october.total_income, 3552000)
        self.assertEqual(november.total_income, 4800000)
        self.assertEqual(november.total_expense, 0)

    def test_inverted_range_is_empty(self):
        self.assertEqual(self.ledger.query(ADMIN, "2023-10-31", "2023-10-01"), [])

    def test_malformed_dates_rejected(self):
        for start, end in [("01-10-2023", "2023-10-31"), ("2023-10-01", "2023-13-01"),
                           ("2023-10-1", "2023-10-31"), (None, "2023-10-31")]:
            with self.assertRaises(ValidationError):
                self.ledger.query(ADMIN, start, end)

    def test_owner_can_query(self):
        rows = self.ledger.query(OWNER, "2023-10-01", "2023-10-31")
        self.assertEqual(len(rows), 2)

    def test_user_cannot_query(self):
        with self.assertRaises(PermissionDenied):
            self.ledger.query(SALES, "2023-10-01", "2023-10-31")

    def test_remove_then_query(self):
        result = self.ledger.remove(ADMIN, "t2")
        self.assertTrue(result.success)

        rows = self.ledger.query(ADMIN, "2023-10-01", "2023-10-31")
        self.assertEqual([t.id for t in rows], ["t1"])

        again = self.ledger.remove(ADMIN, "t2")
        self.assertFalse(again.success)
        self.assertEqual(again.error_type, ErrorType.NOT_FOUND)
        self.assertEqual([t.id for t in self.ledger.query(ADMIN, "2023-10-01", "2023-10-31")], ["t1"])


class TestLedgerOrdering(LedgerTestCase):

    def test_same_day_keeps_insertion_order(self):
        for desc in ["first", "second", "third"]:
            self.ledger.add(ADMIN, Transaction(date="2024-02-10", type=TransactionType.INCOME,
                                               description=desc, amount=1000))
        self.ledger.add(ADMIN, Transaction(date="2024-02-11", type=TransactionType.EXPENSE,
                                           description="later", amount=500))
        self.ledger.add(ADMIN, Transaction(date="2024-02-09", type=TransactionType.EXPENSE,
                                           description="earlier", amount=500))

        rows = self.ledger.query(ADMIN, "2024-02-01", "2024-02-29")
        self.assertEqual([t.description for t in rows],
                         ["later", "first", "second", "third", "earlier"])


class TestLedgerEdits(LedgerTestCase):

    def test_add_defaults_pic_and_id(self):
        t = self.ledger.add(ADMIN, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                               description="Sale", amount=250000))
        self.assertTrue(t.id)
        self.assertEqual(t.pic, "Administrator")
        self.assertEqual(self.repo.get(t.id).pic, "Administrator")

    def test_add_with_existing_id_rejected(self):
        self.db.write_collection(config.COLLECTION_TRANSACTIONS, SCENARIO)
        before = self.stored_payload()

        with self.assertRaises(ValidationError) as context:
            self.ledger.add(ADMIN, Transaction(id="t1", date="2023-10-15", type=TransactionType.EXPENSE,
                                               description="Overwrite", amount=1))
        self.assertEqual(context.exception.field, "id")

        self.assertEqual(self.stored_payload(), before)
        stored = self.repo.get("t1")
        self.assertEqual(stored.type, TransactionType.INCOME)
        self.assertEqual(stored.amount, 3552000)
        self.assertEqual(stored.pic, "Sales Staff")

    def test_update_preserves_pic(self):
        t = self.ledger.add(ADMIN, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                               description="Sale", amount=250000))
        other_admin = User(username="admin2", name="Second Admin", role=Role.ADMIN, id="9")

        edited = Transaction(id=t.id, date="2024-03-02", type=TransactionType.EXPENSE,
                             description="Refund", amount=100000)
        result = self.ledger.update(other_admin, edited)

        self.assertTrue(result.success)
        stored = self.repo.get(t.id)
        self.assertEqual(stored.pic, "Administrator")
        self.assertEqual(stored.date, "2024-03-02")
        self.assertEqual(stored.type, TransactionType.EXPENSE)
        self.assertEqual(stored.amount, 100000)

    def test_update_with_explicit_pic(self):
        t = self.ledger.add(ADMIN, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                               description="Sale", amount=250000))
        edited = Transaction(id=t.id, date="2024-03-01", type=TransactionType.INCOME,
                             description="Sale", amount=250000)
        self.ledger.update(ADMIN, edited, pic="Budi")
        self.assertEqual(self.repo.get(t.id).pic, "Budi")

    def test_update_unknown_id_is_noop(self):
        self.ledger.add(ADMIN, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                           description="Sale", amount=250000))
        before = self.stored_payload()

        result = self.ledger.update(ADMIN, Transaction(id="missing", date="2024-03-01",
                                                       type=TransactionType.INCOME,
                                                       description="Ghost", amount=1))
        self.assertFalse(result.success)
        self.assertEqual(result.error_type, ErrorType.NOT_FOUND)
        self.assertEqual(self.stored_payload(), before)

    def test_validation_rejects_without_writing(self):
        self.ledger.add(ADMIN, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                           description="Sale", amount=250000))
        before = self.stored_payload()

        bad = [
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="", amount=1000),
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="   ", amount=1000),
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="x", amount=None),
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="x", amount=0),
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="x", amount=-5),
            Transaction(date="2024-03-01", type=TransactionType.INCOME, description="x", amount="10"),
            Transaction(date="2024-03-01", type="TRANSFER", description="x", amount=10),
            Transaction(date="1/3/2024", type=TransactionType.INCOME, description="x", amount=10),
        ]
        for t in bad:
            with self.assertRaises(ValidationError):
                self.ledger.add(ADMIN, t)

        self.assertEqual(self.stored_payload(), before)

    def test_owner_cannot_edit(self):
        with self.assertRaises(PermissionDenied):
            self.ledger.add(OWNER, Transaction(date="2024-03-01", type=TransactionType.INCOME,
                                               description="Sale", amount=250000))
        self.assertIsNone(self.stored_payload())

        with self.assertRaises(PermissionDenied):
            self.ledger.remove(OWNER, "t1")


class TestSummarize(unittest.TestCase):

    def test_summarize_list(self):
        rows = [
            Transaction(date="2024-01-01", type=TransactionType.INCOME, description="a", amount=100),
            Transaction(date="2024-01-02", type=TransactionType.INCOME, description="b", amount=50.5),
            Transaction(date="2024-01-03", type=TransactionType.EXPENSE, description="c", amount=20),
        ]
        summary = summarize(rows)
        self.assertAlmostEqual(summary.total_income, 150.5)
        self.assertEqual(summary.total_expense, 20)
        self.assertAlmostEqual(summary.net_balance, 130.5)

    def test_summarize_empty(self):
        summary = summarize([])
        self.assertEqual((summary.total_income, summary.total_expense, summary.net_balance), (0, 0, 0))


class TestDefaultPeriod(unittest.TestCase):

    def test_current_month(self):
        self.assertEqual(LedgerService.default_period(today=date(2024, 3, 15)),
                         ("2024-03-01", "2024-03-15"))

    def test_months_back(self):
        self.assertEqual(LedgerService.default_period(months_back=2, today=date(2024, 1, 31)),
                         ("2023-11-01", "2024-01-31"))


if __name__ == '__main__':
    unittest.main()
