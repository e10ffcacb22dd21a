"""Tests for settings management, price recalculation and users."""
import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from catalogmaster.data_structures import GlobalSettings, Role, User
from catalogmaster.database import DatabaseManager
from catalogmaster.engine import CatalogEngine
from catalogmaster.exceptions import PermissionDenied, ValidationError
from catalogmaster.result import ErrorType


ADMIN = User(username="admin", name="Administrator", role=Role.ADMIN, id="1")
OWNER = User(username="owner", name="Business Owner", role=Role.OWNER, id="3")
SALES = User(username="user", name="Sales Staff", role=Role.USER, id="2")


class TestSettings(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager(":memory:")
        self.engine = CatalogEngine(self.db)

    def tearDown(self):
        self.db.close()

    def test_defaults_when_empty(self):
        settings = self.engine.settings.get_settings()
        self.assertEqual(settings, GlobalSettings())
        self.assertEqual(settings.margin_up_percent, 60)
        self.assertEqual(settings.interest_for(12), 42)

    def test_admin_saves(self):
        self.engine.settings.save_settings(ADMIN, GlobalSettings(margin_up_percent=45, interest_3_month=5))
        stored = self.engine.settings.get_settings()
        self.assertEqual(stored.margin_up_percent, 45)
        self.assertEqual(stored.interest_3_month, 5)
        self.assertEqual(stored.interest_6_month, 28)

    def test_non_admin_denied(self):
        for actor in (OWNER, SALES):
            with self.assertRaises(PermissionDenied):
                self.engine.settings.save_settings(actor, GlobalSettings(margin_up_percent=10))
        self.assertEqual(self.engine.settings.get_settings().margin_up_percent, 60)

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValidationError):
            self.engine.settings.save_settings(ADMIN, GlobalSettings(interest_6_month=-1))
        self.assertEqual(self.engine.settings.get_settings().interest_6_month, 28)

    def test_quote_uses_stored_settings(self):
        self.engine.settings.save_settings(ADMIN, GlobalSettings(margin_up_percent=100))
        self.assertAlmostEqual(self.engine.quote(1000).price_up, 2000)


class TestRecalculateProducts(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager(":memory:")
        self.db.seed_defaults()
        self.engine = CatalogEngine(self.db)

    def tearDown(self):
        self.db.close()

    def test_recalculate_after_settings_change(self):
        self.engine.settings.save_settings(ADMIN, GlobalSettings(margin_up_percent=100))

        # Saving settings alone leaves stored prices untouched
        product = self.engine.catalog.get_product(ADMIN, "1")
        self.assertEqual(product.price_up_60, 3552000)

        changed = self.engine.settings.recalculate_products(ADMIN)
        self.assertEqual(changed, 1)

        product = self.engine.catalog.get_product(ADMIN, "1")
        self.assertAlmostEqual(product.price_up_60, 4440000, places=6)
        self.assertEqual(product.installment_3, 1628000)

        self.assertEqual(self.engine.settings.recalculate_products(ADMIN), 0)

    def test_recalculate_denied_for_owner(self):
        with self.assertRaises(PermissionDenied):
            self.engine.settings.recalculate_products(OWNER)


class TestUsers(unittest.TestCase):

    def setUp(self):
        self.db = DatabaseManager(":memory:")
        self.db.seed_defaults()
        self.users = CatalogEngine(self.db).users

    def tearDown(self):
        self.db.close()

    def test_login(self):
        self.assertEqual(self.users.login("owner").role, Role.OWNER)
        self.assertEqual(self.users.login("  admin ").name, "Administrator")
        self.assertIsNone(self.users.login("nobody"))
        self.assertIsNone(self.users.login(""))
        self.assertIsNone(self.users.login(None))

    def test_admin_adds_user(self):
        user = self.users.save_user(ADMIN, User(username="budi", name="Budi", role=Role.OWNER))
        self.assertTrue(user.id)
        self.assertEqual(self.users.login("budi").role, Role.OWNER)
        self.assertEqual(len(self.users.list_users(ADMIN)), 4)

    def test_default_role(self):
        user = self.users.save_user(ADMIN, User(username="sari", name="Sari", role=""))
        self.assertEqual(user.role, Role.USER)

    def test_invalid_role(self):
        with self.assertRaises(ValidationError):
            self.users.save_user(ADMIN, User(username="x", name="X", role="ROOT"))

    def test_missing_fields(self):
        with self.assertRaises(ValidationError):
            self.users.save_user(ADMIN, User(username="", name="X"))
        with self.assertRaises(ValidationError):
            self.users.save_user(ADMIN, User(username="x", name=" "))

    def test_duplicate_username(self):
        with self.assertRaises(ValidationError) as context:
            self.users.save_user(ADMIN, User(username="owner", name="Another Owner"))
        self.assertEqual(context.exception.field, "username")

    def test_rename_same_user(self):
        owner = self.users.login("owner")
        owner.name = "Pak Owner"
        self.users.save_user(ADMIN, owner)
        self.assertEqual(self.users.login("owner").name, "Pak Owner")

    def test_username_fixed_on_edit(self):
        owner = self.users.login("owner")
        owner.username = "boss"
        owner.name = "Boss"
        saved = self.users.save_user(ADMIN, owner)

        self.assertEqual(saved.username, "owner")
        self.assertIsNone(self.users.login("boss"))
        self.assertEqual(self.users.login("owner").name, "Boss")

    def test_main_admin_cannot_be_deleted(self):
        with self.assertRaises(ValidationError):
            self.users.delete_user(ADMIN, "1")
        self.assertEqual(self.users.login("admin").role, Role.ADMIN)

    def test_only_admin_manages_users(self):
        with self.assertRaises(PermissionDenied):
            self.users.list_users(SALES)
        with self.assertRaises(PermissionDenied):
            self.users.save_user(OWNER, User(username="x", name="X"))

    def test_delete_user(self):
        self.assertTrue(self.users.delete_user(ADMIN, "2"))
        self.assertIsNone(self.users.login("user"))

        result = self.users.delete_user(ADMIN, "2")
        self.assertFalse(result)
        self.assertEqual(result.error_type, ErrorType.NOT_FOUND)


if __name__ == '__main__':
    unittest.main()
