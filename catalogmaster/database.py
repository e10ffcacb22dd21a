"""Storage module for CatalogMaster.

Every collection (settings, categories, brands, products, users,
transactions) is stored as one JSON document in a SQLite key-value table.
Reads return the whole collection and writes replace it, so concurrent
writers follow last-writer-wins. There is no locking around the
read-modify-write cycle; callers are expected to be single-threaded.
"""
import json
import sqlite3
from datetime import datetime
from contextlib import contextmanager

from catalogmaster import config
from catalogmaster.exceptions import DatabaseError, TransactionError


INITIAL_SETTINGS = {
    "margin_up_percent": config.DEFAULT_MARGIN_UP_PERCENT,
    "interest_3_month": config.DEFAULT_INTEREST_RATES[3],
    "interest_6_month": config.DEFAULT_INTEREST_RATES[6],
    "interest_9_month": config.DEFAULT_INTEREST_RATES[9],
    "interest_12_month": config.DEFAULT_INTEREST_RATES[12],
}

INITIAL_CATEGORIES = [
    {"id": "1", "name": "LED"},
    {"id": "2", "name": "KULKAS"},
    {"id": "3", "name": "MESIN CUCI"},
]

# The same brand name may appear under several categories
INITIAL_BRANDS = [
    {"id": "1", "name": "Samsung", "categoryId": "1"},
    {"id": "2", "name": "LG", "categoryId": "1"},
    {"id": "3", "name": "Sharp", "categoryId": "1"},
    {"id": "4", "name": "Polytron", "categoryId": "2"},
    {"id": "5", "name": "Samsung", "categoryId": "2"},
    {"id": "6", "name": "LG", "categoryId": "3"},
]

INITIAL_USERS = [
    {"id": "1", "username": "admin", "role": "ADMIN", "name": "Administrator"},
    {"id": "2", "username": "user", "role": "USER", "name": "Sales Staff"},
    {"id": "3", "username": "owner", "role": "OWNER", "name": "Business Owner"},
]


def initial_products():
    return [{
        "id": "1",
        "categoryId": "1",
        "brandId": "3",
        "type": "32BG1",
        "hpp": 2220000,
        "price_up_60": 3552000,
        "installment_3": 1302000,
        "installment_6": 758000,
        "installment_9": 533000,
        "installment_12": 420000,
        "updatedAt": datetime.now().isoformat(timespec="seconds"),
        "description": "TV LED 32 inci berkualitas tinggi dari Sharp, menampilkan warna-warna cerah dan teknologi hemat energi.",
        "externalLink": "https://www.google.com",
    }]


def initial_transactions():
    today = datetime.now().strftime(config.DATE_FORMAT_STORAGE)
    return [
        {"id": "t1", "date": "2023-10-15", "type": "INCOME",
         "description": "Penjualan LED TV Sharp 32BG1", "amount": 3552000, "pic": "Sales Staff"},
        {"id": "t2", "date": "2023-10-18", "type": "EXPENSE",
         "description": "Biaya Listrik & Air", "amount": 450000, "pic": "Administrator"},
        {"id": "t3", "date": "2023-11-05", "type": "INCOME",
         "description": "Penjualan Kulkas Samsung", "amount": 4800000, "pic": "Sales Staff"},
        {"id": "t4", "date": today, "type": "EXPENSE",
         "description": "Biaya Operasional Toko", "amount": 200000, "pic": "Administrator"},
        {"id": "t5", "date": today, "type": "INCOME",
         "description": "Penjualan Mesin Cuci LG", "amount": 7200000, "pic": "Administrator"},
    ]


class DatabaseManager:
    """Handles the SQLite backed collection store."""

    def __init__(self, db_name=config.DEFAULT_DB_NAME):
        self.db_name = db_name
        self.conn = sqlite3.connect(db_name)
        self._closed = False
        self.create_tables()

    def close(self):
        """Close the database connection."""
        if self.conn and not self._closed:
            self.conn.close()
            self._closed = True

    def __del__(self):
        """Ensure connection is closed on garbage collection."""
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    @contextmanager
    def transaction(self):
        """Context manager for a single write with automatic rollback on failure.

        Usage:
            with db.transaction():
                db.conn.execute(...)
        """
        try:
            yield
            self.conn.commit()
        except sqlite3.Error as e:
            self.conn.rollback()
            raise TransactionError(f"Transaction failed: {str(e)}")
        except Exception:
            self.conn.rollback()
            raise

    def create_tables(self):
        cursor = self.conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT
            )
        """)
        self.conn.commit()

    def has_collection(self, name):
        cursor = self.conn.cursor()
        cursor.execute("SELECT 1 FROM collections WHERE name=?", (name,))
        return cursor.fetchone() is not None

    def read_collection(self, name, default=None):
        """Return the whole collection, or `default` if it was never written.

        Raises:
            DatabaseError: If the stored payload cannot be read or decoded.
        """
        try:
            cursor = self.conn.cursor()
            cursor.execute("SELECT payload FROM collections WHERE name=?", (name,))
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to read collection '{name}': {e}")

        if row is None:
            return default
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as e:
            raise DatabaseError(f"Collection '{name}' is corrupted", {'error': str(e)})

    def write_collection(self, name, value):
        """Replace the whole collection with `value`."""
        payload = json.dumps(value)
        with self.transaction():
            self.conn.execute(
                "INSERT OR REPLACE INTO collections (name, payload, updated_at) VALUES (?, ?, ?)",
                (name, payload, datetime.now().isoformat(timespec="seconds"))
            )

    def delete_collection(self, name):
        with self.transaction():
            self.conn.execute("DELETE FROM collections WHERE name=?", (name,))

    def seed_defaults(self):
        """Write the demo data for every collection that does not exist yet.

        Returns:
            List of collection names that were seeded.
        """
        seeds = {
            config.COLLECTION_SETTINGS: lambda: dict(INITIAL_SETTINGS),
            config.COLLECTION_CATEGORIES: lambda: list(INITIAL_CATEGORIES),
            config.COLLECTION_BRANDS: lambda: list(INITIAL_BRANDS),
            config.COLLECTION_PRODUCTS: initial_products,
            config.COLLECTION_USERS: lambda: list(INITIAL_USERS),
            config.COLLECTION_TRANSACTIONS: initial_transactions,
        }
        seeded = []
        for name in config.COLLECTIONS:
            if not self.has_collection(name):
                self.write_collection(name, seeds[name]())
                seeded.append(name)
        return seeded
