"""Per-collection repositories over DatabaseManager.

Each repository converts between stored dicts and dataclasses and keeps the
store's whole-collection read/replace contract. Services receive
repositories instead of reaching for a shared global store.
"""
from typing import Callable, Generic, List, Optional, TypeVar

from catalogmaster import config
from catalogmaster.data_structures import (
    Brand, Category, GlobalSettings, Product, Transaction, User
)

T = TypeVar('T')


class CollectionRepository(Generic[T]):
    """List-shaped collection keyed by each record's `id`."""

    def __init__(self, db_manager, collection: str, factory: Callable[[dict], T]):
        self.db = db_manager
        self.collection = collection
        self.factory = factory

    def read_raw(self) -> List[dict]:
        return self.db.read_collection(self.collection, []) or []

    def all(self) -> List[T]:
        """All records in stored (insertion) order."""
        return [self.factory(item) for item in self.read_raw()]

    def get(self, record_id) -> Optional[T]:
        for item in self.read_raw():
            if item.get("id") == record_id:
                return self.factory(item)
        return None

    def exists(self, record_id) -> bool:
        return self.get(record_id) is not None

    def save(self, record: T) -> bool:
        """Replace the record with the same id in place, or append it.

        Returns:
            True if the record was inserted, False if it replaced one.
        """
        items = self.read_raw()
        data = record.to_dict()
        for idx, item in enumerate(items):
            if item.get("id") == data["id"]:
                items[idx] = data
                self.db.write_collection(self.collection, items)
                return False
        items.append(data)
        self.db.write_collection(self.collection, items)
        return True

    def delete(self, record_id) -> bool:
        """Remove a record. Returns False if there was nothing to remove."""
        items = self.read_raw()
        remaining = [item for item in items if item.get("id") != record_id]
        if len(remaining) == len(items):
            return False
        self.db.write_collection(self.collection, remaining)
        return True

    def replace_all(self, records: List[T]):
        self.db.write_collection(self.collection, [r.to_dict() for r in records])


class SettingsRepository:
    """The single GlobalSettings record."""

    def __init__(self, db_manager):
        self.db = db_manager

    def load(self) -> GlobalSettings:
        data = self.db.read_collection(config.COLLECTION_SETTINGS)
        if not data:
            return GlobalSettings()
        return GlobalSettings.from_dict(data)

    def save(self, settings: GlobalSettings):
        self.db.write_collection(config.COLLECTION_SETTINGS, settings.to_dict())


class ProductRepository(CollectionRepository[Product]):
    def __init__(self, db_manager):
        super().__init__(db_manager, config.COLLECTION_PRODUCTS, Product.from_dict)


class CategoryRepository(CollectionRepository[Category]):
    def __init__(self, db_manager):
        super().__init__(db_manager, config.COLLECTION_CATEGORIES, Category.from_dict)


class BrandRepository(CollectionRepository[Brand]):
    def __init__(self, db_manager):
        super().__init__(db_manager, config.COLLECTION_BRANDS, Brand.from_dict)


class TransactionRepository(CollectionRepository[Transaction]):
    def __init__(self, db_manager):
        super().__init__(db_manager, config.COLLECTION_TRANSACTIONS, Transaction.from_dict)


class UserRepository(CollectionRepository[User]):
    def __init__(self, db_manager):
        super().__init__(db_manager, config.COLLECTION_USERS, User.from_dict)

    def find_by_username(self, username) -> Optional[User]:
        for user in self.all():
            if user.username == username:
                return user
        return None
