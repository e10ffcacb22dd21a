"""Services package for CatalogMaster business logic.

Each service receives the repositories it works on and performs the role
check for its operations.
"""

from .catalog_service import CatalogService, filter_products
from .ledger_service import LedgerService, summarize
from .settings_service import SettingsService
from .user_service import UserService
from .description_service import DescriptionService

__all__ = ['CatalogService', 'filter_products', 'LedgerService', 'summarize',
           'SettingsService', 'UserService', 'DescriptionService']
