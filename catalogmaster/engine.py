"""Business logic facade for CatalogMaster.

CatalogEngine wires the repositories and services in catalogmaster/services
around one DatabaseManager and exposes them as lazily created attributes.

Service Classes:
    - CatalogService: Products, categories and brands
    - LedgerService: Income/expense transactions
    - SettingsService: Margin and interest rates
    - UserService: Login and user management
    - ReportGenerator: Financial report export
"""
from catalogmaster.pricing import PricingEngine
from catalogmaster.report_generator import ReportGenerator
from catalogmaster.repositories import (
    BrandRepository, CategoryRepository, ProductRepository,
    SettingsRepository, TransactionRepository, UserRepository
)
from catalogmaster.services import (
    CatalogService, DescriptionService, LedgerService, SettingsService, UserService
)


class CatalogEngine:
    """Facade over the CatalogMaster services.

    Attributes:
        db: DatabaseManager instance for persistence.
        pricing: PricingEngine shared by catalog and settings services.
        description_service: DescriptionService (or a stand-in) for AI text.
    """

    def __init__(self, db_manager, pricing_engine=None, description_service=None,
                 printer_view_getter=None):
        self.db = db_manager
        self.pricing = pricing_engine or PricingEngine()
        self._description_service = description_service
        self._printer_view_getter = printer_view_getter

        self.settings_repo = SettingsRepository(db_manager)
        self.product_repo = ProductRepository(db_manager)
        self.category_repo = CategoryRepository(db_manager)
        self.brand_repo = BrandRepository(db_manager)
        self.transaction_repo = TransactionRepository(db_manager)
        self.user_repo = UserRepository(db_manager)

        self._catalog_service = None
        self._ledger_service = None
        self._settings_service = None
        self._user_service = None
        self._report_generator = None

    @property
    def description_service(self):
        """Lazy-load DescriptionService (reads the API key from the environment)."""
        if self._description_service is None:
            self._description_service = DescriptionService()
        return self._description_service

    @property
    def catalog(self):
        if self._catalog_service is None:
            self._catalog_service = CatalogService(
                self.product_repo, self.category_repo, self.brand_repo,
                self.settings_repo, self.pricing, self.description_service
            )
        return self._catalog_service

    @property
    def ledger(self):
        if self._ledger_service is None:
            self._ledger_service = LedgerService(self.transaction_repo)
        return self._ledger_service

    @property
    def settings(self):
        if self._settings_service is None:
            self._settings_service = SettingsService(self.settings_repo, self.product_repo, self.pricing)
        return self._settings_service

    @property
    def users(self):
        if self._user_service is None:
            self._user_service = UserService(self.user_repo)
        return self._user_service

    @property
    def reports(self):
        if self._report_generator is None:
            self._report_generator = ReportGenerator(self.ledger, self._printer_view_getter)
        return self._report_generator

    def login(self, username):
        return self.users.login(username)

    def quote(self, hpp):
        """Price quote for an HPP under the current settings (nothing is stored)."""
        return self.pricing.compute(hpp, self.settings.get_settings())
