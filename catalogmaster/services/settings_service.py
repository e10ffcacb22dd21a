"""Global settings service (margin and installment interest rates)."""
from datetime import datetime

from catalogmaster.access import Permission, require_permission
from catalogmaster.pricing import validate_settings


class SettingsService:
    """Reads and saves GlobalSettings.

    Saving settings does not touch stored product prices. Products keep the
    values computed at their last save until recalculate_products() runs.
    """

    def __init__(self, settings_repo, products=None, pricing_engine=None):
        self.settings_repo = settings_repo
        self.products = products
        self.pricing = pricing_engine

    def get_settings(self):
        return self.settings_repo.load()

    def save_settings(self, actor, settings):
        """Validate and store settings.

        Raises:
            PermissionDenied: If the actor cannot manage settings.
            ValidationError: If the margin or a rate is negative.
        """
        require_permission(actor, Permission.MANAGE_SETTINGS)
        validate_settings(settings)
        self.settings_repo.save(settings)
        return settings

    def recalculate_products(self, actor):
        """Recompute the derived prices of every product from the current settings.

        Returns:
            Number of products whose stored prices changed.
        """
        require_permission(actor, Permission.MANAGE_SETTINGS)
        settings = self.settings_repo.load()
        products = self.products.all()

        changed = 0
        now = datetime.now().isoformat(timespec="seconds")
        for product in products:
            before = product.to_dict()
            self.pricing.apply(product, settings)
            if product.to_dict() != before:
                product.updated_at = now
                changed += 1

        if changed:
            self.products.replace_all(products)
        return changed
