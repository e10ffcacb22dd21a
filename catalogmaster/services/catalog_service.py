"""Catalog service for CatalogMaster.

This service handles products, categories and brands:
- CRUD with role checks
- Caller-side price recomputation when a product's HPP changes
- Listing filters (category, brand, free-text search on type)
- Resolution of category/brand names, tolerating dangling references
- Optional AI description
"""
import uuid
from datetime import datetime

from catalogmaster import config
from catalogmaster.access import Permission, require_permission
from catalogmaster.data_structures import ProductView
from catalogmaster.exceptions import ValidationError
from catalogmaster.result import Result, ErrorType


def new_id():
    return uuid.uuid4().hex


def filter_products(products, search="", category_id=None, brand_id=None):
    """Filter a product list in memory.

    `search` is a case-insensitive substring match on the product type;
    empty filters match everything.
    """
    needle = (search or "").lower()

    def matches(p):
        matches_search = needle in (p.type or "").lower()
        matches_cat = p.category_id == category_id if category_id else True
        matches_brand = p.brand_id == brand_id if brand_id else True
        return matches_search and matches_cat and matches_brand

    return [p for p in products if matches(p)]


class CatalogService:
    """Handles catalog operations."""

    def __init__(self, products, categories, brands, settings_repo, pricing_engine,
                 description_service=None):
        """Initialize CatalogService.

        Args:
            products: ProductRepository.
            categories: CategoryRepository.
            brands: BrandRepository.
            settings_repo: SettingsRepository, read when prices are recomputed.
            pricing_engine: PricingEngine instance.
            description_service: Optional DescriptionService for AI descriptions.
        """
        self.products = products
        self.categories = categories
        self.brands = brands
        self.settings_repo = settings_repo
        self.pricing = pricing_engine
        self.description_service = description_service

    # --- Products ---

    def list_products(self, actor):
        require_permission(actor, Permission.VIEW_CATALOG)
        return self.products.all()

    def get_product(self, actor, product_id):
        require_permission(actor, Permission.VIEW_CATALOG)
        return self.products.get(product_id)

    def search_products(self, actor, search="", category_id=None, brand_id=None):
        return filter_products(self.list_products(actor), search, category_id, brand_id)

    def list_product_views(self, actor, search="", category_id=None, brand_id=None):
        """Filtered products with their category and brand names resolved."""
        products = self.search_products(actor, search, category_id, brand_id)
        category_names = {c.id: c.name for c in self.categories.all()}
        brand_names = {b.id: b.name for b in self.brands.all()}
        return [
            ProductView(
                product=p,
                category_name=category_names.get(p.category_id, config.UNKNOWN_REFERENCE),
                brand_name=brand_names.get(p.brand_id, config.UNKNOWN_REFERENCE),
            )
            for p in products
        ]

    def resolve_names(self, product):
        """Return (category_name, brand_name), "Unknown" for missing references."""
        category = self.categories.get(product.category_id)
        brand = self.brands.get(product.brand_id)
        return (
            category.name if category else config.UNKNOWN_REFERENCE,
            brand.name if brand else config.UNKNOWN_REFERENCE,
        )

    def _validate_product(self, product):
        if product.hpp is None:
            raise ValidationError("HPP is required", "hpp")
        if product.type is None or not str(product.type).strip():
            raise ValidationError("Product type is required", "type")

    def save_product(self, actor, product, generate_description=False):
        """Insert or update a product.

        A product without an id gets a new one. Derived prices are
        recomputed from the current settings when the product is new or its
        HPP differs from the stored one; otherwise the stored values are
        copied over whatever the incoming product carries.
        Foreign keys are not checked.

        Args:
            actor: Acting User.
            product: Product to save. Modified in place (id, prices, updated_at).
            generate_description: Fill an empty description through the AI service.

        Returns:
            The saved Product.

        Raises:
            PermissionDenied: If the actor cannot edit the catalog.
            ValidationError: If HPP is negative or the type is empty.
        """
        require_permission(actor, Permission.EDIT_CATALOG)
        self._validate_product(product)

        existing = self.products.get(product.id) if product.id else None
        if existing is None or existing.hpp != product.hpp:
            # Raises ValidationError on a negative HPP before anything is written
            self.pricing.apply(product, self.settings_repo.load())
        else:
            product.price_up_60 = existing.price_up_60
            for months in config.INSTALLMENT_TERMS:
                field = f"installment_{months}"
                setattr(product, field, getattr(existing, field))

        if generate_description and not product.description:
            product.description = self.generate_description(product)

        if not product.id:
            product.id = new_id()
        product.updated_at = datetime.now().isoformat(timespec="seconds")

        self.products.save(product)
        return product

    def delete_product(self, actor, product_id):
        require_permission(actor, Permission.EDIT_CATALOG)
        if not self.products.delete(product_id):
            return Result.fail(f"Product '{product_id}' not found", ErrorType.NOT_FOUND)
        return Result.ok(product_id)

    def generate_description(self, product):
        """Ask the AI service for a description of `product`.

        Raises:
            ValidationError: If category, brand or type is not set.
        """
        if not product.category_id or not product.brand_id or not product.type:
            raise ValidationError("Category, brand and type are required to generate a description")
        if self.description_service is None:
            return config.AI_FALLBACK_MISSING_KEY

        category_name, brand_name = self.resolve_names(product)
        return self.description_service.generate(category_name, brand_name, product.type)

    # --- Categories ---

    def list_categories(self):
        return self.categories.all()

    def get_category(self, category_id):
        return self.categories.get(category_id)

    def save_category(self, actor, category):
        require_permission(actor, Permission.EDIT_CATALOG)
        if not category.name or not category.name.strip():
            raise ValidationError("Category name is required", "name")
        if not category.id:
            category.id = new_id()
        self.categories.save(category)
        return category

    def delete_category(self, actor, category_id):
        """Delete a category. Products and brands pointing at it are left as is."""
        require_permission(actor, Permission.EDIT_CATALOG)
        if not self.categories.delete(category_id):
            return Result.fail(f"Category '{category_id}' not found", ErrorType.NOT_FOUND)
        return Result.ok(category_id)

    # --- Brands ---

    def list_brands(self, category_id=None):
        """All brands, or only those scoped to `category_id`."""
        brands = self.brands.all()
        if category_id:
            brands = [b for b in brands if b.category_id == category_id]
        return brands

    def get_brand(self, brand_id):
        return self.brands.get(brand_id)

    def save_brand(self, actor, brand):
        require_permission(actor, Permission.EDIT_CATALOG)
        if not brand.name or not brand.name.strip():
            raise ValidationError("Brand name is required", "name")
        if not brand.category_id:
            raise ValidationError("Brand category is required", "category_id")
        if not brand.id:
            brand.id = new_id()
        self.brands.save(brand)
        return brand

    def delete_brand(self, actor, brand_id):
        require_permission(actor, Permission.EDIT_CATALOG)
        if not self.brands.delete(brand_id):
            return Result.fail(f"Brand '{brand_id}' not found", ErrorType.NOT_FOUND)
        return Result.ok(brand_id)
