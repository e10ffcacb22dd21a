"""CatalogMaster: product catalog pricing, installment quotes and a financial ledger."""

__version__ = "1.0.0"
