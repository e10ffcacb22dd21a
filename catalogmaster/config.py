"""Centralized configuration for CatalogMaster.

This module contains the default values, business rule constants and display
formats used throughout the codebase.
"""

# =============================================================================
# PRICING DEFAULTS
# =============================================================================

# Default margin applied to HPP to obtain the selling price (Price UP)
DEFAULT_MARGIN_UP_PERCENT = 60.0

# Default monthly interest rates per installment term (percent)
DEFAULT_INTEREST_RATES = {
    3: 10.0,
    6: 28.0,
    9: 35.0,
    12: 42.0,
}

# Supported installment terms in months
INSTALLMENT_TERMS = (3, 6, 9, 12)

# =============================================================================
# ROUNDING
# =============================================================================

# "nearest": round half up to the nearest multiple of the granularity
# "ceil": round up to the next multiple of the granularity
ROUNDING_NEAREST = "nearest"
ROUNDING_CEIL = "ceil"

INSTALLMENT_ROUNDING = ROUNDING_NEAREST

# Installments are rounded to whole thousands
INSTALLMENT_ROUNDING_GRANULARITY = 1000

# Decimals kept before ceiling, strips float noise like 55.00000000000001
FLOAT_PRECISION = 6

# =============================================================================
# CATALOG
# =============================================================================

# Displayed in place of a category or brand that no longer exists
UNKNOWN_REFERENCE = "Unknown"

# =============================================================================
# DISPLAY FORMATS
# =============================================================================

# Date format for storage (ISO 8601)
DATE_FORMAT_STORAGE = "%Y-%m-%d"

# Date format for display
DATE_FORMAT_DISPLAY = "%d %b %Y"

# Timestamp format used in generated documents
TIMESTAMP_FORMAT_DISPLAY = "%Y-%m-%d %H:%M"

# =============================================================================
# REPORTS
# =============================================================================

DEFAULT_REPORT_LANGUAGE = "en"

CURRENCY_SYMBOL = "Rp"

THOUSANDS_SEPARATOR = "."

REPORT_FILENAME_PREFIX = "Financial_Report"

REPORT_LABELS = {
    "en": {
        "title": "Financial Report",
        "period": "Period",
        "generated": "Generated on",
        "total_income": "Total Income",
        "total_expense": "Total Expense",
        "net_balance": "Net Balance",
        "income": "Income",
        "expense": "Expense",
        "columns": ["Date", "Type", "Description", "Amount", "PIC"],
        "empty": "No transactions in this period",
    },
    "id": {
        "title": "Laporan Keuangan",
        "period": "Periode",
        "generated": "Dibuat pada",
        "total_income": "Total Pemasukan",
        "total_expense": "Total Pengeluaran",
        "net_balance": "Saldo Bersih",
        "income": "Pemasukan",
        "expense": "Pengeluaran",
        "columns": ["Tanggal", "Tipe", "Keterangan", "Jumlah", "PIC"],
        "empty": "Tidak ada transaksi pada periode ini",
    },
}

# Default date range for reports (months back from the current month)
DEFAULT_REPORT_RANGE_MONTHS = 0

# PDF margins in mm
PDF_MARGIN_MM = 10

# =============================================================================
# STORAGE
# =============================================================================

DEFAULT_DB_NAME = "catalog_master.db"

COLLECTION_SETTINGS = "settings"
COLLECTION_CATEGORIES = "categories"
COLLECTION_BRANDS = "brands"
COLLECTION_PRODUCTS = "products"
COLLECTION_USERS = "users"
COLLECTION_TRANSACTIONS = "transactions"

COLLECTIONS = (
    COLLECTION_SETTINGS,
    COLLECTION_CATEGORIES,
    COLLECTION_BRANDS,
    COLLECTION_PRODUCTS,
    COLLECTION_USERS,
    COLLECTION_TRANSACTIONS,
)

# =============================================================================
# USERS
# =============================================================================

# The main administrator account cannot be deleted
PROTECTED_USERNAME = "admin"

# =============================================================================
# AI DESCRIPTION
# =============================================================================

# Environment variables checked in order for the Gemini API key
AI_API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

AI_MODEL = "gemini-2.5-flash"

AI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

AI_TIMEOUT_SECONDS = 20

AI_FALLBACK_MISSING_KEY = "AI description unavailable (Missing API Key)."
AI_FALLBACK_FAILED = "Failed to generate description."
AI_FALLBACK_EMPTY = "No description generated."
