from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from catalogmaster import config


class Role:
    """User roles."""
    ADMIN = "ADMIN"
    USER = "USER"
    OWNER = "OWNER"

    ALL = (ADMIN, USER, OWNER)


class TransactionType:
    """Ledger entry types."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"

    ALL = (INCOME, EXPENSE)


def _number(value, default=0.0):
    if value is None or value == "":
        return default
    return float(value)


@dataclass
class GlobalSettings:
    """Margin and per-term interest rates, all percentages."""
    margin_up_percent: float = config.DEFAULT_MARGIN_UP_PERCENT
    interest_3_month: float = config.DEFAULT_INTEREST_RATES[3]
    interest_6_month: float = config.DEFAULT_INTEREST_RATES[6]
    interest_9_month: float = config.DEFAULT_INTEREST_RATES[9]
    interest_12_month: float = config.DEFAULT_INTEREST_RATES[12]

    def interest_for(self, months: int) -> float:
        return getattr(self, f"interest_{months}_month")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "margin_up_percent": self.margin_up_percent,
            "interest_3_month": self.interest_3_month,
            "interest_6_month": self.interest_6_month,
            "interest_9_month": self.interest_9_month,
            "interest_12_month": self.interest_12_month,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlobalSettings':
        defaults = cls()
        return cls(**{
            key: _number(data.get(key), getattr(defaults, key))
            for key in defaults.to_dict()
        })


@dataclass
class PriceQuote:
    """Output of the pricing engine for one HPP."""
    price_up: float
    installment_3: int
    installment_6: int
    installment_9: int
    installment_12: int

    def installments(self) -> Dict[int, int]:
        return {m: getattr(self, f"installment_{m}") for m in config.INSTALLMENT_TERMS}

    def apply_to(self, product: 'Product') -> 'Product':
        """Copy the derived fields onto a product (in place) and return it."""
        product.price_up_60 = self.price_up
        for months, amount in self.installments().items():
            setattr(product, f"installment_{months}", amount)
        return product


@dataclass
class Category:
    name: str
    id: Optional[str] = None
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name}
        if self.image:
            data["image"] = self.image
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(id=data.get("id"), name=data.get("name", ""), image=data.get("image"))


@dataclass
class Brand:
    name: str
    category_id: str = ""
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "categoryId": self.category_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Brand':
        return cls(id=data.get("id"), name=data.get("name", ""),
                   category_id=data.get("categoryId", ""))


@dataclass
class Product:
    """Catalog item. Price fields are derived from `hpp` but stored as plain data."""
    category_id: str
    brand_id: str
    type: str
    hpp: float = 0.0
    id: Optional[str] = None
    price_up_60: float = 0.0
    installment_3: int = 0
    installment_6: int = 0
    installment_9: int = 0
    installment_12: int = 0
    description: str = ""
    product_image: str = ""
    external_link: str = ""
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "categoryId": self.category_id,
            "brandId": self.brand_id,
            "type": self.type,
            "hpp": self.hpp,
            "price_up_60": self.price_up_60,
            "installment_3": self.installment_3,
            "installment_6": self.installment_6,
            "installment_9": self.installment_9,
            "installment_12": self.installment_12,
            "description": self.description,
            "productImage": self.product_image,
            "externalLink": self.external_link,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        return cls(
            id=data.get("id"),
            category_id=data.get("categoryId", ""),
            brand_id=data.get("brandId", ""),
            type=data.get("type", ""),
            hpp=_number(data.get("hpp")),
            price_up_60=_number(data.get("price_up_60")),
            installment_3=int(_number(data.get("installment_3"))),
            installment_6=int(_number(data.get("installment_6"))),
            installment_9=int(_number(data.get("installment_9"))),
            installment_12=int(_number(data.get("installment_12"))),
            description=data.get("description") or "",
            product_image=data.get("productImage") or "",
            external_link=data.get("externalLink") or "",
            updated_at=data.get("updatedAt"),
        )


@dataclass
class Transaction:
    """Ledger entry. `date` is an ISO calendar date (YYYY-MM-DD)."""
    date: str
    type: str
    description: str
    amount: float
    pic: str = ""
    id: Optional[str] = None

    @property
    def signed_amount(self) -> float:
        return -self.amount if self.type == TransactionType.EXPENSE else self.amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "type": self.type,
            "description": self.description,
            "amount": self.amount,
            "pic": self.pic,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=data.get("id"),
            date=data.get("date", ""),
            type=data.get("type", TransactionType.INCOME),
            description=data.get("description", ""),
            amount=_number(data.get("amount")),
            pic=data.get("pic", ""),
        )


@dataclass
class User:
    username: str
    name: str
    role: str = Role.USER
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username, "name": self.name, "role": self.role}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(id=data.get("id"), username=data.get("username", ""),
                   name=data.get("name", ""), role=data.get("role", Role.USER))


@dataclass
class ProductView:
    """A product joined with its resolved category and brand names."""
    product: Product
    category_name: str
    brand_name: str


@dataclass
class LedgerSummary:
    total_income: float = 0.0
    total_expense: float = 0.0
    net_balance: float = 0.0


@dataclass
class ReportData:
    """DTO for holding all data required for report generation."""
    transactions: List[Transaction]
    summary: LedgerSummary
    start_date: str
    end_date: str


@dataclass
class ReportRow:
    date: str
    type_label: str
    description: str
    amount: float
    amount_display: str
    pic: str
    is_expense: bool


@dataclass
class ReportPresentation:
    title: str
    period_display: str
    generated_display: str
    summary_lines: List[str]
    columns: List[str]
    rows: List[ReportRow]
    empty_message: str


@dataclass
class ReportConfig:
    language: str = config.DEFAULT_REPORT_LANGUAGE
    custom_title: Optional[str] = None
    date_format: str = config.DATE_FORMAT_DISPLAY
    currency_symbol: str = config.CURRENCY_SYMBOL
    thousands_separator: str = config.THOUSANDS_SEPARATOR
    company_name: Optional[str] = None
    custom_footer: str = ""
    allow_html_fallback: bool = True
    # Overrides the language's table headers when set
    columns: List[str] = field(default_factory=list)

    @property
    def labels(self) -> Dict[str, Any]:
        return config.REPORT_LABELS.get(self.language, config.REPORT_LABELS[config.DEFAULT_REPORT_LANGUAGE])

    @property
    def title(self) -> str:
        return self.custom_title or self.labels["title"]

    def column_headers(self) -> List[str]:
        return self.columns or list(self.labels["columns"])
