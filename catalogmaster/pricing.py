"""Pricing engine for CatalogMaster.

Derives the selling price (Price UP) and the monthly installment amounts
from a product's cost price (HPP) and the global settings:

    price_up    = hpp * (1 + margin_up_percent / 100)
    installment = price_up * (1 + interest_<m>_month / 100) / m

Installments are rounded with one of two policies, selected by
config.INSTALLMENT_ROUNDING:

    "nearest"  round half up to the nearest multiple of the granularity
               (1000 by default, the canonical policy)
    "ceil"     round up to the next multiple of the granularity
               (granularity 1 gives a plain ceiling)

Everything here is pure: no storage access, no clock.
"""
import math
from numbers import Number

from catalogmaster import config
from catalogmaster.data_structures import GlobalSettings, PriceQuote
from catalogmaster.exceptions import ValidationError


def round_to_granularity(value, granularity=config.INSTALLMENT_ROUNDING_GRANULARITY):
    """Round half up to the nearest multiple of `granularity`."""
    return int(math.floor(value / granularity + 0.5) * granularity)


def round_up(value, granularity=1):
    """Round up to the next multiple of `granularity`."""
    value = round(value, config.FLOAT_PRECISION)
    return int(math.ceil(value / granularity) * granularity)


_ROUNDERS = {
    config.ROUNDING_NEAREST: round_to_granularity,
    config.ROUNDING_CEIL: round_up,
}


def _validate_amount(value, field):
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValidationError(f"{field} must be a number", field)
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{field} must be a finite number", field)
    if value < 0:
        raise ValidationError(f"{field} cannot be negative", field)


def validate_settings(settings: GlobalSettings):
    """Raise ValidationError if any rate or the margin is negative or not a number."""
    for key, value in settings.to_dict().items():
        _validate_amount(value, key)


def compute_price_up(hpp, margin_up_percent):
    """Selling price after margin, unrounded."""
    return hpp * (1 + margin_up_percent / 100)


def compute_installment(price_up, rate, months, rounding=None, granularity=None):
    """Monthly payment for one term, rounded according to the chosen policy."""
    rounding = rounding or config.INSTALLMENT_ROUNDING
    if rounding not in _ROUNDERS:
        raise ValueError(f"Unknown rounding policy: {rounding}")
    if granularity is None:
        granularity = config.INSTALLMENT_ROUNDING_GRANULARITY if rounding == config.ROUNDING_NEAREST else 1

    raw = price_up * (1 + rate / 100) / months
    return _ROUNDERS[rounding](raw, granularity)


def compute(hpp, settings: GlobalSettings, rounding=None, granularity=None) -> PriceQuote:
    """Compute Price UP and the 3/6/9/12 month installments for an HPP.

    Args:
        hpp: Cost price, must be a non-negative number.
        settings: GlobalSettings with margin and interest rates.
        rounding: "nearest" or "ceil". Defaults to config.INSTALLMENT_ROUNDING.
        granularity: Rounding step. Defaults to 1000 for "nearest", 1 for "ceil".

    Returns:
        PriceQuote with the unrounded price_up and integer installments.

    Raises:
        ValidationError: If hpp or a setting is negative or not a number.
    """
    _validate_amount(hpp, "hpp")
    validate_settings(settings)

    price_up = compute_price_up(hpp, settings.margin_up_percent)
    installments = {
        f"installment_{months}": compute_installment(
            price_up, settings.interest_for(months), months, rounding, granularity
        )
        for months in config.INSTALLMENT_TERMS
    }
    return PriceQuote(price_up=price_up, **installments)


class PricingEngine:
    """Pricing bound to one rounding policy.

    Services hold an instance of this instead of passing the policy around.
    """

    def __init__(self, rounding=None, granularity=None):
        self.rounding = rounding or config.INSTALLMENT_ROUNDING
        if self.rounding not in _ROUNDERS:
            raise ValueError(f"Unknown rounding policy: {self.rounding}")
        self.granularity = granularity

    def compute(self, hpp, settings: GlobalSettings) -> PriceQuote:
        return compute(hpp, settings, self.rounding, self.granularity)

    def apply(self, product, settings: GlobalSettings):
        """Recompute the derived price fields of a product in place."""
        return self.compute(product.hpp, settings).apply_to(product)
