#!/usr/bin/env python3
"""
Selling Price Calculator
Turns operator cost prices into customer selling prices: margin, then VAT,
then a tiered round-up. Money display uses the prices library.
"""

import logging
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP
from typing import Union

from prices import Money, TaxedMoney

from .models import (
    AddOnCharge,
    FIXED_VAT_PERCENT,
    RoundingTier,
    clamp_margin,
)

logger = logging.getLogger(__name__)

Amount = Union[int, Decimal]

SMART_THRESHOLD = Decimal('10000')

CURRENCY_SYMBOLS = {
    'JPY': '¥',
    'THB': '฿',
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
}


def _to_decimal(value: Union[int, float, Decimal]) -> Decimal:
    # str() keeps 37.5 as 37.5 instead of its binary expansion
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _round_up(value: Decimal, step: int) -> int:
    """Round ``value`` up to the next multiple of ``step``."""
    return int((value / step).quantize(Decimal('1'), rounding=ROUND_CEILING) * step)


class SellingPriceCalculator:
    """
    Calculates selling prices for a fixed margin and VAT.

    ``raw = amount * (1 + margin/100) * (1 + vat/100)`` is computed with
    Decimal and then rounded up according to the tier:

    - smart: nearest 1,000 when raw >= 10,000, otherwise nearest 100
    - addon: always nearest 100
    - fixed-thousand: always nearest 1,000
    """

    def __init__(self, margin_percent: float, vat_percent: float = FIXED_VAT_PERCENT):
        clamped = clamp_margin(margin_percent)
        self.margin_clamped = clamped != margin_percent
        if self.margin_clamped:
            logger.warning(f"Margin {margin_percent}% out of range, clamped to {clamped}%")

        self.margin_percent = clamped
        self.vat_percent = vat_percent
        self.margin_factor = 1 + _to_decimal(clamped) / 100
        self.vat_factor = 1 + _to_decimal(vat_percent) / 100

    def raw_amount(self, amount: Amount) -> Decimal:
        """Cost with margin and VAT applied, before any rounding."""
        if amount < 0:
            raise ValueError(f"Cost amount cannot be negative: {amount}")
        return _to_decimal(amount) * self.margin_factor * self.vat_factor

    def round_selling(self, raw: Decimal, tier: Union[RoundingTier, str] = RoundingTier.SMART) -> int:
        tier = RoundingTier(tier)
        if tier is RoundingTier.ADDON:
            return _round_up(raw, 100)
        if tier is RoundingTier.FIXED_THOUSAND:
            return _round_up(raw, 1000)
        if raw >= SMART_THRESHOLD:
            return _round_up(raw, 1000)
        return _round_up(raw, 100)

    def sell(self, amount: Amount, tier: Union[RoundingTier, str] = RoundingTier.SMART) -> int:
        """Selling price for a cost amount."""
        if amount == 0:
            return 0
        selling = self.round_selling(self.raw_amount(amount), tier)
        logger.debug(f"sell({amount}, margin={self.margin_percent}%, tier={RoundingTier(tier).value}) = {selling}")
        return selling

    def sell_add_on(self, add_on: AddOnCharge) -> int:
        """
        Per-unit selling price of an add-on.

        Callers multiply by quantity afterwards; a pre-multiplied total is
        never rounded.
        """
        return self.sell(add_on.unit_amount, RoundingTier.ADDON)

    def price_breakdown(self, amount: Amount, tier: Union[RoundingTier, str] = RoundingTier.SMART) -> TaxedMoney:
        """Net (after margin) and rounded gross (after VAT) prices in yen."""
        net = (_to_decimal(amount) * self.margin_factor).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        gross = Decimal(self.sell(amount, tier))
        return TaxedMoney(net=Money(net, 'JPY'), gross=Money(gross, 'JPY'))


def sell(amount: Amount, margin_percent: float, vat_percent: float = FIXED_VAT_PERCENT,
         tier: Union[RoundingTier, str] = RoundingTier.SMART) -> int:
    """
    Convenience function to calculate a single selling price.
    """
    return SellingPriceCalculator(margin_percent, vat_percent).sell(amount, tier)


def to_display_currency(amount_jpy: Amount, exchange_rate: float, currency_code: str = 'THB') -> Money:
    """
    Convert a yen amount for display only, rounded half-up to whole units.

    The result never feeds back into selling price rounding.
    """
    if exchange_rate <= 0:
        raise ValueError(f"Exchange rate must be positive, got {exchange_rate}")
    converted = (_to_decimal(amount_jpy) * _to_decimal(exchange_rate)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return Money(converted, currency_code)


def format_currency(amount: Union[Amount, Money], currency_code: str = 'JPY') -> str:
    """Format a whole-unit amount as ``¥388,000``."""
    if isinstance(amount, Money):
        currency_code = amount.currency
        amount = amount.amount

    symbol = CURRENCY_SYMBOLS.get(currency_code, currency_code)
    rounded_amount = _to_decimal(amount).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return f"{symbol}{rounded_amount:,}"
