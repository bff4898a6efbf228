"""
Data models for the Quote Pricer.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)

MIN_MARGIN_PERCENT = 0
MAX_MARGIN_PERCENT = 200
FIXED_VAT_PERCENT = 7
DEFAULT_EXCHANGE_RATE = 0.25  # THB per JPY


class RoundingTier(str, Enum):
    """How far a selling amount is rounded up."""
    SMART = "smart"
    ADDON = "addon"
    FIXED_THOUSAND = "fixed-thousand"


class LineRole(str, Enum):
    """Role of a single line inside a quotation document."""
    BLANK = "blank"
    DATE_HEADER = "date-header"
    DESCRIPTOR = "descriptor"
    ROUTE = "route"
    PRICE = "price"
    TOTAL = "total"
    SECTION_MARKER = "section-marker"
    RULES = "rules"
    FREEFORM = "freeform"


class DiagnosticKind(str, Enum):
    MALFORMED_EXPRESSION = "malformed-expression"
    INVALID_MULTIPLIER = "invalid-multiplier"
    MARGIN_CLAMPED = "margin-clamped"
    TOTAL_FALLBACK = "total-fallback"


@dataclass
class Diagnostic:
    """A recovered problem noticed while parsing or rewriting."""
    kind: DiagnosticKind
    message: str
    line_number: Optional[int] = None


@dataclass
class AddOnCharge:
    """A named supplemental charge such as a baby seat or driver accommodation."""
    unit_amount: int
    quantity: int = 1
    label: str = ""

    @property
    def total_amount(self) -> int:
        return self.unit_amount * self.quantity


@dataclass
class ParsedCost:
    """A cost expression split into its base amount and add-ons."""
    base_amount: int
    add_ons: List[AddOnCharge] = field(default_factory=list)
    note: Optional[str] = None

    @property
    def total_amount(self) -> int:
        return self.base_amount + sum(add_on.total_amount for add_on in self.add_ons)


def clamp_margin(margin_percent: float) -> float:
    """Clamp a margin percentage into the supported range."""
    return max(MIN_MARGIN_PERCENT, min(MAX_MARGIN_PERCENT, margin_percent))


@dataclass
class PricingConfig:
    """
    Pricing parameters for one recompute.

    The margin is supplied by the caller and clamped to 0-200. VAT is fixed
    at 7 percent. The exchange rate only feeds the THB display conversion.
    """
    margin_percent: float
    vat_percent: float = FIXED_VAT_PERCENT
    exchange_rate: float = DEFAULT_EXCHANGE_RATE
    margin_clamped: bool = field(default=False, init=False, compare=False)

    def __post_init__(self):
        clamped = clamp_margin(self.margin_percent)
        if clamped != self.margin_percent:
            self.margin_clamped = True
            logger.warning(f"Margin {self.margin_percent}% out of range, clamped to {clamped}%")
            self.margin_percent = clamped

        if self.vat_percent != FIXED_VAT_PERCENT:
            logger.warning(f"VAT is fixed at {FIXED_VAT_PERCENT}%, ignoring {self.vat_percent}%")
            self.vat_percent = FIXED_VAT_PERCENT

        if self.exchange_rate <= 0:
            raise ValueError(f"Exchange rate must be positive, got {self.exchange_rate}")


@dataclass
class RewriteReport:
    """Result of rewriting a quotation document."""
    text: str
    day_totals: List[int] = field(default_factory=list)
    price_lines_rewritten: int = 0
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def grand_total(self) -> int:
        return sum(self.day_totals)


@dataclass
class PricedAddOn:
    """An add-on with its per-unit cost and selling price."""
    description: str
    unit_cost: int
    quantity: int
    unit_selling: int
    margin_percent: float

    @property
    def total_cost(self) -> int:
        return self.unit_cost * self.quantity

    @property
    def total_selling(self) -> int:
        return self.unit_selling * self.quantity


@dataclass
class PricedDay:
    """One service day from the extractor with cost and selling prices."""
    date: str
    vehicle: str
    service_type: str
    route: str
    base_cost: int
    base_selling: int
    margin_percent: float
    add_ons: List[PricedAddOn] = field(default_factory=list)
    cost_note: Optional[str] = None
    currency: str = "¥"

    @property
    def total_cost(self) -> int:
        return self.base_cost + sum(add_on.total_cost for add_on in self.add_ons)

    @property
    def total_selling(self) -> int:
        return self.base_selling + sum(add_on.total_selling for add_on in self.add_ons)


@dataclass
class QuotationSummary:
    """Priced view of a whole structured quotation."""
    customer_name: str
    days: List[PricedDay]
    notes: List[str]
    total_selling_thb: int = 0

    @property
    def total_cost(self) -> int:
        return sum(day.total_cost for day in self.days)

    @property
    def total_selling(self) -> int:
        return sum(day.total_selling for day in self.days)

    @property
    def profit(self) -> int:
        return self.total_selling - self.total_cost
