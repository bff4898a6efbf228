"""
Quote Pricer

Turns a car operator's cost quotation into a marked-up selling-price quotation.
"""

__version__ = "1.0.0"

from .cost_parser import CostExpressionParser, format_cost, parse_cost_expression
from .date_normalizer import DateNormalizer, normalize_date, normalize_year
from .financial_calculator import SellingPriceCalculator, sell
from .line_classifier import classify
from .models import (
    AddOnCharge,
    LineRole,
    ParsedCost,
    PricingConfig,
    RewriteReport,
    RoundingTier,
)
from .quotation_pricer import QuotationPricer, price_quotation, render_text
from .quotation_rewriter import QuotationRewriter, rewrite_quotation, rewrite_quotation_with_report

__all__ = [
    "AddOnCharge",
    "CostExpressionParser",
    "DateNormalizer",
    "LineRole",
    "ParsedCost",
    "PricingConfig",
    "QuotationPricer",
    "QuotationRewriter",
    "RewriteReport",
    "RoundingTier",
    "SellingPriceCalculator",
    "classify",
    "format_cost",
    "normalize_date",
    "normalize_year",
    "parse_cost_expression",
    "price_quotation",
    "render_text",
    "rewrite_quotation",
    "rewrite_quotation_with_report",
    "sell",
]
