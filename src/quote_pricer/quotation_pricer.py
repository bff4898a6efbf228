#!/usr/bin/env python3
"""
Structured Quotation Pricer
Prices the per-day JSON produced by the quotation extractor: normalizes
dates, applies the default or per-item margin, and renders the cost and
selling text views sent to the customer.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from .cost_parser import CostExpressionParser, MAX_QUANTITY, MIN_QUANTITY
from .date_normalizer import DateNormalizer
from .financial_calculator import SellingPriceCalculator, format_currency, to_display_currency
from .models import (
    PricedAddOn,
    PricedDay,
    PricingConfig,
    QuotationSummary,
    RoundingTier,
    clamp_margin,
)

logger = logging.getLogger(__name__)

SEPARATOR = "────────────────"


def _to_amount(value: Any) -> Optional[int]:
    """Whole-yen amount from a JSON number or numeric string, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).replace(',', '').strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return int(amount)


def _to_margin(value: Any) -> Optional[float]:
    """Margin override as a float, or None when absent or not a number."""
    if value is None or value == '' or isinstance(value, bool):
        return None
    try:
        margin = Decimal(str(value).replace('%', '').strip())
    except (InvalidOperation, ValueError):
        logger.warning(f"Ignoring margin override {value!r}: not a number")
        return None
    if not margin.is_finite():
        logger.warning(f"Ignoring margin override {value!r}: not a number")
        return None
    return float(margin)


class QuotationPricer:
    """Prices structured quotation data for one pricing configuration."""

    def __init__(self, config: PricingConfig):
        self.config = config
        self.normalizer = DateNormalizer()
        self.parser = CostExpressionParser()
        self._calculators: Dict[float, SellingPriceCalculator] = {}

    def _calculator(self, margin_percent: Optional[float]) -> SellingPriceCalculator:
        if margin_percent is None:
            margin_percent = self.config.margin_percent
        margin_percent = clamp_margin(margin_percent)
        if margin_percent not in self._calculators:
            self._calculators[margin_percent] = SellingPriceCalculator(margin_percent, self.config.vat_percent)
        return self._calculators[margin_percent]

    def price(self, data: Dict[str, Any]) -> QuotationSummary:
        """Price every day of an extractor result."""
        days = []
        raw_days = data.get('days') or []
        if not isinstance(raw_days, list):
            logger.warning(f"Ignoring 'days': expected a list, got {type(raw_days).__name__}")
            raw_days = []

        for index, raw_day in enumerate(raw_days):
            if not isinstance(raw_day, dict):
                logger.warning(f"Skipping day {index + 1}: expected an object, got {raw_day!r}")
                continue
            priced = self.price_day(raw_day)
            if priced is None:
                logger.warning(f"Skipping day {index + 1}: no usable cost price in {raw_day!r}")
                continue
            days.append(priced)

        summary = QuotationSummary(
            customer_name=data.get('customerName') or 'Unknown',
            days=days,
            notes=[str(note) for note in data.get('notes') or []],
        )
        summary.total_selling_thb = int(to_display_currency(summary.total_selling, self.config.exchange_rate).amount)

        logger.info(f"Priced {len(days)} days: cost={summary.total_cost}, "
                    f"selling={summary.total_selling}, profit={summary.profit}")
        return summary

    def price_day(self, raw_day: Dict[str, Any]) -> Optional[PricedDay]:
        base_cost = _to_amount(raw_day.get('costPrice'))
        note = raw_day.get('costPriceNote')
        note = str(note) if note else None
        raw_add_ons = raw_day.get('addOns') or []
        if not isinstance(raw_add_ons, list):
            logger.warning(f"Ignoring 'addOns': expected a list, got {raw_add_ons!r}")
            raw_add_ons = []

        add_on_costs = []
        for raw_add_on in raw_add_ons:
            if not isinstance(raw_add_on, dict):
                logger.warning(f"Skipping add-on: expected an object, got {raw_add_on!r}")
                continue
            unit_cost = _to_amount(raw_add_on.get('unitPrice'))
            quantity = _to_amount(raw_add_on.get('quantity', 1))
            if unit_cost is None:
                logger.warning(f"Skipping add-on without a unit price: {raw_add_on!r}")
                continue
            if quantity is None or not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
                logger.warning(f"Skipping add-on with quantity outside "
                               f"{MIN_QUANTITY}-{MAX_QUANTITY}: {raw_add_on!r}")
                continue
            add_on_costs.append((raw_add_on.get('description', ''), unit_cost, quantity,
                                 _to_margin(raw_add_on.get('customMarginPercent'))))

        # The extractor often folds add-ons into the note as a cost expression.
        if not add_on_costs and note and self.parser.is_price_expression(note):
            parsed = self.parser.parse(note)
            if parsed is not None and parsed.add_ons and (base_cost is None or base_cost == parsed.total_amount):
                base_cost = parsed.base_amount
                add_on_costs = [(add_on.label, add_on.unit_amount, add_on.quantity, None)
                                for add_on in parsed.add_ons]
                note = None

        if base_cost is None:
            return None

        base_calculator = self._calculator(_to_margin(raw_day.get('customMarginPercent')))

        add_ons = []
        for description, unit_cost, quantity, margin in add_on_costs:
            calculator = self._calculator(margin)
            add_ons.append(PricedAddOn(
                description=description,
                unit_cost=unit_cost,
                quantity=quantity,
                unit_selling=calculator.sell(unit_cost, RoundingTier.ADDON),
                margin_percent=calculator.margin_percent,
            ))

        return PricedDay(
            date=self.normalizer.normalize(raw_day.get('date', '')),
            vehicle=raw_day.get('vehicle', ''),
            service_type=raw_day.get('serviceType', ''),
            route=raw_day.get('route', ''),
            base_cost=base_cost,
            base_selling=base_calculator.sell(base_cost, RoundingTier.SMART),
            margin_percent=base_calculator.margin_percent,
            add_ons=add_ons,
            cost_note=note,
            currency=raw_day.get('currency') or '¥',
        )


def render_text(summary: QuotationSummary, view: str = 'selling') -> str:
    """
    Render the copy-paste text for either the 'cost' or the 'selling' view.
    """
    if view not in ('cost', 'selling'):
        raise ValueError(f"Unknown view: {view}")
    selling = view == 'selling'

    output = [f"{summary.customer_name}", ""]
    for day in summary.days:
        for field_value in (day.date, day.vehicle, day.service_type, day.route):
            if field_value:
                output.append(field_value)

        total = day.total_selling if selling else day.total_cost
        price_line = f"💰 {format_currency(total)}"
        if day.cost_note and not selling:
            price_line += f" {day.cost_note}"
        output.append(price_line)

        for add_on in day.add_ons:
            unit = add_on.unit_selling if selling else add_on.unit_cost
            output.append(f"  + {add_on.description} {format_currency(unit)} x{add_on.quantity}")
        output.append("")

    output.append(SEPARATOR)
    if selling:
        output.append(f"Total: {format_currency(summary.total_selling)} "
                      f"({format_currency(summary.total_selling_thb, 'THB')})")
    else:
        output.append(f"Total: {format_currency(summary.total_cost)}")

    if summary.notes:
        output.append("")
        output.append("Notes:")
        for note in summary.notes:
            output.append(f"• {note}")

    return "\n".join(output) + "\n"


def summary_to_dict(summary: QuotationSummary) -> Dict[str, Any]:
    """JSON-serializable form of a QuotationSummary."""
    return {
        "customerName": summary.customer_name,
        "days": [
            {
                "date": day.date,
                "vehicle": day.vehicle,
                "serviceType": day.service_type,
                "route": day.route,
                "baseCostPrice": day.base_cost,
                "baseSellingPrice": day.base_selling,
                "marginPercent": day.margin_percent,
                "costPriceNote": day.cost_note,
                "addOns": [
                    {
                        "description": add_on.description,
                        "unitPrice": add_on.unit_cost,
                        "quantity": add_on.quantity,
                        "unitSellingPrice": add_on.unit_selling,
                        "sellingPrice": add_on.total_selling,
                        "marginPercent": add_on.margin_percent,
                    }
                    for add_on in day.add_ons
                ],
                "totalCostPrice": day.total_cost,
                "totalSellingPrice": day.total_selling,
                "currency": day.currency,
            }
            for day in summary.days
        ],
        "totalCost": summary.total_cost,
        "totalSelling": summary.total_selling,
        "totalSellingTHB": summary.total_selling_thb,
        "profit": summary.profit,
        "notes": summary.notes,
    }


def price_quotation(data: Dict[str, Any], config: PricingConfig) -> QuotationSummary:
    """
    Convenience function to price a structured quotation.
    """
    return QuotationPricer(config).price(data)
