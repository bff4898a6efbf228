#!/usr/bin/env python3
"""
Quotation Document Rewriter
Recalculates selling prices inside an operator's multi-day quotation text
while leaving every other line byte-for-byte untouched.
"""

import re
import logging
from typing import List, Optional

from .cost_parser import CostExpressionParser
from .financial_calculator import SellingPriceCalculator
from .line_classifier import classify, is_rules_marker
from .models import (
    AddOnCharge,
    Diagnostic,
    DiagnosticKind,
    LineRole,
    ParsedCost,
    PricingConfig,
    RewriteReport,
    RoundingTier,
)

logger = logging.getLogger(__name__)


class QuotationRewriter:
    """
    Rewrites price lines and the total line of a quotation document.

    One instance handles one document; the module-level
    :func:`rewrite_quotation` creates a fresh instance per call.
    """

    def __init__(self, config: PricingConfig):
        self.config = config
        self.calculator = SellingPriceCalculator(config.margin_percent, config.vat_percent)
        self.parser = CostExpressionParser()
        self.day_totals: List[int] = []
        self.diagnostics: List[Diagnostic] = []
        self.price_lines_rewritten = 0
        self.total_term_pattern = re.compile(r'\d+')
        self.in_total_pattern = re.compile(r'in total', re.IGNORECASE)

    def rewrite(self, document: str, customer_name: Optional[str] = None) -> RewriteReport:
        """
        Rewrite ``document`` and report what changed.

        Line breaks are preserved exactly, so the output has the same number
        of lines as the input. Only "\n" separates lines; a trailing "\r" is
        kept with its line and any other control or separator character is
        line content.
        """
        lines = document.split('\n')
        marker_index = self._find_rules_marker(lines)
        logger.info(f"Rewriting quotation: {len(lines)} lines, rules marker at "
                    f"{marker_index if marker_index is not None else 'none'}")

        output = []
        prev_content = None
        for index, line in enumerate(lines):
            content, ending = self._split_ending(line)
            in_rules = marker_index is not None and index >= marker_index
            role = classify(prev_content, content, in_rules)
            logger.debug(f"Line {index + 1} [{role.value}]: {content!r}")

            if role is LineRole.PRICE:
                content = self._rewrite_price_line(content, index + 1)
            elif role is LineRole.TOTAL:
                content = self._rewrite_total_line(content, index + 1)

            output.append(content + ending)
            prev_content = line.rstrip('\r')

        text = '\n'.join(output)
        if customer_name and not document.lstrip().startswith(customer_name.strip()):
            text = f"{customer_name.strip()}\n\n{text}"

        if self.price_lines_rewritten == 0:
            logger.warning("No price lines were rewritten; the document may not follow the quotation format")
        else:
            logger.info(f"Rewrote {self.price_lines_rewritten} price lines, "
                        f"day totals {self.day_totals} = {sum(self.day_totals)}")

        diagnostics = sorted(self.parser.diagnostics + self.diagnostics,
                             key=lambda diagnostic: diagnostic.line_number or 0)
        if self.config.margin_clamped or self.calculator.margin_clamped:
            diagnostics.insert(0, Diagnostic(DiagnosticKind.MARGIN_CLAMPED,
                                             f"Margin clamped to {self.calculator.margin_percent}%"))

        return RewriteReport(
            text=text,
            day_totals=list(self.day_totals),
            price_lines_rewritten=self.price_lines_rewritten,
            diagnostics=diagnostics,
        )

    def _find_rules_marker(self, lines: List[str]) -> Optional[int]:
        for index, line in enumerate(lines):
            if is_rules_marker(line):
                return index
        return None

    @staticmethod
    def _split_ending(line: str):
        content = line.rstrip('\r')
        return content, line[len(content):]

    def _rewrite_price_line(self, content: str, line_number: int) -> str:
        located = self.parser.locate(content, line_number)
        if located is None:
            return content

        parsed, spans = located
        selling = self.sell_cost(parsed)
        self.day_totals.append(selling.total_amount)
        self.price_lines_rewritten += 1

        # Only the amounts change; spacing, multipliers and labels are kept as written.
        replacements = [(spans.base, str(selling.base_amount))]
        replacements += [(span, str(add_on.unit_amount)) for span, add_on in zip(spans.add_ons, selling.add_ons)]
        replacements += [(span, '') for span in spans.dropped]

        rewritten = content
        for (start, end), text in sorted(replacements, reverse=True):
            rewritten = rewritten[:start] + text + rewritten[end:]
        logger.debug(f"Line {line_number}: {content.strip()!r} -> {rewritten.strip()!r}")
        return rewritten

    def sell_cost(self, parsed: ParsedCost) -> ParsedCost:
        """Selling-price version of a parsed cost, add-ons priced per unit."""
        return ParsedCost(
            base_amount=self.calculator.sell(parsed.base_amount, RoundingTier.SMART),
            add_ons=[
                AddOnCharge(
                    unit_amount=self.calculator.sell_add_on(add_on),
                    quantity=add_on.quantity,
                    label=add_on.label,
                )
                for add_on in parsed.add_ons
            ],
            note=parsed.note,
        )

    def _rewrite_total_line(self, content: str, line_number: int) -> str:
        left, _, _ = content.partition('=')
        tail_match = self.in_total_pattern.search(content)
        tail = content[tail_match.start():]
        indent = left[:len(left) - len(left.lstrip())]

        totals = list(self.day_totals)
        if not totals:
            terms = [int(term) for term in self.total_term_pattern.findall(left)]
            if not terms:
                return content
            totals = [self.calculator.sell(term, RoundingTier.SMART) for term in terms]
            message = "No day totals collected before the total line; re-priced its own terms"
            logger.warning(message)
            self.diagnostics.append(
                Diagnostic(DiagnosticKind.TOTAL_FALLBACK, message, line_number))

        expression = '+'.join(str(total) for total in totals)
        return f"{indent}{expression} = {sum(totals)} {tail}"


def rewrite_quotation(document: str, config: PricingConfig, customer_name: Optional[str] = None) -> str:
    """
    Convenience function to rewrite a quotation document.
    """
    return QuotationRewriter(config).rewrite(document, customer_name).text


def rewrite_quotation_with_report(document: str, config: PricingConfig,
                                  customer_name: Optional[str] = None) -> RewriteReport:
    """
    Convenience function returning the rewritten text with day totals and diagnostics.
    """
    return QuotationRewriter(config).rewrite(document, customer_name)
