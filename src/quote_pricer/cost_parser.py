#!/usr/bin/env python3
"""
Cost Expression Parser
Parses operator cost expressions such as
``170000+15000(Accommodation driver)+2000*2(Baby seat)`` into a base amount
and ordered add-on charges.

Grammar::

    expr  := DIGITS addon* | DIGITS '(' NOTE ')'
    addon := '+' DIGITS ('*' DIGITS)? '(' LABEL ')'
"""

import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import AddOnCharge, Diagnostic, DiagnosticKind, ParsedCost

logger = logging.getLogger(__name__)

MIN_QUANTITY = 1
MAX_QUANTITY = 10


@dataclass
class AmountSpans:
    """Where the amounts of a parsed cost expression sit in its source text."""
    base: Tuple[int, int]
    add_ons: List[Tuple[int, int]] = field(default_factory=list)
    dropped: List[Tuple[int, int]] = field(default_factory=list)


class CostExpressionParser:
    """Parser for single-line cost expressions."""

    def __init__(self):
        self.base_pattern = re.compile(r'\s*(\d+)\s*')
        self.add_on_pattern = re.compile(r'\+\s*(\d+)\s*(?:\*\s*(\d+)\s*)?\(([^)]*)\)\s*')
        # Everything between the first '(' and the last ')' is the note,
        # so nested or repeated parentheticals stay verbatim.
        self.note_pattern = re.compile(r'\((.*)\)\s*$', re.DOTALL)

        self.diagnostics: List[Diagnostic] = []

    def is_price_expression(self, expr: str) -> bool:
        return bool(expr) and self.base_pattern.match(expr) is not None

    def parse(self, expr: str, line_number: Optional[int] = None) -> Optional[ParsedCost]:
        """
        Parse a cost expression.

        Returns None when the text is not a price expression (it does not
        start with digits) or does not follow the grammar. In both cases the
        caller should keep the original text unchanged.
        """
        located = self.locate(expr, line_number)
        return located[0] if located else None

    def locate(self, expr: str, line_number: Optional[int] = None) -> Optional[Tuple[ParsedCost, AmountSpans]]:
        """
        Parse a cost expression and report the position of every amount.

        ``AmountSpans.add_ons`` lines up with ``ParsedCost.add_ons``; add-ons
        dropped for an invalid multiplier are listed in ``dropped`` as the
        span of the whole ``+amount*qty(label)`` term.
        """
        base_match = self.base_pattern.match(expr) if expr else None
        if not base_match:
            logger.debug(f"Not a price expression: {expr!r}")
            return None

        base_amount = int(base_match.group(1))
        spans = AmountSpans(base=base_match.span(1))
        rest = expr[base_match.end():]

        if not rest:
            return ParsedCost(base_amount=base_amount), spans

        if '+' not in expr:
            note_match = self.note_pattern.match(rest)
            if note_match:
                return ParsedCost(base_amount=base_amount, note=note_match.group(1).strip()), spans
            return self._malformed(expr, line_number)

        add_ons = []
        position = base_match.end()
        while position < len(expr):
            match = self.add_on_pattern.match(expr, position)
            if not match:
                return self._malformed(expr, line_number)

            unit_amount = int(match.group(1))
            quantity = int(match.group(2)) if match.group(2) else 1
            label = match.group(3).strip()
            position = match.end()

            if not MIN_QUANTITY <= quantity <= MAX_QUANTITY:
                message = (f"Dropped add-on {label!r}: multiplier {quantity} "
                           f"outside {MIN_QUANTITY}-{MAX_QUANTITY}")
                logger.warning(message)
                self.diagnostics.append(Diagnostic(DiagnosticKind.INVALID_MULTIPLIER, message, line_number))
                # Up to and including the closing parenthesis.
                spans.dropped.append((match.start(), match.end(3) + 1))
                continue

            add_ons.append(AddOnCharge(unit_amount=unit_amount, quantity=quantity, label=label))
            spans.add_ons.append(match.span(1))

        return ParsedCost(base_amount=base_amount, add_ons=add_ons), spans

    def _malformed(self, expr: str, line_number: Optional[int]) -> None:
        message = f"Malformed cost expression: {expr.strip()!r}"
        logger.warning(message)
        self.diagnostics.append(Diagnostic(DiagnosticKind.MALFORMED_EXPRESSION, message, line_number))
        return None


def format_cost(parsed: ParsedCost) -> str:
    """Serialize a ParsedCost back into expression form."""
    parts = [str(parsed.base_amount)]
    for add_on in parsed.add_ons:
        multiplier = f"*{add_on.quantity}" if add_on.quantity > 1 else ""
        parts.append(f"+{add_on.unit_amount}{multiplier}({add_on.label})")
    if not parsed.add_ons and parsed.note is not None:
        parts.append(f"({parsed.note})")
    return "".join(parts)


def parse_cost_expression(expr: str) -> Optional[ParsedCost]:
    """
    Convenience function to parse a single cost expression.
    """
    return CostExpressionParser().parse(expr)
