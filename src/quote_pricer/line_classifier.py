#!/usr/bin/env python3
"""
Line Classifier for Quotation Documents
Decides which lines of an operator quotation carry prices. The rule is a
previous-line heuristic: a price expression directly follows one of the day
block's labelled lines.
"""

import re
import logging
from typing import Optional

from .models import LineRole

logger = logging.getLogger(__name__)

RULES_MARKER = 'waiting time rules'

PRICE_CONTEXT_PREFIXES = (
    'route:', 'note:', 'car:', 'pax:', 'luggage:', 'service:', 'date',
)

DESCRIPTOR_PREFIXES = ('service:', 'pax:', 'luggage:', 'car:', 'note:')

BULLET = '-'

_price_start = re.compile(r'^\d{4,}')
_pure_amount = re.compile(r'^\d{4,}$')
_date_like = re.compile(
    r'^\[?\s*(?:\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}|\d{4}[-/.]\d{1,2}[-/.]\d{1,2})\b'
)


def is_rules_marker(line: str) -> bool:
    return RULES_MARKER in line.lower()


def is_total_line(line: str) -> bool:
    return '=' in line and 'in total' in line.lower()


def _looks_like_price(text: str) -> bool:
    if not _price_start.match(text):
        return False
    return '+' in text or '(' in text or bool(_pure_amount.match(text))


def classify(prev_line: Optional[str], current_line: str, in_rules_section: bool) -> LineRole:
    """
    Classify ``current_line`` given the line right before it.

    A line is a price line when its trimmed text starts with at least four
    digits and is either a bare amount or contains ``+`` or ``(``, the
    previous trimmed line starts with a day-block label, and neither line is
    a ``-`` bullet. Anything inside the rules section is never a price.
    """
    text = current_line.strip()
    prev = (prev_line or '').strip()

    if is_rules_marker(text):
        return LineRole.SECTION_MARKER
    if in_rules_section:
        return LineRole.RULES
    if not text:
        return LineRole.BLANK
    if is_total_line(text):
        return LineRole.TOTAL

    prev_lower = prev.lower()
    if (_looks_like_price(text)
            and prev_lower.startswith(PRICE_CONTEXT_PREFIXES)
            and not text.startswith(BULLET)
            and not prev.startswith(BULLET)):
        return LineRole.PRICE

    lower = text.lower()
    if lower.startswith('date') or _date_like.match(text):
        return LineRole.DATE_HEADER
    if lower.startswith('route:'):
        return LineRole.ROUTE
    if lower.startswith(DESCRIPTOR_PREFIXES):
        return LineRole.DESCRIPTOR
    return LineRole.FREEFORM
