#!/usr/bin/env python3
"""
Date Era Normalizer
Converts dates written with Buddhist Era years, two-digit years, or years
mangled by the upstream extractor into Gregorian ``YYYY-MM-DD``.
"""

import re
import logging
from typing import Union

logger = logging.getLogger(__name__)

BUDDHIST_ERA_OFFSET = 543


def normalize_year(year: Union[int, str]) -> int:
    """
    Map an ambiguous year to its Gregorian value.

    - 2500 and above: four-digit Buddhist Era, minus 543
    - 2050-2099: a two-digit BE year the extractor prefixed with 20, minus 43
    - 100-199: legacy reconstruction, kept for compatibility
    - 50-99: two-digit Buddhist Era (69 -> 2569 -> 2026)
    - below 50: two-digit Gregorian (26 -> 2026)
    - anything else is already Gregorian
    """
    year = int(year)

    if year >= 2500:
        return year - BUDDHIST_ERA_OFFSET
    if 2050 <= year < 2100:
        return year - 43
    if 100 <= year < 200:
        # Inherited formula with no known producer, kept as is.
        return 2500 + (year - 100) - BUDDHIST_ERA_OFFSET + 100
    if 50 <= year < 100:
        return 2500 + year - BUDDHIST_ERA_OFFSET
    if year < 50:
        return 2000 + year
    return year


class DateNormalizer:
    """Recognizes the handful of date layouts seen in operator quotations."""

    def __init__(self):
        # Order matters: year-first layouts are tried before day-first ones.
        self.year_first = re.compile(r'^(\d{4})[-/.](\d{1,2})[-/.](\d{1,2})$')
        self.day_first = re.compile(r'^(\d{1,2})[-/.](\d{1,2})[-/.](\d{2,4})$')
        self.bare_year = re.compile(r'^\d{1,4}$')
        self.decoration = re.compile(r'^\[?\s*(?:date\s*:?\s*)?(.*?)\s*\]?$', re.IGNORECASE)

    def normalize(self, date_str: str) -> str:
        """
        Normalize a date string to Gregorian ``YYYY-MM-DD``.

        A bare year returns just the normalized year. Input that matches no
        known layout is returned stripped but otherwise unchanged.
        """
        if date_str is None:
            return ""

        text = str(date_str).strip()
        core = self.decoration.match(text).group(1)

        if self.bare_year.match(core):
            return str(normalize_year(core))

        match = self.year_first.match(core)
        if match:
            year, month, day = match.groups()
            return self._format(year, month, day)

        match = self.day_first.match(core)
        if match:
            day, month, year = match.groups()
            return self._format(year, month, day)

        logger.debug(f"Unrecognized date layout, leaving as is: {text!r}")
        return text

    def _format(self, year: str, month: str, day: str) -> str:
        return f"{normalize_year(year):04d}-{int(month):02d}-{int(day):02d}"


def normalize_date(date_str: str) -> str:
    """
    Convenience function to normalize a single date string.
    """
    return DateNormalizer().normalize(date_str)
