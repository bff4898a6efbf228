#!/usr/bin/env python3
"""
Tests for pricing structured extractor output.
"""

import json
import unittest

from quote_pricer.models import PricingConfig
from quote_pricer.quotation_pricer import (
    QuotationPricer,
    price_quotation,
    render_text,
    summary_to_dict,
)


def create_sample_extraction():
    """Extractor output for a two-day Coaster booking."""
    return {
        "customerName": "K.Earn",
        "days": [
            {
                "date": "15/02/69",
                "vehicle": "Coaster 17 seats",
                "serviceType": "Charter 10H",
                "route": "Pickup Haneda Airport => Hakuba Platinum",
                "costPrice": 180000,
                "currency": "¥",
            },
            {
                "date": "2026-02-21",
                "vehicle": "Coaster 17 seats",
                "serviceType": "Pick up only",
                "route": "Hakuba Platinum => Mitsui Garden Premier",
                "costPrice": 175000,
                "costPriceNote": "170000+5000(New Year Service Fee)",
            },
        ],
        "notes": ["Vehicle arrives 30 minutes before pickup"],
    }


class TestQuotationPricer(unittest.TestCase):
    """Test cases for QuotationPricer."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = PricingConfig(margin_percent=37)
        self.pricer = QuotationPricer(self.config)

    def test_price_days(self):
        summary = self.pricer.price(create_sample_extraction())
        first, second = summary.days

        self.assertEqual(first.date, "2026-02-15")
        self.assertEqual(first.base_selling, 264000)
        self.assertEqual(first.total_selling, 264000)

        # The note is a cost expression, so the add-on is recovered from it.
        self.assertEqual(second.base_cost, 170000)
        self.assertEqual(second.base_selling, 250000)
        self.assertEqual(len(second.add_ons), 1)
        self.assertEqual(second.add_ons[0].description, "New Year Service Fee")
        self.assertEqual(second.add_ons[0].unit_selling, 7400)
        self.assertIsNone(second.cost_note)
        self.assertEqual(second.total_cost, 175000)
        self.assertEqual(second.total_selling, 257400)

        self.assertEqual(summary.customer_name, "K.Earn")
        self.assertEqual(summary.total_cost, 355000)
        self.assertEqual(summary.total_selling, 521400)
        self.assertEqual(summary.profit, 166400)
        self.assertEqual(summary.total_selling_thb, 130350)

    def test_note_that_does_not_add_up_stays_a_note(self):
        day = {"date": "2026-02-21", "costPrice": 180000, "costPriceNote": "170000+5000(New Year Service Fee)"}
        priced = self.pricer.price_day(day)
        self.assertEqual(priced.base_cost, 180000)
        self.assertEqual(priced.add_ons, [])
        self.assertEqual(priced.cost_note, "170000+5000(New Year Service Fee)")

    def test_text_note_is_kept(self):
        priced = self.pricer.price_day({"date": "2026-02-21", "costPrice": 65000, "costPriceNote": "includes tolls"})
        self.assertEqual(priced.cost_note, "includes tolls")
        self.assertEqual(priced.base_selling, 96000)

    def test_custom_margins(self):
        day = {
            "date": "2026-03-01",
            "costPrice": 10000,
            "customMarginPercent": 0,
            "addOns": [
                {"unitPrice": 2000, "quantity": 2, "description": "Baby seat", "customMarginPercent": 30},
                {"unitPrice": 1000, "quantity": 1, "description": "Snow chains"},
            ],
        }
        priced = self.pricer.price_day(day)
        self.assertEqual(priced.base_selling, 11000)            # 10700
        self.assertEqual(priced.add_ons[0].unit_selling, 2800)  # 2782
        self.assertEqual(priced.add_ons[0].total_selling, 5600)
        self.assertEqual(priced.add_ons[1].unit_selling, 1500)  # 1465.9 at the default 37%
        self.assertEqual(priced.total_selling, 18100)

    def test_invalid_entries_are_skipped(self):
        data = {
            "customerName": "",
            "days": [
                {"date": "15/02/69", "costPrice": None},
                {"date": "16/02/69", "costPrice": -5000},
                {"date": "17/02/69", "costPrice": "n/a"},
                "not a day",
                None,
                {"date": "18/02/69", "costPrice": "75,000", "customMarginPercent": "abc",
                 "addOns": [{"unitPrice": 2000, "quantity": 11, "description": "Too many"},
                            {"quantity": 1, "description": "No price"},
                            "Baby seat",
                            {"unitPrice": 1000, "description": "Chains", "customMarginPercent": [30]}]},
                {"date": "19/02/69", "costPrice": 1000, "costPriceNote": "²000+1000(x)", "addOns": "none"},
            ],
        }
        summary = price_quotation(data, self.config)
        self.assertEqual(summary.customer_name, "Unknown")
        self.assertEqual(len(summary.days), 2)

        # Unusable margin overrides fall back to the default 37%.
        first = summary.days[0]
        self.assertEqual(first.date, "2026-02-18")
        self.assertEqual(first.margin_percent, 37)
        self.assertEqual(first.base_selling, 110000)
        self.assertEqual([(a.description, a.unit_selling, a.margin_percent) for a in first.add_ons],
                         [("Chains", 1500, 37)])

        second = summary.days[1]
        self.assertEqual(second.base_selling, 1500)
        self.assertEqual(second.add_ons, [])
        self.assertEqual(second.cost_note, "²000+1000(x)")

    def test_days_must_be_a_list(self):
        summary = price_quotation({"days": {"costPrice": 75000}}, self.config)
        self.assertEqual(summary.days, [])

    def test_numeric_margin_strings_are_accepted(self):
        priced = self.pricer.price_day({"costPrice": 10000, "customMarginPercent": "0%"})
        self.assertEqual(priced.margin_percent, 0)
        self.assertEqual(priced.base_selling, 11000)

    def test_empty_extraction(self):
        summary = price_quotation({}, self.config)
        self.assertEqual(summary.days, [])
        self.assertEqual(summary.total_selling, 0)
        self.assertEqual(summary.total_selling_thb, 0)


class TestRenderText(unittest.TestCase):
    """Test cases for the text views."""

    def setUp(self):
        """Set up test fixtures."""
        self.summary = price_quotation(create_sample_extraction(), PricingConfig(margin_percent=37))

    def test_selling_view(self):
        text = render_text(self.summary, "selling")
        self.assertTrue(text.startswith("K.Earn\n\n2026-02-15\nCoaster 17 seats\n"))
        self.assertIn("💰 ¥264,000\n", text)
        self.assertIn("💰 ¥257,400\n", text)
        self.assertIn("  + New Year Service Fee ¥7,400 x1\n", text)
        self.assertIn("Total: ¥521,400 (฿130,350)\n", text)
        self.assertTrue(text.endswith("Notes:\n• Vehicle arrives 30 minutes before pickup\n"))

    def test_cost_view(self):
        text = render_text(self.summary, "cost")
        self.assertIn("💰 ¥180,000\n", text)
        self.assertIn("  + New Year Service Fee ¥5,000 x1\n", text)
        self.assertIn("Total: ¥355,000\n", text)

    def test_unknown_view(self):
        with self.assertRaises(ValueError):
            render_text(self.summary, "profit")

    def test_summary_to_dict_is_json_serializable(self):
        data = json.loads(json.dumps(summary_to_dict(self.summary), ensure_ascii=False))
        self.assertEqual(data["totalSelling"], 521400)
        self.assertEqual(data["profit"], 166400)
        self.assertEqual(data["days"][1]["addOns"][0]["sellingPrice"], 7400)


if __name__ == '__main__':
    unittest.main()
