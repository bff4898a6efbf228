#!/usr/bin/env python3
"""
Tests for the quote-pricer command line interface.
"""

import json
import unittest

from click.testing import CliRunner

from quote_pricer.cli import cli

QUOTATION = """K.Somchai

15/02/2026
Service: Charter (10 Hours) Start: 08:00
Car: Alphard
Route: Haneda Airport -> Hakone
75000

16/02/2026
Service: Transfer (Pickup Only) Pickup: 10:00
Car: Alphard
Route: Hakone -> Tokyo
170000+15000(Accommodation driver)+2000*2(Baby seat)

75000+189000 = 264000 in total

WAITING TIME RULES
- Exceeding waiting time incurs additional charges
"""


class TestCli(unittest.TestCase):
    """Test cases for the CLI commands."""

    def setUp(self):
        """Set up test fixtures."""
        self.runner = CliRunner()

    def test_rewrite_from_stdin(self):
        result = self.runner.invoke(cli, ['rewrite', '-', '--margin', '37'], input=QUOTATION)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("250000+22000(Accommodation driver)+3000*2(Baby seat)\n", result.output)
        self.assertIn("110000+278000 = 388000 in total\n", result.output)
        self.assertIn("- Exceeding waiting time incurs additional charges\n", result.output)

    def test_rewrite_to_file(self):
        with self.runner.isolated_filesystem():
            with open('quotation.txt', 'w', encoding='utf-8') as f:
                f.write(QUOTATION)
            result = self.runner.invoke(cli, ['rewrite', 'quotation.txt', '-m', '37', '-o', 'selling.txt', '-q'])
            self.assertEqual(result.exit_code, 0, result.output)
            with open('selling.txt', encoding='utf-8') as f:
                rewritten = f.read()

        self.assertEqual(len(rewritten.splitlines()), len(QUOTATION.splitlines()))
        self.assertIn("110000\n", rewritten)

    def test_rewrite_requires_margin(self):
        result = self.runner.invoke(cli, ['rewrite', '-'], input=QUOTATION)
        self.assertEqual(result.exit_code, 2)

    def test_rewrite_rejects_bad_exchange_rate(self):
        result = self.runner.invoke(cli, ['rewrite', '-', '-m', '37', '--exchange-rate', '0'], input=QUOTATION)
        self.assertEqual(result.exit_code, 2)

    def test_sell(self):
        result = self.runner.invoke(cli, ['sell', '2000', '--margin', '30', '--tier', 'addon', '--quantity', '2'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.splitlines()[0], "5600")
        # 2000 x 1.3 = 2600 net; 2782 after VAT, rounded up to 2800
        self.assertIn("Net ¥2,600 + VAT and rounding ¥200 = ¥2,800", result.output)
        self.assertIn("¥2,800 x 2 = ¥5,600", result.output)

    def test_sell_rejects_bad_tier(self):
        result = self.runner.invoke(cli, ['sell', '2000', '--margin', '30', '--tier', 'nearest-ten'])
        self.assertEqual(result.exit_code, 2)

    def test_normalize_date(self):
        result = self.runner.invoke(cli, ['normalize-date', '15/02/69', '2569', '2026-02-15'])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(result.output.splitlines(), ["2026-02-15", "2026", "2026-02-15"])

    def test_price_json_view(self):
        extraction = {
            "customerName": "K.Earn",
            "days": [{"date": "15/02/69", "vehicle": "Coaster", "costPrice": 180000}],
            "notes": [],
        }
        with self.runner.isolated_filesystem():
            with open('extraction.json', 'w', encoding='utf-8') as f:
                json.dump(extraction, f)
            result = self.runner.invoke(cli, ['price', 'extraction.json', '-m', '37', '--view', 'json'])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('"totalSelling": 264000', result.output)
        self.assertIn('"date": "2026-02-15"', result.output)

    def test_price_selling_view(self):
        extraction = {"customerName": "K.Earn", "days": [{"date": "15/02/69", "costPrice": 180000}]}
        result = self.runner.invoke(cli, ['price', '-', '-m', '37'], input=json.dumps(extraction))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("💰 ¥264,000", result.output)

    def test_price_invalid_json(self):
        result = self.runner.invoke(cli, ['price', '-', '-m', '37'], input="{not json")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid JSON", result.output)

    def test_price_rejects_non_object(self):
        result = self.runner.invoke(cli, ['price', '-', '-m', '37'], input="[1, 2]")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("must be an object", result.output)

    def test_missing_input_file_is_a_usage_error(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ['price', 'missing.json', '-m', '37'])
        self.assertEqual(result.exit_code, 2)


if __name__ == '__main__':
    unittest.main()
