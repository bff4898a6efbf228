#!/usr/bin/env python3
"""
Quote Pricer CLI
Recalculates operator quotations into customer selling prices.
"""

import json
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .date_normalizer import normalize_date
from .financial_calculator import (
    SellingPriceCalculator,
    format_currency,
    to_display_currency,
)
from .models import DEFAULT_EXCHANGE_RATE, PricingConfig, RoundingTier
from .quotation_pricer import price_quotation, render_text, summary_to_dict
from .quotation_rewriter import rewrite_quotation_with_report

logger = logging.getLogger(__name__)

# Results go to stdout, reports and errors to stderr so output can be piped.
console = Console(stderr=True)

TIER_CHOICES = [tier.value for tier in RoundingTier]


def margin_option(func):
    return click.option('--margin', '-m', type=float, required=True,
                        help='Margin percent applied before VAT (0-200)')(func)


def exchange_rate_option(func):
    return click.option('--exchange-rate', type=float, default=DEFAULT_EXCHANGE_RATE, show_default=True,
                        help='THB per JPY, display only')(func)


def _config(margin: float, exchange_rate: float) -> PricingConfig:
    try:
        return PricingConfig(margin_percent=margin, exchange_rate=exchange_rate)
    except ValueError as e:
        raise click.BadParameter(str(e))


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def cli(verbose: bool):
    """Quote Pricer - operator cost quotations to customer selling prices."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr,
    )


@cli.command()
@click.argument('document', type=click.File('r', encoding='utf-8'))
@margin_option
@exchange_rate_option
@click.option('--customer', '-c', help='Customer name to put above the quotation')
@click.option('--output', '-o', type=click.Path(dir_okay=False, writable=True), help='Output file path')
@click.option('--quiet', '-q', is_flag=True, help='Do not print the pricing report')
def rewrite(document, margin: float, exchange_rate: float, customer: Optional[str],
            output: Optional[str], quiet: bool):
    """Recalculate the prices inside a quotation DOCUMENT ('-' for stdin)."""
    config = _config(margin, exchange_rate)
    report = rewrite_quotation_with_report(document.read(), config, customer)

    if output:
        with open(output, 'w', encoding='utf-8') as f:
            f.write(report.text)
        console.print(f"[green]💾 Rewritten quotation saved to: {output}[/green]")
    else:
        click.echo(report.text, nl=False)

    if quiet:
        return

    table = Table(title=f"Selling prices at {config.margin_percent:g}% margin + {config.vat_percent:g}% VAT")
    table.add_column("Day", justify="right")
    table.add_column("Selling (JPY)", justify="right")
    table.add_column("Display (THB)", justify="right")
    for index, total in enumerate(report.day_totals, start=1):
        table.add_row(str(index), format_currency(total),
                      format_currency(to_display_currency(total, config.exchange_rate)))
    table.add_row("Total", format_currency(report.grand_total),
                  format_currency(to_display_currency(report.grand_total, config.exchange_rate)),
                  style="bold")
    console.print(table)

    if report.price_lines_rewritten == 0:
        console.print("[yellow]⚠️  No price lines were recognized; check the quotation format[/yellow]")
    for diagnostic in report.diagnostics:
        where = f"line {diagnostic.line_number}: " if diagnostic.line_number else ""
        console.print(f"[yellow]⚠️  {where}{diagnostic.message}[/yellow]")


@cli.command()
@click.argument('amount', type=click.IntRange(min=0))
@margin_option
@exchange_rate_option
@click.option('--tier', type=click.Choice(TIER_CHOICES), default=RoundingTier.SMART.value, show_default=True,
              help='Rounding tier')
@click.option('--quantity', type=click.IntRange(1, 10), default=1, show_default=True,
              help='Units, multiplied after per-unit rounding')
def sell(amount: int, margin: float, exchange_rate: float, tier: str, quantity: int):
    """Selling price for a single cost AMOUNT in yen."""
    config = _config(margin, exchange_rate)
    calculator = SellingPriceCalculator(config.margin_percent, config.vat_percent)
    breakdown = calculator.price_breakdown(amount, tier)
    unit_selling = int(breakdown.gross.amount)
    total = unit_selling * quantity

    click.echo(total)
    console.print(f"Net {format_currency(breakdown.net)} + VAT and rounding "
                  f"{format_currency(breakdown.tax)} = {format_currency(breakdown.gross)}")
    if quantity > 1:
        console.print(f"{format_currency(unit_selling)} x {quantity} = {format_currency(total)}")
    console.print(f"≈ {format_currency(to_display_currency(total, config.exchange_rate))}")


@cli.command('normalize-date')
@click.argument('dates', nargs=-1, required=True)
def normalize_date_command(dates):
    """Normalize Buddhist Era or short-year DATES to YYYY-MM-DD."""
    for date_str in dates:
        click.echo(normalize_date(date_str))


@cli.command()
@click.argument('extraction', type=click.File('r', encoding='utf-8'))
@margin_option
@exchange_rate_option
@click.option('--view', type=click.Choice(['selling', 'cost', 'json']), default='selling', show_default=True,
              help='Output view')
def price(extraction, margin: float, exchange_rate: float, view: str):
    """Price structured EXTRACTION JSON produced by the quotation extractor."""
    try:
        data = json.load(extraction)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {extraction.name}: {e}")
    if not isinstance(data, dict):
        raise click.ClickException("Extraction JSON must be an object with a 'days' list")

    summary = price_quotation(data, _config(margin, exchange_rate))
    if view == 'json':
        click.echo(json.dumps(summary_to_dict(summary), indent=2, ensure_ascii=False))
    else:
        click.echo(render_text(summary, view), nl=False)

    if not summary.days:
        console.print("[yellow]⚠️  No priced days found in the extraction[/yellow]")
    else:
        console.print(f"[green]Profit: {format_currency(summary.profit)}[/green]")


if __name__ == '__main__':
    cli()
