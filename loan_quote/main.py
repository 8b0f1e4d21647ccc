"""Command-line interface for the loan quotation toolkit.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full payment schedules, view summaries, compare
two quotes, produce a catalog quotation or preview the point-of-sale
auto-fill amount. Results can be printed to the terminal or exported to
JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import shlex
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .config import LOG_LEVEL, SCHEDULE_PREVIEW_ROWS
from .data_models import (
    CatalogFinancing,
    InterestRateBasis,
    LoanQuoteRequest,
    LoanQuoteResult,
    PaymentType,
    QuotationSummary,
    TermUnit,
)
from .engine import compute_schedule
from .formatter import SCHEDULE_COLUMNS, print_comparison, print_schedule, print_summary, schedule_rows
from .quotation import NotALoanOfferError, auto_fill_amount, build_quotation
from .result import AmortizationError, QuoteValidationError
from .utils import decimal_from_str

OPTION_FOR_FIELD = {
    "price": "--price",
    "down_payment": "--down-payment",
    "term_count": "--term",
    "term_unit": "--term-unit",
    "interest_rate": "--rate",
    "interest_rate_basis": "--rate-basis",
}

TERM_UNITS = [unit.value for unit in TermUnit]
RATE_BASES = [basis.value for basis in InterestRateBasis]


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000", "1,000,000.50") and shorthand with
    ``k``/``m`` suffixes (e.g. "500k" meaning 500_000).
    """
    value = value.strip().lower()
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def build_request_from_options(
    price: str,
    down_payment: Optional[str],
    term: int,
    term_unit: str,
    rate: str,
    rate_basis: str,
) -> LoanQuoteRequest:
    return LoanQuoteRequest(
        price=parse_amount(price),
        down_payment=parse_amount(down_payment) if down_payment else Decimal("0"),
        term_count=term,
        interest_rate=rate.strip().rstrip("%"),
        term_unit=TermUnit(term_unit),
        interest_rate_basis=InterestRateBasis(rate_basis),
    )


def bad_parameter(error: AmortizationError) -> click.BadParameter:
    return click.BadParameter(
        f"{error.message} ({error.kind.value})",
        param_hint=OPTION_FOR_FIELD.get(error.field, error.field),
    )


def compute_or_fail(request: LoanQuoteRequest) -> LoanQuoteResult:
    outcome = compute_schedule(request)
    if not outcome:
        raise bad_parameter(outcome.error)
    return outcome.value


def export_to_json(path: Path, result: LoanQuoteResult, quotation: Optional[QuotationSummary] = None) -> None:
    """Export summary and schedule to a JSON file."""
    data: Dict[str, Any] = {"summary": result.summary(), "schedule": schedule_rows(result.schedule)}
    if quotation is not None:
        data["quotation"] = quotation.to_dict()
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def export_to_csv(path: Path, result: LoanQuoteResult) -> None:
    """Export the schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=SCHEDULE_COLUMNS)
        writer.writeheader()
        writer.writerows(schedule_rows(result.schedule))


def _export(output: str, result: LoanQuoteResult, quotation: Optional[QuotationSummary] = None) -> None:
    path = Path(output)
    if path.suffix.lower() == ".json":
        export_to_json(path, result, quotation)
    elif path.suffix.lower() == ".csv":
        export_to_csv(path, result)
    else:
        raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
    click.echo(f"Schedule exported to {path}")


def _print_result(result: LoanQuoteResult, quotation: Optional[QuotationSummary] = None) -> None:
    print_summary(result, quotation)
    if len(result.schedule) > SCHEDULE_PREVIEW_ROWS:
        click.echo(
            f"Schedule has {len(result.schedule)} rows; showing first {SCHEDULE_PREVIEW_ROWS} rows."
        )
        print_schedule(result.schedule[:SCHEDULE_PREVIEW_ROWS])
    else:
        print_schedule(result.schedule)


def quote_options(func):
    """Attach the loan quote options shared by ``schedule`` and ``summary``."""
    options = [
        click.option("--price", "-p", "price", required=True, help="Price of the financed item"),
        click.option("--down-payment", "-d", "down_payment", help="Down payment amount"),
        click.option("--term", "-t", "term", required=True, type=int, help="Number of periods"),
        click.option("--term-unit", "term_unit", type=click.Choice(TERM_UNITS), default="months", show_default=True),
        click.option("--rate", "-r", "rate", required=True, help="Interest rate in percent"),
        click.option("--rate-basis", "rate_basis", type=click.Choice(RATE_BASES), default="yearly", show_default=True),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option(
    "--log-level",
    "log_level",
    default=LOG_LEVEL,
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """A command-line loan quotation and amortization calculator."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@quote_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    price: str,
    down_payment: Optional[str],
    term: int,
    term_unit: str,
    rate: str,
    rate_basis: str,
    output: Optional[str],
) -> None:
    """Compute and print the full payment schedule."""
    request = build_request_from_options(price, down_payment, term, term_unit, rate, rate_basis)
    result = compute_or_fail(request)
    if output:
        _export(output, result)
    else:
        _print_result(result)


@cli.command()
@quote_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    price: str,
    down_payment: Optional[str],
    term: int,
    term_unit: str,
    rate: str,
    rate_basis: str,
    output: Optional[str],
) -> None:
    """Compute and print only the summary figures for a loan."""
    request = build_request_from_options(price, down_payment, term, term_unit, rate, rate_basis)
    result = compute_or_fail(request)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": result.summary()}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(result)


SCENARIO_OPTIONS = {
    "-p": "price",
    "--price": "price",
    "-d": "down_payment",
    "--down-payment": "down_payment",
    "-t": "term",
    "--term": "term",
    "--term-unit": "term_unit",
    "-r": "rate",
    "--rate": "rate",
    "--rate-basis": "rate_basis",
}


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Turn a quoted option string into ``build_request_from_options`` kwargs."""
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {
        "price": None,
        "down_payment": None,
        "term": None,
        "term_unit": "months",
        "rate": None,
        "rate_basis": "yearly",
    }
    i = 0
    while i < len(tokens):
        token = tokens[i]
        name = SCENARIO_OPTIONS.get(token)
        if name is None:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        if i + 1 >= len(tokens):
            raise click.BadParameter(f"Option {token} in scenario needs a value")
        params[name] = tokens[i + 1]
        i += 2
    for required in ("price", "term", "rate"):
        if params[required] is None:
            raise click.BadParameter(f"Scenario missing required option {required}")
    try:
        params["term"] = int(params["term"])
    except ValueError:
        raise click.BadParameter(f"Invalid term in scenario: {params['term']}")
    if params["term_unit"] not in TERM_UNITS:
        raise click.BadParameter(f"Invalid term unit in scenario: {params['term_unit']}")
    if params["rate_basis"] not in RATE_BASES:
        raise click.BadParameter(f"Invalid rate basis in scenario: {params['rate_basis']}")
    return params


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan quotes.

    Scenarios are provided as quoted option strings, for example:

        loan-quote compare --scenario1 "-p 1m -d 200k -t 12 -r 12" --scenario2 "-p 1m -d 300k -t 24 -r 10"
    """
    result1 = compute_or_fail(build_request_from_options(**parse_scenario_opts(scenario1)))
    result2 = compute_or_fail(build_request_from_options(**parse_scenario_opts(scenario2)))
    print_comparison(result1, result2)


def catalog_options(func):
    """Attach the catalog financing options used by ``quotation`` and ``autofill``."""
    options = [
        click.option("--name", "name", default="", help="Design name"),
        click.option("--price", "-p", "price", required=True, help="Design price"),
        click.option("--estimated-downpayment", "estimated_downpayment", help="Configured down payment"),
        click.option("--max-term", "max_term", type=int, default=0, help="Maximum loan term"),
        click.option("--term-unit", "term_unit", type=click.Choice(TERM_UNITS), default="months", show_default=True),
        click.option("--rate", "-r", "rate", help="Interest rate in percent"),
        click.option("--rate-basis", "rate_basis", type=click.Choice(RATE_BASES), default="yearly", show_default=True),
        click.option("--loan-offer/--no-loan-offer", "loan_offer", default=True, show_default=True),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_catalog_item(
    name: str,
    price: str,
    estimated_downpayment: Optional[str],
    max_term: int,
    term_unit: str,
    rate: Optional[str],
    rate_basis: str,
    loan_offer: bool,
) -> CatalogFinancing:
    rate_value = None
    if rate:
        try:
            rate_value = decimal_from_str(rate.strip().rstrip("%"))
        except ValueError:
            raise click.BadParameter(f"Invalid rate: {rate}", param_hint="--rate")
    return CatalogFinancing(
        name=name,
        price=parse_amount(price),
        is_loan_offer=loan_offer,
        max_loan_term=max_term,
        loan_term_type=TermUnit(term_unit),
        interest_rate=rate_value,
        interest_rate_type=InterestRateBasis(rate_basis),
        estimated_downpayment=parse_amount(estimated_downpayment) if estimated_downpayment else Decimal("0"),
    )


@cli.command()
@catalog_options
@click.option("--down-payment", "-d", "down_payment", help="Down payment chosen by the customer")
@click.option("--term", "-t", "term", type=int, help="Selected term (defaults to the maximum term)")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def quotation(
    name: str,
    price: str,
    estimated_downpayment: Optional[str],
    max_term: int,
    term_unit: str,
    rate: Optional[str],
    rate_basis: str,
    loan_offer: bool,
    down_payment: Optional[str],
    term: Optional[int],
    output: Optional[str],
) -> None:
    """Produce a loan quotation for a catalog design."""
    item = build_catalog_item(name, price, estimated_downpayment, max_term, term_unit, rate, rate_basis, loan_offer)
    try:
        outcome = build_quotation(
            item,
            down_payment=parse_amount(down_payment) if down_payment else None,
            term_count=term,
        )
    except NotALoanOfferError as exc:
        raise click.UsageError(str(exc))
    if not outcome:
        raise bad_parameter(outcome.error)
    quote = outcome.value
    if output:
        _export(output, quote.result, quote)
    else:
        _print_result(quote.result, quote)


@cli.command()
@catalog_options
@click.option(
    "--payment-type",
    "payment_type",
    type=click.Choice([payment.value for payment in PaymentType]),
    default="monthly",
    show_default=True,
)
def autofill(
    name: str,
    price: str,
    estimated_downpayment: Optional[str],
    max_term: int,
    term_unit: str,
    rate: Optional[str],
    rate_basis: str,
    loan_offer: bool,
    payment_type: str,
) -> None:
    """Print the amount a point-of-sale form pre-fills for a design."""
    item = build_catalog_item(name, price, estimated_downpayment, max_term, term_unit, rate, rate_basis, loan_offer)
    try:
        amount = auto_fill_amount(item, PaymentType(payment_type))
    except QuoteValidationError as exc:
        raise bad_parameter(exc.error)
    click.echo(str(amount))


if __name__ == "__main__":
    cli()
