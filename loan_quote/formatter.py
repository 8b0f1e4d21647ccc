"""Output helpers for the loan quotation toolkit.

This module renders quote results in a tabular text format and flattens the
schedule into rows for the JSON/CSV exporters. Values are shown exactly as
the engine computed them; nothing here re-derives or re-rounds an amount.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .config import CURRENCY_SYMBOL
from .data_models import LoanQuoteResult, PaymentScheduleEntry, QuotationSummary

SCHEDULE_COLUMNS = ["Month", "Payment", "Principal", "Interest", "Balance"]


def format_currency(amount: Decimal, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format an amount with a currency symbol and thousands separators."""
    return f"{symbol}{amount:,.2f}"


def schedule_rows(schedule: Iterable[PaymentScheduleEntry]) -> List[Dict[str, str]]:
    """Return schedule entries as plain string dictionaries keyed by column."""
    return [
        {
            "Month": str(entry.period),
            "Payment": str(entry.payment_amount),
            "Principal": str(entry.principal_portion),
            "Interest": str(entry.interest_portion),
            "Balance": str(entry.remaining_balance),
        }
        for entry in schedule
    ]


def print_summary(result: LoanQuoteResult, quotation: Optional[QuotationSummary] = None) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    if quotation is not None:
        print(f"Quotation ID       : {quotation.quotation_id}")
        print(f"Valid until        : {quotation.valid_until.isoformat()}")
        print(f"Project price      : {format_currency(quotation.price)}")
        print(f"Down payment       : {format_currency(quotation.down_payment)} ({quotation.down_payment_percentage}%)")
        print(f"Loan term          : {quotation.display_term}")
        print(f"Interest rate      : {quotation.interest_rate_label}")
    print(f"Loan amount        : {format_currency(result.loan_amount)}")
    print(f"Monthly payment    : {format_currency(result.monthly_payment)}")
    if result.schedule and result.final_payment != result.monthly_payment:
        print(f"Final payment      : {format_currency(result.final_payment)}")
    print(f"Total interest     : {format_currency(result.total_interest)}")
    print(f"Total payments     : {format_currency(result.total_payment)}")
    if quotation is not None:
        print(f"Total cost         : {format_currency(quotation.total_cost)}")
    print(f"Number of payments : {len(result.schedule)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[PaymentScheduleEntry]) -> None:
    """Print the payment schedule as a simple tab-separated table."""
    print("\t".join(SCHEDULE_COLUMNS))
    for row in schedule_rows(schedule):
        print("\t".join(row[column] for column in SCHEDULE_COLUMNS))


def print_comparison(r1: LoanQuoteResult, r2: LoanQuoteResult) -> None:
    """Print two quotes side by side.

    The difference column is scenario2 - scenario1; a negative value means
    the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    metrics = [
        ("loan_amount", r1.loan_amount, r2.loan_amount),
        ("monthly_payment", r1.monthly_payment, r2.monthly_payment),
        ("total_interest", r1.total_interest, r2.total_interest),
        ("total_payment", r1.total_payment, r2.total_payment),
        ("payments", Decimal(len(r1.schedule)), Decimal(len(r2.schedule))),
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key, v1, v2 in metrics:
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {v2 - v1:15.2f}")
    print("=" * 72)
