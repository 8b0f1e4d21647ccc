"""Quotation and point-of-sale helpers built on top of the engine.

A catalog design carries its own financing terms (price, maximum term,
interest rate and their units). These helpers turn those terms into engine
requests, package the figures a printable quotation shows, and pick the amount
a point-of-sale form pre-fills for each payment type.
"""

from __future__ import annotations

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from .config import (
    DEFAULT_DOWN_PAYMENT_RATIO,
    MONEY_ROUNDING,
    NON_LOAN_MONTHLY_RATIO,
    QUOTATION_VALIDITY_DAYS,
)
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
from .result import Result
from .utils import round_money, to_decimal


class NotALoanOfferError(ValueError):
    """Raised when a quotation is requested for a design without financing."""


def default_down_payment(item: CatalogFinancing) -> Decimal:
    """Return the configured down payment, or 20 % of the price if none is set."""
    estimated = to_decimal(item.estimated_downpayment or 0)
    if estimated > 0:
        return estimated
    return round_money(to_decimal(item.price) * DEFAULT_DOWN_PAYMENT_RATIO)


def build_quote_request(
    item: CatalogFinancing,
    down_payment=None,
    term_count: Optional[int] = None,
) -> LoanQuoteRequest:
    """Build an engine request from a design's financing terms.

    ``term_count`` is interpreted in the design's own ``loan_term_type`` and
    defaults to its maximum term; ``down_payment`` defaults to
    ``default_down_payment(item)``.
    """
    if not item.is_loan_offer or not item.max_loan_term or item.max_loan_term <= 0:
        raise NotALoanOfferError(f"{item.name or 'Design'} is not offered with financing")
    return LoanQuoteRequest(
        price=item.price,
        down_payment=default_down_payment(item) if down_payment is None else down_payment,
        term_count=item.max_loan_term if term_count is None else term_count,
        interest_rate=item.interest_rate if item.interest_rate is not None else Decimal("0"),
        term_unit=item.loan_term_type,
        interest_rate_basis=item.interest_rate_type,
    )


def display_term(term_count: int, term_unit: TermUnit) -> str:
    if term_count <= 0:
        return "N/A"
    if TermUnit(term_unit) is TermUnit.YEARS:
        return f"{term_count} years"
    return f"{term_count} months"


def down_payment_percentage(down_payment: Decimal, price: Decimal) -> Decimal:
    """Down payment as a percentage of the price, to one decimal place."""
    if price <= 0:
        return Decimal("0.0")
    return (down_payment / price * 100).quantize(Decimal("0.1"), rounding=MONEY_ROUNDING)


def generate_quotation_id(today: Optional[date] = None, rng: Optional[random.Random] = None) -> str:
    """Return an ID like ``QOCT18042``: month abbreviation, day, three random digits."""
    today = today or date.today()
    rng = rng or random.Random()
    return f"Q{today.strftime('%b').upper()}{today.day:02d}{rng.randint(0, 999):03d}"


def build_quotation(
    item: CatalogFinancing,
    down_payment=None,
    term_count: Optional[int] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Result[QuotationSummary]:
    """Run the engine for a design and collect the figures of its quotation.

    Engine validation failures are passed through unchanged.
    """
    request = build_quote_request(item, down_payment=down_payment, term_count=term_count)
    outcome = compute_schedule(request)
    if not outcome:
        return Result.fail(outcome.error)

    result: LoanQuoteResult = outcome.value
    today = today or date.today()
    price = to_decimal(request.price)
    paid_upfront = to_decimal(request.down_payment)
    rate = to_decimal(request.interest_rate)
    summary = QuotationSummary(
        quotation_id=generate_quotation_id(today, rng),
        issued_on=today,
        valid_until=today + timedelta(days=QUOTATION_VALIDITY_DAYS),
        name=item.name,
        price=price,
        down_payment=paid_upfront,
        down_payment_percentage=down_payment_percentage(paid_upfront, price),
        loan_amount=result.loan_amount,
        display_term=display_term(int(to_decimal(request.term_count)), request.term_unit),
        interest_rate_label=f"{rate.normalize():f}% ({InterestRateBasis(request.interest_rate_basis).value})",
        monthly_payment=result.monthly_payment,
        total_interest=result.total_interest,
        total_loan_payments=result.total_payment,
        total_cost=result.total_payment + paid_upfront,
        payment_count=len(result.schedule),
        final_payment=result.final_payment,
        result=result,
    )
    return Result.ok(summary)


def auto_fill_amount(item: CatalogFinancing, payment_type: PaymentType) -> Decimal:
    """Amount a point-of-sale form pre-fills for the selected design.

    Monthly payments on financed designs come straight from the engine; other
    designs fall back to 10 % of the price.
    """
    payment_type = PaymentType(payment_type)
    if payment_type is PaymentType.DOWNPAYMENT:
        return to_decimal(item.estimated_downpayment or 0)
    if payment_type is PaymentType.MONTHLY:
        rate = to_decimal(item.interest_rate) if item.interest_rate is not None else Decimal("0")
        if item.is_loan_offer and item.max_loan_term and item.max_loan_term > 0 and rate > 0:
            request = LoanQuoteRequest(
                price=item.price,
                down_payment=item.estimated_downpayment or 0,
                term_count=item.max_loan_term,
                interest_rate=rate,
                term_unit=item.loan_term_type,
                interest_rate_basis=item.interest_rate_type,
            )
            return compute_schedule(request).unwrap().monthly_payment
        return round_money(to_decimal(item.price) * NON_LOAN_MONTHLY_RATIO)
    return to_decimal(item.price)
