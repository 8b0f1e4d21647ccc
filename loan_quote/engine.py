"""Core calculation engine for loan quotations.

This module turns a ``LoanQuoteRequest`` into a level-payment amortization
schedule. The work happens in two phases: input normalization (validation,
term and rate conversion) and schedule generation. All arithmetic uses
``Decimal`` and every monetary figure is rounded to the cent with the policy
pinned in ``config.MONEY_ROUNDING``. The last period absorbs any rounding
drift so that the principal portions always add up to the loan amount.

The engine is pure: it performs no I/O, keeps no state between calls and
reports invalid input as a ``Result`` failure instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, DecimalException, Inexact, localcontext
from typing import List, Union

from .config import DECIMAL_PRECISION, MAX_EXTRA_PRECISION, MAX_MONEY_AMOUNT
from .data_models import (
    InterestRateBasis,
    LoanQuoteRequest,
    LoanQuoteResult,
    PaymentScheduleEntry,
    TermUnit,
)
from .result import AmortizationError, ErrorKind, Result
from .utils import round_money, to_decimal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class _NormalizedRequest:
    price: Decimal
    down_payment: Decimal
    months: int
    monthly_rate: Decimal


def normalize_term(term_count: int, term_unit: Union[TermUnit, str]) -> int:
    """Return the term expressed in months."""
    if TermUnit(term_unit) is TermUnit.YEARS:
        return term_count * 12
    return term_count


def normalize_rate(interest_rate: Decimal, basis: Union[InterestRateBasis, str]) -> Decimal:
    """Convert a percentage rate into a monthly fraction (``12`` yearly -> ``0.01``)."""
    rate = interest_rate / Decimal(100)
    if InterestRateBasis(basis) is InterestRateBasis.YEARLY:
        return rate / Decimal(12)
    return rate


def _calculate_annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    """Return the unrounded level payment for a fully amortizing loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of payments. When the interest rate is zero, the
    payment simplifies to ``P / n``.
    """
    if term <= 0:
        raise ValueError("Term must be positive")
    if rate_per_month == 0:
        return principal / Decimal(term)
    factor = (1 + rate_per_month) ** term
    if factor == 1:
        # Rate below the working precision
        return principal / Decimal(term)
    return principal * (rate_per_month * factor) / (factor - 1)


def calculate_level_payment(loan_amount: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
    """Return the level monthly payment rounded to the cent.

    ``(1 + i)^n - 1`` cancels the leading digits of a small rate, so the
    working precision grows with the rate's exponent (up to
    ``MAX_EXTRA_PRECISION`` digits) and with the size of the loan.
    """
    extra = 0
    if monthly_rate > 0:
        extra = min(max(0, -monthly_rate.adjusted()), MAX_EXTRA_PRECISION)
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION + extra + max(0, loan_amount.adjusted())
        return round_money(_calculate_annuity_payment(loan_amount, monthly_rate, months))


def _invalid(kind: ErrorKind, field: str, message: str, value) -> AmortizationError:
    return AmortizationError(kind=kind, field=field, message=message, value=value)


def _normalize(request: LoanQuoteRequest) -> Union[_NormalizedRequest, AmortizationError]:
    """Validate the request and convert it to months and a monthly rate.

    Checks run in a fixed order (principal, term, rate) so the same bad input
    always reports the same error.
    """
    amounts = {}
    for field in ("price", "down_payment"):
        raw = getattr(request, field)
        try:
            amount = to_decimal(raw)
        except ValueError:
            return _invalid(ErrorKind.INVALID_PRINCIPAL, field, f"{field} must be a number", raw)
        if amount < 0:
            return _invalid(ErrorKind.INVALID_PRINCIPAL, field, f"{field} must not be negative", raw)
        if amount > MAX_MONEY_AMOUNT:
            return _invalid(
                ErrorKind.INVALID_PRINCIPAL, field, f"{field} must not exceed {MAX_MONEY_AMOUNT:f}", raw
            )
        amounts[field] = amount

    raw_term = request.term_count
    try:
        term = to_decimal(raw_term)
    except ValueError:
        return _invalid(ErrorKind.INVALID_TERM, "term_count", "term_count must be a number", raw_term)
    if term != term.to_integral_value():
        return _invalid(ErrorKind.INVALID_TERM, "term_count", "term_count must be a whole number", raw_term)
    if term < 1:
        return _invalid(ErrorKind.INVALID_TERM, "term_count", "term_count must be at least 1", raw_term)
    try:
        months = normalize_term(int(term), request.term_unit)
    except ValueError:
        return _invalid(
            ErrorKind.INVALID_TERM, "term_unit", "term_unit must be 'months' or 'years'", request.term_unit
        )

    raw_rate = request.interest_rate
    try:
        rate = to_decimal(raw_rate)
    except ValueError:
        return _invalid(ErrorKind.INVALID_RATE, "interest_rate", "interest_rate must be a number", raw_rate)
    if rate < 0:
        return _invalid(ErrorKind.INVALID_RATE, "interest_rate", "interest_rate must not be negative", raw_rate)
    try:
        monthly_rate = normalize_rate(rate, request.interest_rate_basis)
    except ValueError:
        return _invalid(
            ErrorKind.INVALID_RATE,
            "interest_rate_basis",
            "interest_rate_basis must be 'monthly' or 'yearly'",
            request.interest_rate_basis,
        )

    return _NormalizedRequest(
        price=amounts["price"],
        down_payment=amounts["down_payment"],
        months=months,
        monthly_rate=monthly_rate,
    )


def _build_schedule(
    loan_amount: Decimal, monthly_rate: Decimal, months: int, monthly_payment: Decimal
) -> List[PaymentScheduleEntry]:
    schedule: List[PaymentScheduleEntry] = []
    balance = loan_amount
    for period in range(1, months + 1):
        interest = round_money(balance * monthly_rate)
        if period == months:
            # Final period settles whatever is left, absorbing rounding drift
            principal = balance
            payment = principal + interest
        else:
            principal = round_money(monthly_payment - interest)
            payment = monthly_payment
            if principal < 0 or principal > balance:
                principal = min(max(principal, ZERO), balance)
                payment = principal + interest
        balance = round_money(balance - principal)
        if balance < 0:
            balance = ZERO
        schedule.append(
            PaymentScheduleEntry(
                period=period,
                payment_amount=payment,
                interest_portion=interest,
                principal_portion=principal,
                remaining_balance=balance,
            )
        )
    return schedule


def compute_schedule(request: LoanQuoteRequest) -> Result[LoanQuoteResult]:
    """Compute the payment schedule and totals for a loan quote.

    Parameters
    ----------
    request: LoanQuoteRequest
        Price, down payment, term and interest rate of the financed item.

    Returns
    -------
    Result[LoanQuoteResult]
        On success, the level payment, totals and one entry per month. A down
        payment that meets or exceeds the price yields a successful result
        with a zero loan amount and an empty schedule. On failure, an
        ``AmortizationError`` of kind ``InvalidPrincipal``, ``InvalidTerm`` or
        ``InvalidRate``; no schedule is computed in that case.
    """
    normalized = _normalize(request)
    if isinstance(normalized, AmortizationError):
        logger.warning("Rejected loan quote request (%s): %s", normalized.kind.value, normalized.message)
        return Result.fail(normalized)

    months = normalized.months
    monthly_rate = normalized.monthly_rate

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION

        loan_amount = round_money(normalized.price - normalized.down_payment)
        if loan_amount <= 0:
            logger.debug("Down payment covers the price; nothing to finance")
            return Result.ok(
                LoanQuoteResult(
                    loan_amount=ZERO,
                    monthly_payment=ZERO,
                    total_interest=ZERO,
                    total_payment=ZERO,
                    schedule=[],
                    months=months,
                    monthly_rate=monthly_rate,
                )
            )

        try:
            monthly_payment = calculate_level_payment(loan_amount, monthly_rate, months)
            schedule = _build_schedule(loan_amount, monthly_rate, months, monthly_payment)
            # Totals must be exact to the cent
            ctx.traps[Inexact] = True
            total_interest = sum((e.interest_portion for e in schedule), ZERO)
            total_payment = sum((e.payment_amount for e in schedule), ZERO)
        except DecimalException:
            error = _invalid(
                ErrorKind.INVALID_RATE,
                "interest_rate",
                "interest_rate is too large to quote over this term",
                request.interest_rate,
            )
            logger.warning("Rejected loan quote request (%s): %s", error.kind.value, error.message)
            return Result.fail(error)

        logger.debug(
            "Loan quote: loan_amount=%s months=%d monthly_rate=%s monthly_payment=%s",
            loan_amount,
            months,
            monthly_rate,
            monthly_payment,
        )

    return Result.ok(
        LoanQuoteResult(
            loan_amount=loan_amount,
            monthly_payment=monthly_payment,
            total_interest=total_interest,
            total_payment=total_payment,
            schedule=schedule,
            months=months,
            monthly_rate=monthly_rate,
        )
    )
