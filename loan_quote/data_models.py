"""Data models for the loan quotation toolkit.

This module defines the dataclasses exchanged with the amortization engine:
the quote request built for every user interaction, the per-period schedule
entries and the aggregate result. It also holds the financing terms a
catalog design carries, which the quotation and point-of-sale helpers turn
into requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union

Number = Union[Decimal, int, float, str]


class TermUnit(str, Enum):
    MONTHS = "months"
    YEARS = "years"


class InterestRateBasis(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PaymentType(str, Enum):
    """Kinds of payment a point-of-sale transaction can record."""

    DOWNPAYMENT = "downpayment"
    FULL = "full"
    MONTHLY = "monthly"


@dataclass
class LoanQuoteRequest:
    """Inputs for a single quote.

    Monetary values may be passed as ``Decimal``, ``int``, ``float`` or
    numeric strings; the engine normalizes them before computing. The
    ``interest_rate`` is a percentage (``12`` means 12 %) interpreted
    according to ``interest_rate_basis``.
    """

    price: Number
    down_payment: Number
    term_count: Number
    interest_rate: Number
    term_unit: TermUnit = TermUnit.MONTHS
    interest_rate_basis: InterestRateBasis = InterestRateBasis.YEARLY


@dataclass(frozen=True)
class PaymentScheduleEntry:
    """One period of the payment schedule.

    ``payment_amount`` always equals ``principal_portion + interest_portion``;
    ``remaining_balance`` is the outstanding principal after the period.
    """

    period: int
    payment_amount: Decimal
    interest_portion: Decimal
    principal_portion: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class LoanQuoteResult:
    loan_amount: Decimal
    monthly_payment: Decimal
    total_interest: Decimal
    total_payment: Decimal
    schedule: List[PaymentScheduleEntry]
    months: int
    monthly_rate: Decimal

    @property
    def final_payment(self) -> Decimal:
        """Amount due in the last period (may differ from the level payment)."""
        return self.schedule[-1].payment_amount if self.schedule else Decimal("0.00")

    def summary(self) -> dict:
        """Aggregate figures as a flat, JSON-friendly dictionary."""
        return {
            "loan_amount": str(self.loan_amount),
            "monthly_payment": str(self.monthly_payment),
            "final_payment": str(self.final_payment),
            "total_interest": str(self.total_interest),
            "total_payment": str(self.total_payment),
            "months": self.months,
            "payments": len(self.schedule),
        }


@dataclass
class CatalogFinancing:
    """Financing terms attached to a catalog design.

    ``max_loan_term`` is expressed in ``loan_term_type`` units. A missing
    ``interest_rate`` means the design was never configured with one.
    """

    price: Decimal
    is_loan_offer: bool = False
    max_loan_term: int = 0
    loan_term_type: TermUnit = TermUnit.MONTHS
    interest_rate: Optional[Decimal] = None
    interest_rate_type: InterestRateBasis = InterestRateBasis.YEARLY
    estimated_downpayment: Decimal = Decimal("0")
    name: str = ""


@dataclass
class QuotationSummary:
    """Header figures of a printable loan quotation."""

    quotation_id: str
    issued_on: date
    valid_until: date
    name: str
    price: Decimal
    down_payment: Decimal
    down_payment_percentage: Decimal
    loan_amount: Decimal
    display_term: str
    interest_rate_label: str
    monthly_payment: Decimal
    total_interest: Decimal
    total_loan_payments: Decimal
    total_cost: Decimal
    payment_count: int
    final_payment: Decimal
    result: LoanQuoteResult = field(repr=False)

    def to_dict(self) -> dict:
        return {
            "quotation_id": self.quotation_id,
            "issued_on": self.issued_on.isoformat(),
            "valid_until": self.valid_until.isoformat(),
            "name": self.name,
            "price": str(self.price),
            "down_payment": str(self.down_payment),
            "down_payment_percentage": str(self.down_payment_percentage),
            "loan_amount": str(self.loan_amount),
            "term": self.display_term,
            "interest_rate": self.interest_rate_label,
            "monthly_payment": str(self.monthly_payment),
            "total_interest": str(self.total_interest),
            "total_loan_payments": str(self.total_loan_payments),
            "total_cost": str(self.total_cost),
            "payment_count": self.payment_count,
            "final_payment": str(self.final_payment),
        }
