# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

# The web app opens its store at import time; point it at a throwaway database.
_DB_DIR = Path(tempfile.mkdtemp(prefix="loan-quote-tests-"))
os.environ.setdefault("QUOTE_DATABASE_URL", f"sqlite:///{_DB_DIR / 'comparisons.sqlite3'}")
os.environ.setdefault("FLASK_SECRET_KEY", "test-secret")

from loan_quote.data_models import (  # noqa: E402
    CatalogFinancing,
    InterestRateBasis,
    LoanQuoteRequest,
    TermUnit,
)


# -------- Request fixtures --------
@pytest.fixture
def quote_request():
    """Factory for the canonical 800k / 12 months / 12 % yearly request (overridable)."""

    def _factory(**overrides):
        fields = dict(
            price=Decimal("1000000.00"),
            down_payment=Decimal("200000.00"),
            term_count=12,
            interest_rate=Decimal("12.0"),
            term_unit=TermUnit.MONTHS,
            interest_rate_basis=InterestRateBasis.YEARLY,
        )
        fields.update(overrides)
        return LoanQuoteRequest(**fields)

    return _factory


# -------- Catalog fixtures --------
@pytest.fixture
def catalog_item():
    """Factory for a financed catalog design (overridable)."""

    def _factory(**overrides):
        fields = dict(
            name="Bungalow A",
            price=Decimal("1000000"),
            is_loan_offer=True,
            max_loan_term=12,
            loan_term_type=TermUnit.MONTHS,
            interest_rate=Decimal("12"),
            interest_rate_type=InterestRateBasis.YEARLY,
            estimated_downpayment=Decimal("200000"),
        )
        fields.update(overrides)
        return CatalogFinancing(**fields)

    return _factory


# -------- Web fixtures --------
@pytest.fixture
def flask_app():
    from loan_quote_web.app import app

    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(flask_app):
    with flask_app.test_client() as test_client:
        yield test_client
