"""Configuration values for the loan quotation toolkit.

Business defaults and the monetary rounding policy live here so the engine,
the quotation helpers and both front ends agree on them. Deployment settings
are read from environment variables at import time.
"""

from __future__ import annotations

import os
from decimal import Decimal, ROUND_HALF_UP

# Monetary rounding policy. Every amount the engine emits is quantized to the
# cent with this mode.
MONEY_ROUNDING = ROUND_HALF_UP
CENT = Decimal("0.01")
DECIMAL_PRECISION = 28
# Extra digits the level-payment formula may borrow for very small rates.
# Below that the rate cannot move the payment by a cent and P / n is used.
MAX_EXTRA_PRECISION = 100
# Largest price or down payment the engine quotes to the cent.
MAX_MONEY_AMOUNT = Decimal("1e15")

# Quotation defaults (used when a catalog item does not specify them)
DEFAULT_DOWN_PAYMENT_RATIO = Decimal("0.20")
NON_LOAN_MONTHLY_RATIO = Decimal("0.10")
QUOTATION_VALIDITY_DAYS = 30

# Display
CURRENCY_SYMBOL = "₱"
SCHEDULE_PREVIEW_ROWS = 120

# Web front end
MAX_SAVED_COMPARISONS = 10
DATABASE_URL = os.environ.get("QUOTE_DATABASE_URL", "sqlite:///comparison_data.sqlite3")
SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
ASSET_VERSION = os.environ.get("ASSET_VERSION", "1")

LOG_LEVEL = os.environ.get("LOAN_QUOTE_LOG_LEVEL", "WARNING").upper()
