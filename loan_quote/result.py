"""Result values and validation errors returned by the amortization engine.

The engine never raises on bad input. It returns a ``Result`` carrying either
the computed value or an ``AmortizationError`` so callers can show inline
validation messages without special control flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """The only ways a quote request can fail validation."""

    INVALID_PRINCIPAL = "InvalidPrincipal"
    INVALID_TERM = "InvalidTerm"
    INVALID_RATE = "InvalidRate"


@dataclass(frozen=True)
class AmortizationError:
    """A typed validation failure.

    Attributes
    ----------
    kind: ErrorKind
        Which constraint was violated.
    field: str
        Name of the offending request field.
    message: str
        Human-readable explanation suitable for an inline form message.
    value: Any
        The rejected input value, as supplied.
    """

    kind: ErrorKind
    field: str
    message: str
    value: Any = None

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "field": self.field, "message": self.message}


class QuoteValidationError(ValueError):
    """Raised by ``Result.unwrap`` when the wrapped operation failed."""

    def __init__(self, error: AmortizationError) -> None:
        super().__init__(f"{error.kind.value}: {error.message}")
        self.error = error


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an engine call: a value on success, an error otherwise.

    Usage::

        result = compute_schedule(request)
        if result:
            print(result.value.monthly_payment)
        else:
            print(result.error.message)
    """

    success: bool
    value: Optional[T] = None
    error: Optional[AmortizationError] = None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: AmortizationError) -> "Result[T]":
        return cls(success=False, error=error)

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Return the value or raise ``QuoteValidationError``."""
        if not self.success:
            raise QuoteValidationError(self.error)
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.success else default
