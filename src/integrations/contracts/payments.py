"""
Payment contract helpers.

Validation and formatting rules shared by the real client
(clients/real_http/mpesa.py) and the mock client (clients/mocks/mpesa.py),
so both reject the same inputs and send amounts in the same shape.
"""

from dataclasses import dataclass, fields
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List

from .interfaces import Amount, OperationArgs

_CENTS = Decimal("0.01")
_AMOUNT_FIELDS = {"amount", "reversal_amount"}


@dataclass(frozen=True)
class ArgumentIssue:
    code: str        # INS-* code reported to the caller
    field: str
    message: str


def to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise ValueError(f"Invalid amount: {amount!r}")
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {amount!r}") from exc
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def format_amount(amount: Amount) -> str:
    """Render an amount the way the gateway expects it: two decimals, half-up."""
    return str(to_decimal(amount).quantize(_CENTS, rounding=ROUND_HALF_UP))


def validate_operation_args(args: OperationArgs) -> List[ArgumentIssue]:
    """
    Return a list of problems with the operation arguments.
    Empty list means the request can be sent.
    """
    issues: List[ArgumentIssue] = []

    for f in fields(args):
        value = getattr(args, f.name)
        if f.name in _AMOUNT_FIELDS:
            try:
                amount = to_decimal(value)
            except ValueError:
                issues.append(ArgumentIssue("INS-15", f.name, f"{f.name} must be a number; got {value!r}"))
                continue
            if amount.quantize(_CENTS, rounding=ROUND_HALF_UP) <= 0:
                issues.append(ArgumentIssue("INS-15", f.name, f"{f.name} must be greater than zero once rounded to cents"))
            continue

        if not isinstance(value, str) or not value.strip():
            issues.append(ArgumentIssue("INS-20", f.name, f"{f.name} is required"))

    return issues
