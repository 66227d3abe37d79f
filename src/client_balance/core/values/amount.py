from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
)

from result import Err, Ok, Result

from ..errors import ClientError, FieldInvalidError

# Same range as a Postgres NUMERIC column
MAX_INTEGER_DIGITS = 131072
MAX_FRACTION_DIGITS = 16383

# Exact within the range above: anything that would round or leave it traps.
LEDGER_CONTEXT = Context(
    prec=MAX_INTEGER_DIGITS + MAX_FRACTION_DIGITS,
    Emax=MAX_INTEGER_DIGITS - 1,
    Emin=-MAX_FRACTION_DIGITS,
    traps=[InvalidOperation, DivisionByZero, Overflow, Inexact],
)


def bounded_amount(amount: Decimal) -> Result[Decimal, ClientError]:
    if not amount.is_finite():
        return Err(FieldInvalidError("amount", str(amount)))
    exponent = amount.as_tuple().exponent
    assert isinstance(exponent, int)
    integer_digits = amount.adjusted() + 1 if amount else 0
    if integer_digits > MAX_INTEGER_DIGITS or -exponent > MAX_FRACTION_DIGITS:
        return Err(FieldInvalidError("amount", str(amount)))
    return Ok(amount)
