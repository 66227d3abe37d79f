from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from result import Err, Ok, Result

from ..errors import ClientError, PositiveAmountError, ZeroAmountError
from ..values.amount import bounded_amount
from ..values.client_id import ClientId


@dataclass(slots=True, frozen=True)
class DebitTransactionRequest:
    client_id: ClientId
    # always strictly negative, applied additively to the balance
    amount: Decimal

    @classmethod
    def new(cls, client_id: ClientId, amount: Decimal) -> Result[Self, ClientError]:
        if (bounded := bounded_amount(amount)).is_err():
            return bounded
        if amount > 0:
            return Err(PositiveAmountError())
        if amount == 0:
            return Err(ZeroAmountError())
        return Ok(cls(client_id, amount))
