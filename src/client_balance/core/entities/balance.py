from dataclasses import dataclass
from decimal import Decimal

from ..values.client_id import ClientId


@dataclass(slots=True)
class Balance:
    client_id: ClientId
    amount: Decimal

    def set_amount(self, amount: Decimal) -> Decimal:
        """Replace the amount and return the previous one."""
        old_amount = self.amount
        self.amount = amount
        return old_amount
