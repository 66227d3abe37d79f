from collections.abc import Sequence
from typing import Protocol

from result import Result

from ..core.entities.balance import Balance
from ..core.errors import ClientError


class BalanceExporter(Protocol):
    async def export_balances(
        self, balances: Sequence[Balance]
    ) -> Result[None, ClientError]: ...
