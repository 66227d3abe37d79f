from collections.abc import Sequence
from typing import Protocol

from result import Result

from ..core.entities.balance import Balance
from ..core.entities.client import Client
from ..core.errors import ClientError
from ..core.requests.create_client import CreateClientRequest
from ..core.requests.credit_transaction import CreditTransactionRequest
from ..core.requests.debit_transaction import DebitTransactionRequest
from ..core.requests.get_client import GetClientRequest
from ..core.values.client_id import ClientId
from ..core.values.document import Document


class ClientBalanceRepository(Protocol):
    """Store of every client and its balance.

    Implementations serialize conflicting operations on the same client and
    reject duplicate documents atomically in ``create_client``.
    ``reset_all_balances_to_zero`` must be atomic across the whole ledger.
    """

    async def create_client(
        self, req: CreateClientRequest
    ) -> Result[Client, ClientError]: ...
    async def init_client_balance(
        self, id: ClientId
    ) -> Result[Balance, ClientError]: ...
    async def delete_client(self, id: ClientId) -> Result[None, ClientError]: ...
    async def client_id_exists(self, id: ClientId) -> Result[bool, ClientError]: ...
    async def get_client_by_document(
        self, document: Document
    ) -> Result[Client, ClientError]: ...
    async def credit_balance(
        self, req: CreditTransactionRequest
    ) -> Result[Balance, ClientError]: ...
    async def debit_balance(
        self, req: DebitTransactionRequest
    ) -> Result[Balance, ClientError]: ...
    async def get_balance_by_client_id(
        self, req: GetClientRequest
    ) -> Result[Balance, ClientError]: ...
    async def get_client(
        self, req: GetClientRequest
    ) -> Result[Client, ClientError]: ...
    async def are_balances_empty(self) -> Result[bool, ClientError]: ...
    async def reset_all_balances_to_zero(
        self,
    ) -> Result[Sequence[Balance], ClientError]: ...
    async def merge_old_balances(
        self, old_balances: Sequence[Balance]
    ) -> Result[None, ClientError]: ...
    async def try_lock_close_out(self) -> Result[bool, ClientError]:
        """``Ok(False)`` while another close-out, in any process, holds it."""
        ...
    async def unlock_close_out(self) -> Result[None, ClientError]: ...
