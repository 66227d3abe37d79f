import asyncio
import logging
from collections.abc import Sequence
from decimal import Decimal, localcontext
from itertools import count

from result import Err, Ok, Result

from ...adapters.client_balance_repository import ClientBalanceRepository
from ...core.entities.balance import Balance
from ...core.entities.client import Client
from ...core.errors import (
    ClientError,
    DuplicateError,
    NotFoundByDocumentError,
    NotFoundByIdError,
    UnknownError,
)
from ...core.requests.create_client import CreateClientRequest
from ...core.requests.credit_transaction import CreditTransactionRequest
from ...core.requests.debit_transaction import DebitTransactionRequest
from ...core.requests.get_client import GetClientRequest
from ...core.values.amount import LEDGER_CONTEXT
from ...core.values.client_id import ClientId
from ...core.values.document import Document

logger = logging.getLogger(__name__)


class InMemoryClientBalanceRepository(ClientBalanceRepository):
    def __init__(self) -> None:
        self.__next_id = count(1)
        self.__clients = dict[ClientId, Client]()
        self.__balances = dict[ClientId, Balance]()
        self.__lock = asyncio.Lock()
        self.__close_out_locked = False

    async def create_client(
        self, req: CreateClientRequest
    ) -> Result[Client, ClientError]:
        async with self.__lock:
            if any(
                client.document == req.document
                for client in self.__clients.values()
            ):
                return Err(DuplicateError(str(req.document)))

            id = ClientId(next(self.__next_id))
            client = Client(id, req.name, req.birth_date, req.document, req.country)
            self.__clients[id] = client
        return Ok(client)

    async def init_client_balance(self, id: ClientId) -> Result[Balance, ClientError]:
        async with self.__lock:
            if id not in self.__clients:
                return Err(NotFoundByIdError(id))
            balance = self.__balances.setdefault(id, Balance(id, Decimal(0)))
            return Ok(Balance(id, balance.amount))

    async def delete_client(self, id: ClientId) -> Result[None, ClientError]:
        async with self.__lock:
            if self.__clients.pop(id, None) is None:
                return Err(NotFoundByIdError(id))
            self.__balances.pop(id, None)
        return Ok(None)

    async def client_id_exists(self, id: ClientId) -> Result[bool, ClientError]:
        async with self.__lock:
            return Ok(id in self.__clients)

    async def get_client_by_document(
        self, document: Document
    ) -> Result[Client, ClientError]:
        async with self.__lock:
            for client in self.__clients.values():
                if client.document == document:
                    return Ok(client)
        return Err(NotFoundByDocumentError(document))

    async def credit_balance(
        self, req: CreditTransactionRequest
    ) -> Result[Balance, ClientError]:
        return await self.__update_balance(req.client_id, req.amount)

    async def debit_balance(
        self, req: DebitTransactionRequest
    ) -> Result[Balance, ClientError]:
        return await self.__update_balance(req.client_id, req.amount)

    async def __update_balance(
        self, id: ClientId, amount: Decimal
    ) -> Result[Balance, ClientError]:
        async with self.__lock:
            balance = self.__balances.get(id)
            if balance is None:
                return Err(NotFoundByIdError(id))
            try:
                with localcontext(LEDGER_CONTEXT):
                    balance.amount += amount
            except ArithmeticError as error:
                return Err(UnknownError("Error updating client balance", error))
            return Ok(Balance(id, balance.amount))

    async def get_balance_by_client_id(
        self, req: GetClientRequest
    ) -> Result[Balance, ClientError]:
        async with self.__lock:
            balance = self.__balances.get(req.client_id)
            if balance is None:
                return Err(NotFoundByIdError(req.client_id))
            return Ok(Balance(balance.client_id, balance.amount))

    async def get_client(self, req: GetClientRequest) -> Result[Client, ClientError]:
        async with self.__lock:
            client = self.__clients.get(req.client_id)
        if client is None:
            return Err(NotFoundByIdError(req.client_id))
        return Ok(client)

    async def are_balances_empty(self) -> Result[bool, ClientError]:
        async with self.__lock:
            return Ok(not self.__balances)

    async def reset_all_balances_to_zero(
        self
    ) -> Result[Sequence[Balance], ClientError]:
        async with self.__lock:
            old_balances = tuple(
                Balance(id, balance.set_amount(Decimal(0)))
                for id, balance in self.__balances.items()
            )
        return Ok(old_balances)

    async def merge_old_balances(
        self, old_balances: Sequence[Balance]
    ) -> Result[None, ClientError]:
        async with self.__lock:
            # nothing is written until every sum is known to fit
            merged = dict[ClientId, Decimal]()
            try:
                with localcontext(LEDGER_CONTEXT):
                    for old_balance in old_balances:
                        id = old_balance.client_id
                        balance = self.__balances.get(id)
                        if balance is None:
                            logger.warning(
                                "client not found by id %s and balance of this "
                                "client will be ignored...",
                                id,
                            )
                            continue
                        merged[id] = merged.get(id, balance.amount) + old_balance.amount
            except ArithmeticError as error:
                return Err(UnknownError("Error merging old balances", error))

            for id, amount in merged.items():
                self.__balances[id].amount = amount
        return Ok(None)

    async def try_lock_close_out(self) -> Result[bool, ClientError]:
        if self.__close_out_locked:
            return Ok(False)
        self.__close_out_locked = True
        return Ok(True)

    async def unlock_close_out(self) -> Result[None, ClientError]:
        self.__close_out_locked = False
        return Ok(None)
