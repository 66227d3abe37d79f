from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from decimal import Decimal
from functools import wraps
from typing import ParamSpec, TypeVar

from asyncpg import Pool, PostgresError, Record, UniqueViolationError
from asyncpg.pool import PoolConnectionProxy
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
from ...core.values.birth_date import BirthDate
from ...core.values.client_id import ClientId
from ...core.values.client_name import ClientName
from ...core.values.country import Country
from ...core.values.document import Document

logger = logging.getLogger(__name__)

# pg_advisory_lock key shared by every process closing out the same database
CLOSE_OUT_LOCK_KEY = 0x62616C616E6365

SCHEMA = (
    """CREATE TABLE IF NOT EXISTS Client (\n"""
    """    id BIGSERIAL PRIMARY KEY,\n"""
    """    name VARCHAR(128) NOT NULL,\n"""
    """    birth_date DATE NOT NULL,\n"""
    """    document VARCHAR(64) NOT NULL UNIQUE,\n"""
    """    country VARCHAR(32) NOT NULL\n"""
    """);\n"""
    """CREATE TABLE IF NOT EXISTS Balance (\n"""
    """    client_id BIGINT PRIMARY KEY REFERENCES Client(id) ON DELETE CASCADE,\n"""
    """    amount NUMERIC NOT NULL DEFAULT 0\n"""
    """);\n"""
)


P = ParamSpec("P")
T = TypeVar("T")


def unknown_on_failure(
    message: str,
) -> Callable[
    [Callable[P, Awaitable[Result[T, ClientError]]]],
    Callable[P, Awaitable[Result[T, ClientError]]],
]:
    def decorator(
        method: Callable[P, Awaitable[Result[T, ClientError]]],
    ) -> Callable[P, Awaitable[Result[T, ClientError]]]:
        @wraps(method)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, ClientError]:
            try:
                return await method(*args, **kwargs)
            except (PostgresError, OSError) as error:
                return Err(UnknownError(message, error))

        return wrapper

    return decorator


def _client_from_record(record: Record) -> Client:
    return Client(
        ClientId(record["id"]),
        ClientName(record["name"]),
        BirthDate(record["birth_date"]),
        Document(record["document"]),
        Country(record["country"]),
    )


class PostgresClientBalanceRepository(ClientBalanceRepository):
    def __init__(self, pool: Pool[Record]) -> None:
        self.__pool = pool
        self.__close_out_locked = False
        self.__close_out_connection: PoolConnectionProxy[Record] | None = None

    async def create_schema(self) -> None:
        async with self.__pool.acquire() as connection:
            await connection.execute(SCHEMA)

    @unknown_on_failure("Error creating client")
    async def create_client(
        self, req: CreateClientRequest
    ) -> Result[Client, ClientError]:
        async with self.__pool.acquire() as connection:
            create_client_prepare = await connection.prepare(
                """INSERT INTO Client(name, birth_date, document, country)\n"""
                """VALUES($1, $2, $3, $4)\n"""
                """RETURNING id\n""",
            )
            try:
                id: int = await create_client_prepare.fetchval(
                    req.name.value,
                    req.birth_date.value,
                    req.document.value,
                    req.country.value,
                )
            except UniqueViolationError:
                return Err(DuplicateError(str(req.document)))
        return Ok(
            Client(ClientId(id), req.name, req.birth_date, req.document, req.country)
        )

    @unknown_on_failure("Error initializing client balance")
    async def init_client_balance(self, id: ClientId) -> Result[Balance, ClientError]:
        async with self.__pool.acquire() as connection:
            amount: Decimal | None = await connection.fetchval(
                """INSERT INTO Balance(client_id, amount)\n"""
                """SELECT id, 0 FROM Client WHERE id = $1\n"""
                """ON CONFLICT (client_id) DO UPDATE SET amount = Balance.amount\n"""
                """RETURNING amount\n""",
                id.value,
            )
        if amount is None:
            return Err(NotFoundByIdError(id))
        return Ok(Balance(id, amount))

    @unknown_on_failure("Error deleting client")
    async def delete_client(self, id: ClientId) -> Result[None, ClientError]:
        async with self.__pool.acquire() as connection:
            deleted = await connection.fetchval(
                """DELETE FROM Client WHERE id = $1 RETURNING id\n""", id.value
            )
        if deleted is None:
            return Err(NotFoundByIdError(id))
        return Ok(None)

    @unknown_on_failure("Error checking client existence")
    async def client_id_exists(self, id: ClientId) -> Result[bool, ClientError]:
        async with self.__pool.acquire() as connection:
            exists: bool = await connection.fetchval(
                """SELECT EXISTS(SELECT 1 FROM Client WHERE id = $1)""", id.value
            )
        return Ok(exists)

    @unknown_on_failure("Error getting client by document")
    async def get_client_by_document(
        self, document: Document
    ) -> Result[Client, ClientError]:
        async with self.__pool.acquire() as connection:
            record = await connection.fetchrow(
                """SELECT id, name, birth_date, document, country\n"""
                """FROM Client WHERE document = $1\n""",
                document.value,
            )
        if not record:
            return Err(NotFoundByDocumentError(document))
        return Ok(_client_from_record(record))

    async def credit_balance(
        self, req: CreditTransactionRequest
    ) -> Result[Balance, ClientError]:
        return await self.__update_balance(req.client_id, req.amount)

    async def debit_balance(
        self, req: DebitTransactionRequest
    ) -> Result[Balance, ClientError]:
        return await self.__update_balance(req.client_id, req.amount)

    @unknown_on_failure("Error updating client balance")
    async def __update_balance(
        self, id: ClientId, amount: Decimal
    ) -> Result[Balance, ClientError]:
        async with self.__pool.acquire() as connection:
            new_amount: Decimal | None = await connection.fetchval(
                """UPDATE Balance\n"""
                """SET amount = amount + $2\n"""
                """WHERE client_id = $1\n"""
                """RETURNING amount\n""",
                id.value,
                amount,
            )
        if new_amount is None:
            return Err(NotFoundByIdError(id))
        return Ok(Balance(id, new_amount))

    @unknown_on_failure("Error getting client balance")
    async def get_balance_by_client_id(
        self, req: GetClientRequest
    ) -> Result[Balance, ClientError]:
        async with self.__pool.acquire() as connection:
            amount: Decimal | None = await connection.fetchval(
                """SELECT amount FROM Balance WHERE client_id = $1\n""",
                req.client_id.value,
            )
        if amount is None:
            return Err(NotFoundByIdError(req.client_id))
        return Ok(Balance(req.client_id, amount))

    @unknown_on_failure("Error getting client")
    async def get_client(self, req: GetClientRequest) -> Result[Client, ClientError]:
        async with self.__pool.acquire() as connection:
            record = await connection.fetchrow(
                """SELECT id, name, birth_date, document, country\n"""
                """FROM Client WHERE id = $1\n""",
                req.client_id.value,
            )
        if not record:
            return Err(NotFoundByIdError(req.client_id))
        return Ok(_client_from_record(record))

    @unknown_on_failure("Error checking balances")
    async def are_balances_empty(self) -> Result[bool, ClientError]:
        async with self.__pool.acquire() as connection:
            empty: bool = await connection.fetchval(
                """SELECT NOT EXISTS(SELECT 1 FROM Balance)"""
            )
        return Ok(empty)

    @unknown_on_failure("Error resetting all balances to zero")
    async def reset_all_balances_to_zero(
        self
    ) -> Result[Sequence[Balance], ClientError]:
        async with self.__pool.acquire() as connection:
            async with connection.transaction():
                # blocks other writers; plain SELECTs still read the prior snapshot
                await connection.execute("""LOCK TABLE Balance IN EXCLUSIVE MODE""")
                records = await connection.fetch(
                    """UPDATE Balance AS ledger\n"""
                    """SET amount = 0\n"""
                    """FROM Balance AS snapshot\n"""
                    """WHERE ledger.client_id = snapshot.client_id\n"""
                    """RETURNING snapshot.client_id, snapshot.amount\n""",
                )
        return Ok(
            tuple(
                Balance(ClientId(record["client_id"]), record["amount"])
                for record in records
            )
        )

    @unknown_on_failure("Error merging old balances")
    async def merge_old_balances(
        self, old_balances: Sequence[Balance]
    ) -> Result[None, ClientError]:
        async with self.__pool.acquire() as connection:
            records = await connection.fetch(
                """UPDATE Balance AS ledger\n"""
                """SET amount = ledger.amount + snapshot.amount\n"""
                """FROM unnest($1::BIGINT[], $2::NUMERIC[])\n"""
                """    AS snapshot(client_id, amount)\n"""
                """WHERE ledger.client_id = snapshot.client_id\n"""
                """RETURNING ledger.client_id\n""",
                [balance.client_id.value for balance in old_balances],
                [balance.amount for balance in old_balances],
            )
        merged = {record["client_id"] for record in records}
        for balance in old_balances:
            if balance.client_id.value not in merged:
                logger.warning(
                    "client not found by id %s and balance of this client "
                    "will be ignored...",
                    balance.client_id,
                )
        return Ok(None)

    async def try_lock_close_out(self) -> Result[bool, ClientError]:
        if self.__close_out_locked:
            return Ok(False)
        self.__close_out_locked = True
        match await self.__try_advisory_lock():
            case Ok(True):
                return Ok(True)
            case result:
                self.__close_out_locked = False
                return result

    @unknown_on_failure("Error locking close-out")
    async def __try_advisory_lock(self) -> Result[bool, ClientError]:
        # session level lock, the connection stays checked out until unlock
        connection = await self.__pool.acquire()
        try:
            locked: bool = await connection.fetchval(
                """SELECT pg_try_advisory_lock($1)""", CLOSE_OUT_LOCK_KEY
            )
        except BaseException:
            await self.__pool.release(connection)
            raise
        if not locked:
            await self.__pool.release(connection)
            return Ok(False)
        self.__close_out_connection = connection
        return Ok(True)

    @unknown_on_failure("Error unlocking close-out")
    async def unlock_close_out(self) -> Result[None, ClientError]:
        connection = self.__close_out_connection
        self.__close_out_connection = None
        self.__close_out_locked = False
        if connection is None:
            return Ok(None)
        try:
            await connection.fetchval(
                """SELECT pg_advisory_unlock($1)""", CLOSE_OUT_LOCK_KEY
            )
        finally:
            await self.__pool.release(connection)
        return Ok(None)
