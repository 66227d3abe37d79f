"""Tests for the in-memory ledger."""

from decimal import Decimal

import pytest

from client_balance.core.entities.balance import Balance
from client_balance.core.errors import (
    DuplicateError,
    NotFoundByDocumentError,
    NotFoundByIdError,
    UnknownError,
)
from client_balance.core.requests.credit_transaction import CreditTransactionRequest
from client_balance.core.requests.get_client import GetClientRequest
from client_balance.core.values.amount import MAX_INTEGER_DIGITS
from client_balance.core.values.client_id import ClientId
from client_balance.core.values.document import Document
from conftest import make_create_request

LARGEST = Decimal("9" * MAX_INTEGER_DIGITS)


async def add_client(repository, document: str, amount: int = 0) -> ClientId:
    client = (await repository.create_client(make_create_request(document))).unwrap()
    await repository.init_client_balance(client.id)
    if amount:
        req = CreditTransactionRequest.new(client.id, Decimal(amount)).unwrap()
        await repository.credit_balance(req)
    return client.id


class TestInMemoryClientBalanceRepository:
    @pytest.mark.asyncio
    async def test_ids_are_sequential(self, repository) -> None:
        assert await add_client(repository, "A") == ClientId(1)
        assert await add_client(repository, "B") == ClientId(2)

    @pytest.mark.asyncio
    async def test_rejects_duplicate_document(self, repository) -> None:
        await add_client(repository, "A")

        result = await repository.create_client(make_create_request("A"))

        assert isinstance(result.unwrap_err(), DuplicateError)

    @pytest.mark.asyncio
    async def test_get_client_by_document(self, repository) -> None:
        id = await add_client(repository, "A")

        assert (await repository.get_client_by_document(Document("A"))).unwrap().id == id
        error = (await repository.get_client_by_document(Document("Z"))).unwrap_err()
        assert isinstance(error, NotFoundByDocumentError)

    @pytest.mark.asyncio
    async def test_client_without_balance_cannot_be_credited(self, repository) -> None:
        client = (await repository.create_client(make_create_request())).unwrap()
        req = CreditTransactionRequest.new(client.id, Decimal(1)).unwrap()

        assert isinstance((await repository.credit_balance(req)).unwrap_err(), NotFoundByIdError)
        assert (await repository.are_balances_empty()).unwrap() is True

    @pytest.mark.asyncio
    async def test_delete_client_removes_balance(self, repository) -> None:
        id = await add_client(repository, "A", 10)

        assert (await repository.delete_client(id)).is_ok()

        assert (await repository.client_id_exists(id)).unwrap() is False
        assert (await repository.get_balance_by_client_id(GetClientRequest(id))).is_err()
        assert isinstance((await repository.delete_client(id)).unwrap_err(), NotFoundByIdError)

    @pytest.mark.asyncio
    async def test_reset_returns_snapshot(self, repository) -> None:
        a = await add_client(repository, "A", 100)
        b = await add_client(repository, "B")

        snapshot = (await repository.reset_all_balances_to_zero()).unwrap()

        assert sorted(snapshot, key=lambda balance: balance.client_id) == [
            Balance(a, Decimal(100)),
            Balance(b, Decimal(0)),
        ]
        for id in (a, b):
            balance = (await repository.get_balance_by_client_id(GetClientRequest(id))).unwrap()
            assert balance.amount == Decimal(0)

    @pytest.mark.asyncio
    async def test_merge_is_additive(self, repository) -> None:
        a = await add_client(repository, "A", 5)

        await repository.merge_old_balances([Balance(a, Decimal(100)), Balance(ClientId(99), Decimal(1))])

        balance = (await repository.get_balance_by_client_id(GetClientRequest(a))).unwrap()
        assert balance.amount == Decimal(105)

    @pytest.mark.asyncio
    async def test_returned_balance_is_a_copy(self, repository) -> None:
        a = await add_client(repository, "A", 5)

        returned = (await repository.get_balance_by_client_id(GetClientRequest(a))).unwrap()
        returned.amount = Decimal(1000)

        balance = (await repository.get_balance_by_client_id(GetClientRequest(a))).unwrap()
        assert balance.amount == Decimal(5)

    @pytest.mark.asyncio
    async def test_arithmetic_is_exact(self, repository) -> None:
        a = await add_client(repository, "A")
        amount = Decimal("12345678901234567890.123456789")

        balance = (await repository.credit_balance(CreditTransactionRequest.new(a, amount).unwrap())).unwrap()

        assert balance.amount == amount
        assert str(balance.amount) == "12345678901234567890.123456789"

    @pytest.mark.asyncio
    async def test_overflow_is_unknown_and_leaves_balance(self, repository) -> None:
        a = await add_client(repository, "A")
        req = CreditTransactionRequest.new(a, LARGEST).unwrap()
        await repository.credit_balance(req)

        error = (await repository.credit_balance(req)).unwrap_err()

        assert isinstance(error, UnknownError)
        assert isinstance(error.cause, ArithmeticError)
        balance = (await repository.get_balance_by_client_id(GetClientRequest(a))).unwrap()
        assert balance.amount == LARGEST

    @pytest.mark.asyncio
    async def test_merge_overflow_writes_nothing(self, repository) -> None:
        a = await add_client(repository, "A")
        b = await add_client(repository, "B")
        await repository.credit_balance(CreditTransactionRequest.new(b, LARGEST).unwrap())

        result = await repository.merge_old_balances([Balance(a, Decimal(7)), Balance(b, LARGEST)])

        assert isinstance(result.unwrap_err(), UnknownError)
        assert (await repository.get_balance_by_client_id(GetClientRequest(a))).unwrap().amount == 0
        assert (await repository.get_balance_by_client_id(GetClientRequest(b))).unwrap().amount == LARGEST

    @pytest.mark.asyncio
    async def test_close_out_lock(self, repository) -> None:
        assert (await repository.try_lock_close_out()).unwrap() is True
        assert (await repository.try_lock_close_out()).unwrap() is False

        assert (await repository.unlock_close_out()).is_ok()
        assert (await repository.try_lock_close_out()).unwrap() is True
