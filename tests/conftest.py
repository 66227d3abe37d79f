"""Pytest configuration and fixtures."""

from collections.abc import Sequence

import pytest
from result import Err, Ok, Result

from client_balance.app.adapters.in_memory_client_balance_repository import (
    InMemoryClientBalanceRepository,
)
from client_balance.core.entities.balance import Balance
from client_balance.core.errors import ClientError, UnknownError
from client_balance.core.requests.create_client import CreateClientRequest
from client_balance.core.values.birth_date import BirthDate
from client_balance.core.values.client_name import ClientName
from client_balance.core.values.country import Country
from client_balance.core.values.document import Document
from client_balance.services.client_balance_service import ClientBalanceService


class RecordingBalanceExporter:
    """Keeps every exported snapshot; fails while ``failing`` is set."""

    def __init__(self) -> None:
        self.exports: list[list[Balance]] = []
        self.failing = False

    async def export_balances(
        self, balances: Sequence[Balance]
    ) -> Result[None, ClientError]:
        if self.failing:
            return Err(UnknownError("Error exporting balances", OSError("disk full")))
        self.exports.append([Balance(b.client_id, b.amount) for b in balances])
        return Ok(None)


def make_create_request(
    document: str = "1234567890",
    name: str = "John Doe",
    birth_date: str = "1990-01-01",
    country: str = "US",
) -> CreateClientRequest:
    return CreateClientRequest(
        ClientName.new(name).unwrap(),
        BirthDate.new(birth_date).unwrap(),
        Document.new(document).unwrap(),
        Country.new(country).unwrap(),
    )


@pytest.fixture
def repository() -> InMemoryClientBalanceRepository:
    return InMemoryClientBalanceRepository()


@pytest.fixture
def exporter() -> RecordingBalanceExporter:
    return RecordingBalanceExporter()


@pytest.fixture
def service(
    repository: InMemoryClientBalanceRepository, exporter: RecordingBalanceExporter
) -> ClientBalanceService:
    return ClientBalanceService(repository, exporter)
