from __future__ import annotations

import logging

from result import Err, Ok, Result

from ..adapters.balance_exporter import BalanceExporter
from ..adapters.client_balance_repository import ClientBalanceRepository
from ..core.entities.balance import Balance
from ..core.entities.client import Client
from ..core.errors import (
    BalancesEmptyError,
    BalancesLostError,
    ClientError,
    CloseOutInProgressError,
    DuplicateError,
    NotFoundByDocumentError,
    NotFoundByIdError,
    as_unknown,
)
from ..core.requests.create_client import CreateClientRequest
from ..core.requests.credit_transaction import CreditTransactionRequest
from ..core.requests.debit_transaction import DebitTransactionRequest
from ..core.requests.get_client import GetClientRequest
from ..core.values.client_id import ClientId
from ..core.values.document import Document

logger = logging.getLogger(__name__)


class ClientBalanceService:
    """Use cases of the client balance domain.

    Every method returns a ``Result`` and the service keeps no state of its
    own. Ordering between calls is left to the repository, which also owns
    the lock that rejects a second concurrent ``store_balances``.
    """

    def __init__(
        self,
        client_repository: ClientBalanceRepository,
        balance_exporter: BalanceExporter,
    ) -> None:
        self.__client_repository = client_repository
        self.__balance_exporter = balance_exporter

    async def __validate_client_exists(
        self, client_id: ClientId
    ) -> Result[None, ClientError]:
        match await self.__client_repository.client_id_exists(client_id):
            case Ok(True):
                return Ok(None)
            case Ok(False):
                return Err(NotFoundByIdError(client_id))
            case Err(error):
                return Err(error)

    async def __validate_document_is_free(
        self, document: Document
    ) -> Result[None, ClientError]:
        # Check-then-act: the repository still has to reject duplicates on its own.
        match await self.__client_repository.get_client_by_document(document):
            case Err(NotFoundByDocumentError()):
                return Ok(None)
            case Err(error):
                return Err(error)
            case Ok(_):
                return Err(DuplicateError(str(document)))

    async def create_client(
        self, req: CreateClientRequest
    ) -> Result[Client, ClientError]:
        validation = await self.__validate_document_is_free(req.document)
        if validation.is_err():
            return validation

        match await self.__client_repository.create_client(req):
            case Err(error):
                return Err(error)
            case Ok(client):
                pass

        match await self.__client_repository.init_client_balance(client.id):
            case Ok(_):
                return Ok(client)
            case Err(error):
                logger.warning("Error initializing client balance: %s", error)
                logger.warning(
                    "Deleting client %s because it cannot exist without a balance",
                    client.id,
                )
                match await self.__client_repository.delete_client(client.id):
                    case Err(delete_error):
                        return Err(delete_error)
                return Err(error)

    async def credit_balance(
        self, req: CreditTransactionRequest
    ) -> Result[Balance, ClientError]:
        if (validation := await self.__validate_client_exists(req.client_id)).is_err():
            return validation
        return await self.__client_repository.credit_balance(req)

    async def debit_balance(
        self, req: DebitTransactionRequest
    ) -> Result[Balance, ClientError]:
        if (validation := await self.__validate_client_exists(req.client_id)).is_err():
            return validation
        return await self.__client_repository.debit_balance(req)

    async def get_balance_by_client_id(
        self, req: GetClientRequest
    ) -> Result[Balance, ClientError]:
        if (validation := await self.__validate_client_exists(req.client_id)).is_err():
            return validation
        return await self.__client_repository.get_balance_by_client_id(req)

    async def get_client_by_id(
        self, req: GetClientRequest
    ) -> Result[Client, ClientError]:
        if (validation := await self.__validate_client_exists(req.client_id)).is_err():
            return validation
        return await self.__client_repository.get_client(req)

    async def store_balances(self) -> Result[None, ClientError]:
        """Zero every balance and hand the previous amounts to the exporter.

        When the export fails the snapshot is added back onto the current
        balances. That is not an exact restore: activity on a client between
        the reset and the merge is kept and the old amount is summed on top of
        it. The export error is returned either way. If the merge fails too,
        a ``BalancesLostError`` is returned and the ledger stays at zero.
        """
        match await self.__client_repository.try_lock_close_out():
            case Ok(False):
                return Err(CloseOutInProgressError())
            case Err(error):
                return Err(error)

        try:
            return await self.__store_balances()
        finally:
            match await self.__client_repository.unlock_close_out():
                case Err(error):
                    logger.error("Error releasing close-out lock: %s", error)

    async def __store_balances(self) -> Result[None, ClientError]:
        match await self.__client_repository.are_balances_empty():
            case Ok(True):
                return Err(BalancesEmptyError())
            case Err(error):
                return Err(error)

        match await self.__client_repository.reset_all_balances_to_zero():
            case Err(error):
                return Err(as_unknown(error, "Error resetting all balances to zero"))
            case Ok(old_balances):
                pass

        match await self.__balance_exporter.export_balances(old_balances):
            case Ok(_):
                logger.info("Stored %d balances", len(old_balances))
                return Ok(None)
            case Err(export_error):
                pass

        logger.warning("Error exporting balances, merging old balances again...")
        match await self.__client_repository.merge_old_balances(old_balances):
            case Err(merge_error):
                logger.error(
                    "Error merging old balances, %d balances were lost: %s",
                    len(old_balances),
                    merge_error,
                )
                return Err(BalancesLostError(export_error, merge_error, old_balances))

        return Err(as_unknown(export_error, "Error exporting balances"))
