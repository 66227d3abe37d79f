import logging
from typing import Any

from result import Err, Ok, Result
from starlette.requests import Request
from starlette.responses import Response

from ...core.entities.balance import Balance
from ...core.errors import ClientError
from ...core.requests.credit_transaction import CreditTransactionRequest
from ...core.requests.debit_transaction import DebitTransactionRequest
from ...core.values.client_id import ClientId
from ...services.client_balance_service import ClientBalanceService
from .error_response import error_response
from .orjson_response import OrjsonResponse
from .payload import (
    TRANSACTION_SCHEMA,
    invalid_payload_response,
    parse_amount,
    read_payload,
)

logger = logging.getLogger(__name__)


async def new_credit_transaction_controller(request: Request) -> Response:
    logger.info("Creating credit transaction")
    match await read_payload(request, TRANSACTION_SCHEMA):
        case Err(invalid):
            return invalid_payload_response(invalid)
        case Ok(payload):
            pass

    service: ClientBalanceService = request.state.client_balance_service
    req = __client_id_and_amount(payload).and_then(
        lambda fields: CreditTransactionRequest.new(*fields)
    )
    match req:
        case Err(error):
            return error_response(error)
        case Ok(credit):
            return __balance_response(await service.credit_balance(credit))


async def new_debit_transaction_controller(request: Request) -> Response:
    logger.info("Creating debit transaction")
    match await read_payload(request, TRANSACTION_SCHEMA):
        case Err(invalid):
            return invalid_payload_response(invalid)
        case Ok(payload):
            pass

    service: ClientBalanceService = request.state.client_balance_service
    req = __client_id_and_amount(payload).and_then(
        lambda fields: DebitTransactionRequest.new(*fields)
    )
    match req:
        case Err(error):
            return error_response(error)
        case Ok(debit):
            return __balance_response(await service.debit_balance(debit))


def __client_id_and_amount(
    payload: dict[str, Any]
) -> Result[tuple[Any, ...], ClientError]:
    return ClientId.new(str(payload["client_id"])).and_then(
        lambda client_id: parse_amount(payload["amount"]).map(
            lambda amount: (client_id, amount)
        )
    )


def __balance_response(result: Result[Balance, ClientError]) -> Response:
    match result:
        case Ok(balance):
            return OrjsonResponse(
                {"id": str(balance.client_id), "balance": str(balance.amount)}
            )
        case Err(error):
            return error_response(error)
