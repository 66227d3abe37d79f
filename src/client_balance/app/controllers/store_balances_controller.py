import logging

from result import Err, Ok
from starlette.requests import Request
from starlette.responses import Response

from ...services.client_balance_service import ClientBalanceService
from .error_response import error_response
from .orjson_response import OrjsonResponse

logger = logging.getLogger(__name__)


async def store_balances_controller(request: Request) -> Response:
    logger.info("Storing balances")
    service: ClientBalanceService = request.state.client_balance_service
    match await service.store_balances():
        case Ok(_):
            return OrjsonResponse({"message": "Successfully stored balances"})
        case Err(error):
            return error_response(error)
