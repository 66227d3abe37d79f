import logging

from result import Err, Ok
from starlette.requests import Request
from starlette.responses import Response

from ...core.requests.get_client import GetClientRequest
from ...core.values.client_id import ClientId
from ...services.client_balance_service import ClientBalanceService
from .error_response import error_response
from .orjson_response import OrjsonResponse

logger = logging.getLogger(__name__)


async def get_client_balance_controller(request: Request) -> Response:
    logger.info("Getting client info with balance info")
    match ClientId.new(request.path_params["user_id"]):
        case Err(error):
            return error_response(error)
        case Ok(client_id):
            req = GetClientRequest(client_id)

    service: ClientBalanceService = request.state.client_balance_service
    match await service.get_client_by_id(req):
        case Err(error):
            return error_response(error)
        case Ok(client):
            pass
    match await service.get_balance_by_client_id(req):
        case Err(error):
            return error_response(error)
        case Ok(balance):
            return OrjsonResponse(
                {
                    "id": str(balance.client_id),
                    "name": str(client.name),
                    "birth_date": str(client.birth_date),
                    "document": str(client.document),
                    "country": str(client.country),
                    "balance": str(balance.amount),
                }
            )
