import logging
from typing import Any

from result import Err, Ok, Result
from starlette.requests import Request
from starlette.responses import Response

from ...core.errors import ClientError
from ...core.requests.create_client import CreateClientRequest
from ...core.values.birth_date import BirthDate
from ...core.values.client_name import ClientName
from ...core.values.country import Country
from ...core.values.document import Document
from ...services.client_balance_service import ClientBalanceService
from .error_response import error_response
from .orjson_response import OrjsonResponse
from .payload import invalid_payload_response, read_payload

CREATE_CLIENT_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "birth_date": {"type": "string"},
        "document": {"type": "string"},
        "country": {"type": "string"},
    },
    "required": ["name", "birth_date", "document", "country"],
}

logger = logging.getLogger(__name__)


async def create_client_controller(request: Request) -> Response:
    logger.info("Creating client")
    match await read_payload(request, CREATE_CLIENT_SCHEMA):
        case Err(invalid):
            return invalid_payload_response(invalid)
        case Ok(payload):
            pass

    match __into_domain(payload):
        case Err(error):
            return error_response(error)
        case Ok(req):
            pass

    service: ClientBalanceService = request.state.client_balance_service
    match await service.create_client(req):
        case Ok(client):
            return OrjsonResponse({"id": str(client.id)}, status_code=201)
        case Err(error):
            return error_response(error)


def __into_domain(payload: dict[str, Any]) -> Result[CreateClientRequest, ClientError]:
    match (
        ClientName.new(payload["name"]),
        BirthDate.new(payload["birth_date"]),
        Document.new(payload["document"]),
        Country.new(payload["country"]),
    ):
        case Ok(name), Ok(birth_date), Ok(document), Ok(country):
            return Ok(CreateClientRequest(name, birth_date, document, country))
        case results:
            return next(result for result in results if result.is_err())
