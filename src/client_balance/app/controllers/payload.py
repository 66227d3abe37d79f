from decimal import Decimal, InvalidOperation
from typing import Any

import jsonschema
import orjson
from jsonschema.exceptions import ValidationError
from orjson import JSONDecodeError
from result import Err, Ok, Result
from starlette.requests import Request
from starlette.responses import Response

from ...core.errors import ClientError, FieldInvalidError
from ...core.values.amount import bounded_amount
from .orjson_response import OrjsonResponse

TRANSACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "client_id": {"type": ["string", "integer"]},
        "amount": {"type": ["number", "string"]},
    },
    "required": ["client_id", "amount"],
}


class InvalidPayloadError(Exception): ...


async def read_payload(
    request: Request, schema: dict[str, Any]
) -> Result[dict[str, Any], InvalidPayloadError]:
    try:
        payload = orjson.loads(await request.body())
        jsonschema.validate(payload, schema)
    except (JSONDecodeError, ValidationError) as error:
        return Err(InvalidPayloadError(str(error)))
    return Ok(payload)


def parse_amount(raw: int | float | str) -> Result[Decimal, ClientError]:
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        return Err(FieldInvalidError("amount", str(raw)))
    return bounded_amount(amount)


def invalid_payload_response(error: InvalidPayloadError) -> Response:
    return OrjsonResponse(
        {"error_code": "INVALID_PAYLOAD", "error_message": str(error)},
        status_code=400,
    )
