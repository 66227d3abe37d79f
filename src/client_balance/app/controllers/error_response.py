from starlette.responses import Response

from ...core.errors import (
    BalancesEmptyError,
    ClientError,
    CloseOutInProgressError,
    DuplicateError,
    FieldEmptyError,
    FieldInvalidError,
    FieldMaxLengthError,
    NegativeAmountError,
    NotFoundByDocumentError,
    NotFoundByIdError,
    PositiveAmountError,
    ZeroAmountError,
)
from .orjson_response import OrjsonResponse


def status_code_of(error: ClientError) -> int:
    match error:
        case DuplicateError() | CloseOutInProgressError():
            return 409
        case NotFoundByIdError() | NotFoundByDocumentError() | BalancesEmptyError():
            return 404
        case (
            FieldEmptyError()
            | FieldInvalidError()
            | FieldMaxLengthError()
            | NegativeAmountError()
            | PositiveAmountError()
            | ZeroAmountError()
        ):
            return 400
        case _:
            return 500


def error_response(error: ClientError) -> Response:
    return OrjsonResponse(
        {"error_code": error.code, "error_message": error.message},
        status_code=status_code_of(error),
    )
