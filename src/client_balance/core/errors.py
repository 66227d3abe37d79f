from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities.balance import Balance


class ClientError(Exception):
    code = "CLIENT_UNKNOWN_ERROR"

    @property
    def message(self) -> str:
        return str(self)


class DuplicateError(ClientError):
    code = "CLIENT_DUPLICATE"

    def __init__(self, document: str) -> None:
        super().__init__(f"client with document {document} already exists")
        self.document = document


class NotFoundByIdError(ClientError):
    code = "CLIENT_NOT_FOUND_BY_ID"

    def __init__(self, client_id: object) -> None:
        super().__init__(f"client not found by id {client_id}")
        self.client_id = client_id


class NotFoundByDocumentError(ClientError):
    code = "CLIENT_NOT_FOUND_BY_DOCUMENT"

    def __init__(self, document: object) -> None:
        super().__init__(f"client not found by document {document}")
        self.document = document


class FieldEmptyError(ClientError):
    def __init__(self, field_name: str) -> None:
        super().__init__(f"client {field_name} cannot be empty")
        self.field_name = field_name

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"CLIENT_{self.field_name.upper()}_EMPTY"


class FieldInvalidError(ClientError):
    def __init__(self, field_name: str, value: str) -> None:
        super().__init__(f"client {field_name} is invalid: {value}")
        self.field_name = field_name
        self.value = value

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"CLIENT_{self.field_name.upper()}_INVALID"


class FieldMaxLengthError(ClientError):
    def __init__(self, field_name: str, max_length: int) -> None:
        super().__init__(
            f"client {field_name} is too long. Max length is {max_length}"
        )
        self.field_name = field_name
        self.max_length = max_length

    @property
    def code(self) -> str:  # type: ignore[override]
        return f"CLIENT_{self.field_name.upper()}_MAX_LENGTH"


class NegativeAmountError(ClientError):
    code = "CLIENT_NEGATIVE_BALANCE"

    def __init__(self) -> None:
        super().__init__("client amount cannot be negative")


class PositiveAmountError(ClientError):
    code = "CLIENT_POSITIVE_BALANCE"

    def __init__(self) -> None:
        super().__init__("client amount cannot be positive")


class ZeroAmountError(ClientError):
    code = "CLIENT_ZERO_BALANCE"

    def __init__(self) -> None:
        super().__init__("client amount cannot be zero")


class BalancesEmptyError(ClientError):
    code = "CLIENT_BALANCES_EMPTY"

    def __init__(self) -> None:
        super().__init__("balances are empty")


class CloseOutInProgressError(ClientError):
    code = "CLIENT_CLOSE_OUT_IN_PROGRESS"

    def __init__(self) -> None:
        super().__init__("balances are already being stored")


class UnknownError(ClientError):
    """Opaque failure of a storage or export adapter.

    The underlying exception is kept in ``cause`` (and chained as
    ``__cause__``) for diagnostics only.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(f"{message}: {cause}" if cause is not None else message)
        self.cause = cause
        self.__cause__ = cause


class BalancesLostError(UnknownError):
    """Export failed and merging the snapshot back failed too.

    Every client in ``lost_balances`` was left at zero and its pre-reset
    amount is only recoverable from this error.
    """

    def __init__(
        self,
        cause: BaseException,
        merge_error: BaseException,
        lost_balances: Sequence[Balance],
    ) -> None:
        super().__init__("Error exporting balances", cause)
        self.merge_error = merge_error
        self.lost_balances = tuple(lost_balances)


def as_unknown(error: BaseException, message: str) -> UnknownError:
    if isinstance(error, UnknownError):
        return error
    return UnknownError(message, error)
