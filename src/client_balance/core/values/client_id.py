from dataclasses import dataclass
from typing import Self

from result import Err, Ok, Result

from ..errors import ClientError, FieldEmptyError, FieldInvalidError


@dataclass(slots=True, frozen=True, order=True)
class ClientId:
    """Repository assigned identifier of a client. Never changes once given."""

    value: int

    @classmethod
    def new(cls, raw: str) -> Result[Self, ClientError]:
        text = raw.strip()
        if not text:
            return Err(FieldEmptyError("client_id"))
        if not (text.isascii() and text.isdigit()):
            return Err(FieldInvalidError("client_id", text))
        return Ok(cls(int(text)))

    def __str__(self) -> str:
        return str(self.value)
