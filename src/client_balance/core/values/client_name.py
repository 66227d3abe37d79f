from dataclasses import dataclass
from typing import Self

from result import Result

from ..errors import ClientError
from .text import MAX_LENGTH_NAME, bounded_text


@dataclass(slots=True, frozen=True, order=True)
class ClientName:
    value: str

    @classmethod
    def new(cls, raw: str) -> Result[Self, ClientError]:
        return bounded_text(raw, "name", MAX_LENGTH_NAME).map(cls)

    def __str__(self) -> str:
        return self.value
