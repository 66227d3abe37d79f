from dataclasses import dataclass
from typing import Self

from result import Result

from ..errors import ClientError
from .text import MAX_LENGTH_DOCUMENT, bounded_text


@dataclass(slots=True, frozen=True, order=True)
class Document:
    """Identifying document of a client, unique across all clients."""

    value: str

    @classmethod
    def new(cls, raw: str) -> Result[Self, ClientError]:
        return bounded_text(raw, "document", MAX_LENGTH_DOCUMENT).map(cls)

    def __str__(self) -> str:
        return self.value
