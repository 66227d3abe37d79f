from dataclasses import dataclass
from typing import Self

from result import Result

from ..errors import ClientError
from .text import MAX_LENGTH_COUNTRY, bounded_text


@dataclass(slots=True, frozen=True, order=True)
class Country:
    value: str

    @classmethod
    def new(cls, raw: str) -> Result[Self, ClientError]:
        return bounded_text(raw, "country", MAX_LENGTH_COUNTRY).map(cls)

    def __str__(self) -> str:
        return self.value
