from dataclasses import dataclass
from datetime import date, datetime
from typing import Self

from result import Err, Ok, Result

from ..errors import ClientError, FieldEmptyError, FieldInvalidError

BIRTH_DATE_FORMAT = "%Y-%m-%d"


@dataclass(slots=True, frozen=True, order=True)
class BirthDate:
    value: date

    @classmethod
    def new(cls, raw: str) -> Result[Self, ClientError]:
        text = raw.strip()
        if not text:
            return Err(FieldEmptyError("birth_date"))
        try:
            parsed = datetime.strptime(text, BIRTH_DATE_FORMAT).date()
        except ValueError:
            return Err(FieldInvalidError("birth_date", text))
        return Ok(cls(parsed))

    def __str__(self) -> str:
        return self.value.strftime(BIRTH_DATE_FORMAT)
