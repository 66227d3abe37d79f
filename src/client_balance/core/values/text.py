from result import Err, Ok, Result

from ..errors import ClientError, FieldEmptyError, FieldMaxLengthError

MAX_LENGTH_NAME = 128
MAX_LENGTH_DOCUMENT = 64
MAX_LENGTH_COUNTRY = 32


def bounded_text(
    raw: str, field_name: str, max_length: int
) -> Result[str, ClientError]:
    text = raw.strip()
    if not text:
        return Err(FieldEmptyError(field_name))
    if len(text) > max_length:
        return Err(FieldMaxLengthError(field_name, max_length))
    return Ok(text)
