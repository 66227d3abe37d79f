from dataclasses import dataclass

from ..values.birth_date import BirthDate
from ..values.client_id import ClientId
from ..values.client_name import ClientName
from ..values.country import Country
from ..values.document import Document


@dataclass(slots=True, frozen=True)
class Client:
    id: ClientId
    name: ClientName
    birth_date: BirthDate
    document: Document
    country: Country
