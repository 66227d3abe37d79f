from dataclasses import dataclass

from ..values.birth_date import BirthDate
from ..values.client_name import ClientName
from ..values.country import Country
from ..values.document import Document


@dataclass(slots=True, frozen=True)
class CreateClientRequest:
    name: ClientName
    birth_date: BirthDate
    document: Document
    country: Country
