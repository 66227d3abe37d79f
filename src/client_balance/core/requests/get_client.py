from dataclasses import dataclass

from ..values.client_id import ClientId


@dataclass(slots=True, frozen=True)
class GetClientRequest:
    client_id: ClientId
