import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from itertools import count
from pathlib import Path

from result import Err, Ok, Result

from ...adapters.balance_exporter import BalanceExporter
from ...core.entities.balance import Balance
from ...core.errors import BalancesEmptyError, ClientError, UnknownError

FILE_EXTENSION = ".DAT"

logger = logging.getLogger(__name__)


def extract_counter(file_name: str) -> int | None:
    """Counter part of a ``DDMMYYYY_COUNTER.DAT`` file name."""
    _, separator, rest = file_name.partition("_")
    counter = rest.split(".", 1)[0]
    if not separator or not counter.isdigit():
        return None
    return int(counter)


class FileBalanceExporter(BalanceExporter):
    """Writes every close-out to ``<directory>/DDMMYYYY_COUNTER.DAT``.

    Each line holds ``<client_id> <amount>``. The counter keeps growing
    across restarts, it starts after the highest one already present in the
    directory.
    """

    def __init__(self, directory: Path) -> None:
        self.__directory = directory
        last_counter = max(
            (
                counter
                for path in directory.glob(f"*{FILE_EXTENSION}")
                if (counter := extract_counter(path.name)) is not None
            ),
            default=0,
        )
        self.__counter = count(last_counter + 1)

    async def export_balances(
        self, balances: Sequence[Balance]
    ) -> Result[None, ClientError]:
        if not balances:
            return Err(BalancesEmptyError())

        day = datetime.now(timezone.utc).strftime("%d%m%Y")
        file_name = f"{day}_{next(self.__counter)}{FILE_EXTENSION}"
        file_path = self.__directory / file_name
        content = "".join(
            f"{balance.client_id} {balance.amount}\n" for balance in balances
        )
        try:
            await asyncio.to_thread(file_path.write_text, content)
        except OSError as error:
            return Err(UnknownError(f"Error writing to file: {file_path}", error))

        logger.info("Exported %d balances to %s", len(balances), file_path)
        return Ok(None)
