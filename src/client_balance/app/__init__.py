from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from pathlib import Path
from typing import Any

import asyncpg
from starlette.applications import Starlette
from starlette.config import Config
from starlette.middleware import Middleware
from starlette.routing import Route, WebSocketRoute

from ..logging import LogStreamHandler, setup_logging
from ..services.client_balance_service import ClientBalanceService
from .adapters.file_balance_exporter import FileBalanceExporter
from .adapters.in_memory_client_balance_repository import (
    InMemoryClientBalanceRepository,
)
from .adapters.postgres_client_balance_repository import PostgresClientBalanceRepository
from .controllers.create_client_controller import create_client_controller
from .controllers.get_client_balance_controller import get_client_balance_controller
from .controllers.log_files_controller import (
    delete_log_file_controller,
    delete_log_files_controller,
    download_log_files_controller,
    get_log_file_controller,
    list_log_files_controller,
    tail_log_files_controller,
)
from .controllers.log_stream_controller import log_stream_controller
from .controllers.store_balances_controller import store_balances_controller
from .controllers.transaction_controllers import (
    new_credit_transaction_controller,
    new_debit_transaction_controller,
)
from .request_logging import RequestLoggingMiddleware

ENV_PATH = Path(".env")
config = Config(ENV_PATH if ENV_PATH.exists() else None)

DEBUG = config("DEBUG", cast=bool, default=False)
LOG_LEVEL = config("LOG_LEVEL", default="INFO")
LOG_FORMAT = config("LOG_FORMAT", default="standard")
REPOSITORY = config("REPOSITORY", default="memory")
EXPORT_DIRECTORY = config("EXPORT_DIRECTORY", cast=Path, default=Path("."))
LOG_DIRECTORY = config("LOG_DIRECTORY", cast=Path, default=Path("logs"))

Lifespan = Callable[[Starlette], AbstractAsyncContextManager[dict[str, Any]]]


@asynccontextmanager
async def lifespan(_: Starlette) -> AsyncIterator[dict[str, Any]]:
    log_stream = LogStreamHandler()
    setup_logging(LOG_LEVEL, LOG_FORMAT, LOG_DIRECTORY, log_stream)
    balance_exporter = FileBalanceExporter(EXPORT_DIRECTORY)
    state: dict[str, Any] = {"log_directory": LOG_DIRECTORY, "log_stream": log_stream}

    if REPOSITORY != "postgres":
        client_repository = InMemoryClientBalanceRepository()
        yield state | {
            "client_balance_service": ClientBalanceService(
                client_repository, balance_exporter
            )
        }
        return

    async with asyncpg.create_pool(
        max_size=25,
        max_inactive_connection_lifetime=0,
        host=config("POSTGRES_HOST"),
        port=config("POSTGRES_PORT", cast=int),
        database=config("POSTGRES_DB"),
        user=config("POSTGRES_USER"),
        password=config("POSTGRES_PASSWORD"),
    ) as pool:
        postgres_repository = PostgresClientBalanceRepository(pool)
        await postgres_repository.create_schema()
        yield state | {
            "client_balance_service": ClientBalanceService(
                postgres_repository, balance_exporter
            )
        }


def build_app(lifespan: Lifespan = lifespan, debug: bool = DEBUG) -> Starlette:
    return Starlette(
        debug=debug,
        routes=[
            Route("/create_client", create_client_controller, methods=["POST"]),
            Route(
                "/client_balance/{user_id}",
                get_client_balance_controller,
                methods=["GET"],
            ),
            Route(
                "/new_credit_transaction",
                new_credit_transaction_controller,
                methods=["POST"],
            ),
            Route(
                "/new_debit_transaction",
                new_debit_transaction_controller,
                methods=["POST"],
            ),
            Route("/store_balances", store_balances_controller, methods=["POST"]),
            Route("/logs/files/list", list_log_files_controller, methods=["GET"]),
            Route(
                "/logs/files/download",
                download_log_files_controller,
                methods=["GET"],
            ),
            Route(
                "/logs/files/tail/{lines:int}",
                tail_log_files_controller,
                methods=["GET"],
            ),
            Route(
                "/logs/files/delete",
                delete_log_files_controller,
                methods=["DELETE"],
            ),
            Route(
                "/logs/files/{filename}", get_log_file_controller, methods=["GET"]
            ),
            Route(
                "/logs/files/{filename}",
                delete_log_file_controller,
                methods=["DELETE"],
            ),
            WebSocketRoute("/logs/ws", log_stream_controller),
        ],
        middleware=[Middleware(RequestLoggingMiddleware)],
        lifespan=lifespan,
    )


app = build_app()
