import asyncio
import io
import logging
import zipfile
from collections import deque
from datetime import datetime
from pathlib import Path

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from ...logging import LOG_FILE_NAME
from .orjson_response import OrjsonResponse

logger = logging.getLogger(__name__)


def __log_files(directory: Path) -> list[Path]:
    """Every file in ``directory``, oldest first: rotated files by date, then
    the file currently written to."""
    if not directory.is_dir():
        return []
    return sorted(
        (path for path in directory.iterdir() if path.is_file()),
        key=lambda path: (path.name == LOG_FILE_NAME, path.name),
    )


def __log_file(directory: Path, filename: str) -> Path | None:
    path = directory / filename
    if Path(filename).name != filename or not path.is_file():
        return None
    return path


def __remove(path: Path) -> bool:
    # the active file is still held open by the logging handler
    if path.name == LOG_FILE_NAME:
        path.write_bytes(b"")
        return True
    path.unlink()
    return False


def __zip(directory: Path) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in __log_files(directory):
            archive.write(path, path.name)
    return buffer.getvalue()


def __tail(directory: Path, lines: int) -> str:
    tail = deque[str](maxlen=lines)
    for path in __log_files(directory):
        with path.open(encoding="utf-8", errors="replace") as file:
            tail.extend(line.rstrip("\n") for line in file)
    return "\n".join(tail)


def __remove_all(directory: Path) -> tuple[bool, list[str]]:
    truncated = False
    errors = list[str]()
    for path in __log_files(directory):
        try:
            truncated |= __remove(path)
        except OSError as error:
            errors.append(f"{path.name}: {error}")
    return truncated, errors


def __not_found(filename: str) -> Response:
    return OrjsonResponse(
        {
            "error_code": "LOG_FILE_NOT_FOUND",
            "error_message": f"log file not found: {filename}",
        },
        status_code=404,
    )


def __unavailable(message: str) -> Response:
    return OrjsonResponse(
        {"error_code": "LOG_FILES_UNAVAILABLE", "error_message": message},
        status_code=500,
    )


async def list_log_files_controller(request: Request) -> Response:
    logger.info("Listing log files")
    directory: Path = request.state.log_directory
    try:
        files = await asyncio.to_thread(__log_files, directory)
    except OSError as error:
        return __unavailable(f"Error reading log directory: {error}")
    return OrjsonResponse([path.name for path in files])


async def get_log_file_controller(request: Request) -> Response:
    filename: str = request.path_params["filename"]
    logger.info("Downloading log file %s", filename)
    directory: Path = request.state.log_directory
    path = await asyncio.to_thread(__log_file, directory, filename)
    if path is None:
        return __not_found(filename)
    try:
        content = await asyncio.to_thread(path.read_bytes)
    except OSError as error:
        return __unavailable(f"Error reading log file: {error}")
    return Response(
        content,
        media_type="text/plain",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def download_log_files_controller(request: Request) -> Response:
    logger.info("Downloading every log file")
    directory: Path = request.state.log_directory
    try:
        content = await asyncio.to_thread(__zip, directory)
    except OSError as error:
        return __unavailable(f"Error reading log directory: {error}")
    archive_name = f"logs_{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}.zip"
    return Response(
        content,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{archive_name}"'},
    )


async def delete_log_file_controller(request: Request) -> Response:
    filename: str = request.path_params["filename"]
    logger.info("Deleting log file %s", filename)
    directory: Path = request.state.log_directory
    path = await asyncio.to_thread(__log_file, directory, filename)
    if path is None:
        return __not_found(filename)
    try:
        truncated = await asyncio.to_thread(__remove, path)
    except OSError as error:
        return __unavailable(f"Error deleting log file: {error}")
    if truncated:
        return OrjsonResponse({"message": "Active log file truncated"})
    return OrjsonResponse({"message": "Log file deleted"})


async def delete_log_files_controller(request: Request) -> Response:
    logger.info("Deleting every log file")
    directory: Path = request.state.log_directory
    try:
        truncated, errors = await asyncio.to_thread(__remove_all, directory)
    except OSError as error:
        return __unavailable(f"Error reading log directory: {error}")
    if errors:
        return __unavailable(
            f"Some log files could not be deleted: {', '.join(errors)}"
        )
    if truncated:
        return OrjsonResponse(
            {"message": "Log files deleted, active log file truncated"}
        )
    return OrjsonResponse({"message": "Log files deleted"})


async def tail_log_files_controller(request: Request) -> Response:
    lines: int = request.path_params["lines"]
    logger.info("Reading last %d log lines", lines)
    directory: Path = request.state.log_directory
    try:
        content = await asyncio.to_thread(__tail, directory, lines)
    except OSError as error:
        return __unavailable(f"Error reading log files: {error}")
    return PlainTextResponse(content)
