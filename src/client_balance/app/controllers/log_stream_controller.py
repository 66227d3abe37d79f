import asyncio
import contextlib
import logging

from starlette.websockets import WebSocket

from ...logging import LogStreamHandler

logger = logging.getLogger(__name__)


async def __forward(websocket: WebSocket, queue: asyncio.Queue[str]) -> None:
    while True:
        await websocket.send_text(await queue.get())


async def log_stream_controller(websocket: WebSocket) -> None:
    log_stream: LogStreamHandler = websocket.state.log_stream
    # subscribed before accepting so nothing logged after the handshake is missed
    queue = log_stream.subscribe()
    await websocket.accept()
    logger.info("New log stream connection from %s", websocket.client)

    forward = asyncio.create_task(__forward(websocket, queue))
    try:
        while (await websocket.receive())["type"] != "websocket.disconnect":
            pass
    finally:
        log_stream.unsubscribe(queue)
        forward.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await forward
    logger.info("Log stream connection from %s closed", websocket.client)
