"""Websocket push channel at /ws."""

import asyncio
import contextlib
import json
import logging
import time

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic_core import to_jsonable_python

from coinwhisperer.events import Broadcaster, Event

logger = logging.getLogger(__name__)

router = APIRouter()


async def _forward(websocket: WebSocket, queue: asyncio.Queue[Event]) -> None:
    """Relay broadcast events to one client until it goes away."""
    while True:
        event = await queue.get()
        try:
            await websocket.send_json(to_jsonable_python(event))
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Stopped forwarding to websocket client: {e}")
            return


async def _stop_forwarding(task: asyncio.Task) -> None:
    """Cancel a forwarder and wait for it; errors it raised surface here."""
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Push channel.

    Protocol:
    - Server sends on connect: {"type": "connection", "message": ...}
    - Client sends: {"type": "ping"}; server replies {"type": "pong", "timestamp": ms}
    - Server forwards every broadcast event ({"type": "new_tweet"|"new_trade", ...})
    """
    broadcaster: Broadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    await websocket.send_json(
        {"type": "connection", "message": "Connected to Coin Whisperer"}
    )
    logger.info(f"Websocket client connected (total: {broadcaster.subscriber_count + 1})")

    with broadcaster.subscription() as queue:
        forwarder = asyncio.create_task(_forward(websocket, queue))
        try:
            while True:
                raw = await websocket.receive_text()
                try:
                    message = json.loads(raw)
                except ValueError:
                    logger.warning(f"Ignoring malformed websocket message: {raw[:100]}")
                    continue
                if isinstance(message, dict) and message.get("type") == "ping":
                    await websocket.send_json(
                        {"type": "pong", "timestamp": int(time.time() * 1000)}
                    )
        except WebSocketDisconnect:
            logger.info("Websocket client disconnected")
        finally:
            await _stop_forwarding(forwarder)
