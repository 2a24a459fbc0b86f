# gstdots/app/dots_ws.py
from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from gstdots.app.state import getRuntimeForWs
from gstdots.core.logging import clearLogContext, setLogContext
from gstdots.dots.client import DotClient

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_INBOUND_CHARS = 1_000_000

# 1013 "Try Again Later": the client could not keep up
CLOSE_CODE_OVERFLOW = 1013



@router.websocket("/ws/")
@router.websocket("/ws")
async def dotsWebSocket(ws: WebSocket) -> None:
    runtime = getRuntimeForWs(ws)
    await ws.accept()

    remote = f"{ws.client.host}:{ws.client.port}" if ws.client else None
    client = DotClient(maxQueue=runtime.config.clientMaxQueue)
    setLogContext(clientId=client.label, remote=remote)

    sender = asyncio.create_task(_pumpOutbound(ws, client), name=f"ws:send:{client.label}")
    reader = asyncio.create_task(_readInbound(ws, client), name=f"ws:recv:{client.label}")
    try:
        replayed = await runtime.broker.join(client)
        logger.info("Replayed %d dot(s) to %s", replayed, client.label)
        await asyncio.wait({sender, reader}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        runtime.broker.leave(client)
        for task in (sender, reader):
            task.cancel()
        await asyncio.gather(sender, reader, return_exceptions=True)

        if client.closeReason == "queue full":
            await _safeClose(ws, CLOSE_CODE_OVERFLOW)
        else:
            await _safeClose(ws)
        logger.debug(
            "Connection %s finished (sent=%d, dropped=%d, discarded=%d)",
            client.label, client.sentCount, client.droppedCount, len(client.drainNowait()),
        )
        clearLogContext()



async def _pumpOutbound(ws: WebSocket, client: DotClient) -> None:
    while True:
        text = await client.nextMessage()
        if text is None:
            return
        try:
            await ws.send_text(text)
        except (WebSocketDisconnect, RuntimeError) as err:
            logger.debug("Send to %s failed: %r", client.label, err)
            client.close("send failed")
            return
        client.sentCount += 1



async def _readInbound(ws: WebSocket, client: DotClient) -> None:
    """Inbound frames never touch core state; they are only logged."""
    while True:
        try:
            event = await ws.receive()
        except (WebSocketDisconnect, RuntimeError):
            return
        if event["type"] == "websocket.disconnect":
            logger.debug("%s disconnected (code=%s)", client.label, event.get("code"))
            return
        if event["type"] != "websocket.receive":
            continue

        text = event.get("text")
        data = event.get("bytes")
        if text is not None:
            logInboundText(client, text)
        elif data is not None:
            logger.info("Binary frame from %s ignored (%d bytes)", client.label, len(data))



def logInboundText(client: DotClient, raw: str) -> None:
    if len(raw) > MAX_INBOUND_CHARS:
        logger.warning("Message from %s suppressed: too large (%d chars)", client.label, len(raw))
        return
    try:
        msg = json.loads(raw)
    except ValueError:
        logger.info("Message received from %s: %r", client.label, raw)
        return
    msgType = msg.get("type") if isinstance(msg, dict) else None
    logger.info("Message received from %s: type=%r %s", client.label, msgType, raw)



async def _safeClose(ws: WebSocket, code: int = 1000) -> None:
    if ws.application_state == WebSocketState.DISCONNECTED or ws.client_state == WebSocketState.DISCONNECTED:
        return
    try:
        await ws.close(code=code)
    except (RuntimeError, WebSocketDisconnect):
        pass
