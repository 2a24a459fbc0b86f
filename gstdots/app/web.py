# gstdots/app/web.py
from __future__ import annotations

from fastapi import APIRouter, Request

from gstdots.app.state import getRuntime
from gstdots.core.time import nowMs

router = APIRouter()



@router.get("/health")
async def health(request: Request):
    runtime = getRuntime(request.app)
    return {
        "ok": runtime.watcher.isAlive(),
        "ts": nowMs(),
        "clients": runtime.broker.clientCount,
        "dotDir": str(runtime.store.root),
    }
