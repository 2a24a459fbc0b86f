# gstdots/dots/messages.py
from __future__ import annotations
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from gstdots.core.jsonutils import decodeText, safeJsonDumps
from gstdots.dots.store import Snapshot

__all__ = ["NewDot", "DotRemoved", "OutboundMessage", "newDotFromSnapshot", "encodeMessage"]



class NewDot(BaseModel):
    """A snapshot appeared or changed; also used for the join replay."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["NewDot"] = "NewDot"
    name: str
    content: str
    creation_time: int = Field(ge=0)    # ms since the epoch, 0 if unknown



class DotRemoved(BaseModel):
    """A snapshot vanished."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["DotRemoved"] = "DotRemoved"
    name: str
    creation_time: int = Field(ge=0)



OutboundMessage = Union[NewDot, DotRemoved]



def newDotFromSnapshot(snapshot: Snapshot) -> NewDot:
    return NewDot(name=snapshot.name, content=decodeText(snapshot.content), creation_time=snapshot.mtimeMs)



def encodeMessage(message: OutboundMessage) -> str:
    """Single-line JSON text frame."""
    return safeJsonDumps(message)
