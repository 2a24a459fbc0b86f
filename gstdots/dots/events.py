# gstdots/dots/events.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Union

__all__ = ["Appeared", "Vanished", "CoreEvent"]



@dataclass(frozen=True)
class Appeared:
    """A `.dot` file exists and its content was observed to change. Carries no content."""
    name: str



@dataclass(frozen=True)
class Vanished:
    """A `.dot` file no longer exists."""
    name: str



CoreEvent = Union[Appeared, Vanished]
