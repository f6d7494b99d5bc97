from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from domain.models import CanvasLayout, Point


class Identified(Protocol):
    @property
    def id(self) -> str: ...


class CanvasLayoutEngine(Protocol):
    def build_layout(self, items: Sequence[Identified]) -> CanvasLayout:
        ...

    def generate_position(self, item_id: str, index: int, placed: Sequence[Point]) -> Point:
        ...
