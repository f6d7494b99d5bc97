from __future__ import annotations

from dataclasses import dataclass, field

from domain.models import Point

RECENTER_TRANSITION_SECONDS = 0.5


@dataclass
class PanController:
    """Pointer-drag state of the canvas viewport.

    The offset is the translation applied to the whole canvas; card positions
    from the layout engine are never touched by panning.
    """

    offset: Point = field(default_factory=lambda: Point(0, 0))
    dragging: bool = False
    drag_start: Point = field(default_factory=lambda: Point(0, 0))
    transitioning: bool = False

    @property
    def has_moved(self) -> bool:
        return self.offset.x != 0 or self.offset.y != 0

    def pointer_down(self, x: float, y: float) -> None:
        self.dragging = True
        self.drag_start = Point(x - self.offset.x, y - self.offset.y)

    def pointer_move(self, x: float, y: float) -> bool:
        if not self.dragging:
            return False
        self.offset = Point(x - self.drag_start.x, y - self.drag_start.y)
        return True

    def pointer_up(self) -> None:
        if self.dragging:
            self.dragging = False

    def pointer_leave(self) -> None:
        if self.dragging:
            self.dragging = False

    def recenter(self) -> float:
        self.transitioning = True
        self.offset = Point(0, 0)
        return RECENTER_TRANSITION_SECONDS

    def finish_transition(self) -> None:
        self.transitioning = False
