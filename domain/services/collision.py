from __future__ import annotations

from collections.abc import Iterable

from domain.models import BoundingBox, Point, Size


def padded_box(center: Point, card_size: Size, padding: float) -> BoundingBox:
    width = card_size.width + padding
    height = card_size.height + padding
    return BoundingBox(
        x=center.x - width / 2,
        y=center.y - height / 2,
        width=width,
        height=height,
    )


def collides(first: BoundingBox, second: BoundingBox) -> bool:
    # Strict comparisons: boxes that only share an edge are not separated.
    return not (
        first.right < second.x
        or second.right < first.x
        or first.bottom < second.y
        or second.bottom < first.y
    )


def collides_with_any(candidate: BoundingBox, others: Iterable[BoundingBox]) -> bool:
    return any(collides(candidate, other) for other in others)


def union_box(boxes: Iterable[BoundingBox]) -> BoundingBox | None:
    items = list(boxes)
    if not items:
        return None
    left = min(box.x for box in items)
    top = min(box.y for box in items)
    right = max(box.right for box in items)
    bottom = max(box.bottom for box in items)
    return BoundingBox(x=left, y=top, width=right - left, height=bottom - top)
