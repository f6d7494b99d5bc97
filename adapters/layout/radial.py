from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import List

from domain.models import BoundingBox, CanvasLayout, CardPlacement, Point, Size
from domain.ports.layout import CanvasLayoutEngine, Identified
from domain.services.collision import collides_with_any, padded_box, union_box
from domain.services.seeded_random import seeded_random

logger = logging.getLogger(__name__)

ORIGIN = Point(0, 0)


@dataclass(frozen=True)
class LayoutConfig:
    card_size: Size = Size(250, 300)
    padding: float = 80.0
    base_radius: float = 250.0
    radius_jitter: float = 200.0
    items_per_layer: int = 8
    layer_spacing: float = 380.0
    max_attempts: int = 100
    # Opt-in: reserve the anchored card before the bloom so other cards avoid it.
    reserve_anchor: bool = False
    cache_size: int = 32


def js_round(value: float) -> int:
    return math.floor(value + 0.5)


class RadialLayoutEngine(CanvasLayoutEngine):
    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config or LayoutConfig()
        self._cached_layout = lru_cache(maxsize=self.config.cache_size)(self._layout_for_ids)

    def build_layout(self, items: Sequence[Identified]) -> CanvasLayout:
        return self._cached_layout(tuple(str(item.id) for item in items))

    def layer_for(self, index: int) -> int:
        return index // self.config.items_per_layer

    def generate_position(self, item_id: str, index: int, placed: Sequence[Point]) -> Point:
        config = self.config
        layer_offset = self.layer_for(index) * config.layer_spacing
        placed_boxes = [self._box(point) for point in placed]

        for attempt in range(config.max_attempts):
            angle = seeded_random(f"{item_id}_angle_{attempt}") * math.pi * 2
            jitter = seeded_random(f"{item_id}_radius_{attempt}") * config.radius_jitter
            radius = config.base_radius + jitter + layer_offset
            x = math.cos(angle) * radius
            y = math.sin(angle) * radius
            if not collides_with_any(self._box(Point(x, y)), placed_boxes):
                return Point(js_round(x), js_round(y))

        angle = seeded_random(f"{item_id}_fallback") * math.pi * 2
        radius = config.base_radius + layer_offset + config.layer_spacing
        logger.debug(
            "No free slot for %s after %d attempts, using fallback ring %.0f",
            item_id,
            config.max_attempts,
            radius,
        )
        return Point(js_round(math.cos(angle) * radius), js_round(math.sin(angle) * radius))

    def cache_clear(self) -> None:
        self._cached_layout.cache_clear()

    def _layout_for_ids(self, item_ids: tuple[str, ...]) -> CanvasLayout:
        placements: List[CardPlacement] = []
        placed: List[Point] = []
        anchor_index = len(item_ids) - 1
        if self.config.reserve_anchor and item_ids:
            placed.append(ORIGIN)

        for index, item_id in enumerate(item_ids):
            anchored = index == anchor_index
            if anchored:
                position = ORIGIN
                if not self.config.reserve_anchor:
                    placed.append(position)
            else:
                position = self.generate_position(item_id, index, placed)
                placed.append(position)
            placements.append(
                CardPlacement(
                    item_id=item_id,
                    index=index,
                    layer=self.layer_for(index),
                    position=position,
                    anchored=anchored,
                )
            )

        logger.debug("Positioned %d canvas cards", len(placements))
        return CanvasLayout(
            placements=tuple(placements),
            card_size=self.config.card_size,
            bounds=self._bounds(placements),
        )

    def _box(self, point: Point) -> BoundingBox:
        return padded_box(point, self.config.card_size, self.config.padding)

    def _bounds(self, placements: Sequence[CardPlacement]) -> BoundingBox | None:
        return union_box(
            padded_box(placement.position, self.config.card_size, 0) for placement in placements
        )
