from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

# Shelf widths tried, as multiples of sqrt(total inflated area).
SHELF_WIDTH_FACTORS = (1.0, 1.125, 1.25, 1.5, 2.0)


@dataclass(frozen=True)
class PackedRect:
    index: int
    x: int
    y: int
    width: int
    height: int

    def inflated(self, gap: int) -> Tuple[int, int, int, int]:
        """Return (left, top, right, bottom) of the rect grown by gap, right/bottom exclusive."""
        return (
            self.x - gap,
            self.y - gap,
            self.x + self.width + gap,
            self.y + self.height + gap,
        )


@dataclass(frozen=True)
class Canvas:
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


def _shelf_pack(
    order: Sequence[int],
    sizes: Sequence[Tuple[int, int]],
    gap: int,
    limit: int,
) -> Tuple[List[PackedRect], Canvas]:
    placed: List[PackedRect] = [None] * len(sizes)  # type: ignore[list-item]
    cursor_x = 0
    shelf_y = 0
    shelf_h = 0
    canvas_w = 0

    for index in order:
        width, height = sizes[index]
        outer_w = width + 2 * gap
        outer_h = height + 2 * gap
        if cursor_x > 0 and cursor_x + outer_w > limit:
            shelf_y += shelf_h
            cursor_x = 0
            shelf_h = 0
        placed[index] = PackedRect(index, cursor_x + gap, shelf_y + gap, width, height)
        cursor_x += outer_w
        shelf_h = max(shelf_h, outer_h)
        canvas_w = max(canvas_w, cursor_x)

    canvas = Canvas(max(canvas_w, 1), max(shelf_y + shelf_h, 1))
    return placed, canvas


def pack_boxes(sizes: Sequence[Tuple[int, int]], gap: int) -> Tuple[List[PackedRect], Canvas]:
    """Lay out rectangles on shelves so that no two gap-inflated boxes overlap.

    Returns one PackedRect per input (same order) and the canvas bounding all
    inflated boxes. The result depends only on the input sizes and gap.
    """
    if gap < 0:
        raise ValueError(f"gap must be non-negative, got {gap}")
    sizes = [(int(w), int(h)) for w, h in sizes]
    for index, (width, height) in enumerate(sizes):
        if width < 0 or height < 0:
            raise ValueError(f"rect {index} has negative size {width}x{height}")
    if not sizes:
        return [], Canvas(1, 1)

    order = sorted(range(len(sizes)), key=lambda i: (-sizes[i][1], -sizes[i][0], i))

    total_area = sum((w + 2 * gap) * (h + 2 * gap) for w, h in sizes)
    widest = max(w + 2 * gap for w, _ in sizes)
    side = math.sqrt(total_area)

    limits: List[int] = []
    for factor in SHELF_WIDTH_FACTORS:
        limit = max(widest, int(math.ceil(side * factor)))
        if limit not in limits:
            limits.append(limit)

    best: Tuple[List[PackedRect], Canvas] | None = None
    for limit in limits:
        placed, canvas = _shelf_pack(order, sizes, gap, limit)
        if best is None or canvas.area < best[1].area:
            best = (placed, canvas)
    return best
