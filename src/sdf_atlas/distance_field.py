"""Signed distance field generation by bounded neighbourhood search.

Each output texel is mapped back to a source texel of the coverage image.
The square neighbourhood of ``search_radius`` texels around it is scanned for
the closest texel on the other side of the glyph edge, and that distance is
encoded into 0..255 with the edge at 127.5: 255 is far inside, 0 far outside.
Texels with nothing opposite within the radius saturate.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import numpy as np

MID_VALUE = 127.5


def search_offsets(radius: int) -> List[Tuple[float, int, int]]:
    """Offsets (distance, dy, dx) closer than radius, nearest first.

    Anything at or beyond the radius is indistinguishable from finding nothing.
    """
    offsets = []
    for dy in range(-radius, radius + 1):
        for dx in range(-radius, radius + 1):
            if dx == 0 and dy == 0:
                continue
            dist = math.hypot(dx, dy)
            if dist < radius:
                offsets.append((dist, dy, dx))
    offsets.sort()
    return offsets


def source_coords(out_len: int, src_len: int) -> np.ndarray:
    """Source texel under the centre of each output texel along one axis."""
    out = np.arange(out_len, dtype=np.int64)
    coords = ((2 * out + 1) * src_len) // (2 * out_len)
    return np.minimum(coords, src_len - 1)


def encode_distance(distance: np.ndarray, inside: np.ndarray, radius: int) -> np.ndarray:
    signed = np.where(inside, distance - 0.5, 0.5 - distance)
    value = MID_VALUE + MID_VALUE * signed / (radius - 0.5)
    return np.clip(np.rint(value), 0, 255).astype(np.uint8)


def _band(
    padded: np.ndarray,
    rows: np.ndarray,
    cols: np.ndarray,
    radius: int,
    offsets: List[Tuple[float, int, int]],
) -> np.ndarray:
    rows = rows + radius
    cols = cols + radius
    centre = padded[np.ix_(rows, cols)]
    best = np.full(centre.shape, float(radius))
    for dist, dy, dx in offsets:
        neighbour = padded[np.ix_(rows + dy, cols + dx)]
        np.minimum(best, np.where(neighbour != centre, dist, radius), out=best)
    return encode_distance(best, centre, radius)


def distance_transform(
    coverage: np.ndarray,
    out_size: Tuple[int, int],
    search_radius: int,
    threshold: int = 128,
    workers: int = 1,
) -> np.ndarray:
    """Downsample a coverage image into a signed distance field.

    coverage is a 2-D uint8 array (rows, columns); out_size is (width, height).
    Coverage values at or above threshold count as inside; samples beyond the
    image border count as outside. Output rows are split into bands that are
    evaluated on a thread pool when workers > 1.
    """
    coverage = np.asarray(coverage)
    if coverage.ndim != 2 or coverage.size == 0:
        raise ValueError(f"coverage must be a non-empty 2-D image, got shape {coverage.shape}")
    out_w, out_h = out_size
    if out_w <= 0 or out_h <= 0:
        raise ValueError(f"output size must be positive, got {out_w}x{out_h}")
    if search_radius < 1:
        raise ValueError(f"search radius must be >= 1, got {search_radius}")
    if workers < 1:
        raise ValueError(f"workers must be >= 1, got {workers}")
    if not 0 <= threshold <= 255:
        raise ValueError(f"threshold must be in [0, 255], got {threshold}")

    src_h, src_w = coverage.shape
    inside = coverage >= threshold
    padded = np.pad(inside, search_radius, mode="constant", constant_values=False)

    rows = source_coords(out_h, src_h)
    cols = source_coords(out_w, src_w)
    offsets = search_offsets(search_radius)

    if workers == 1 or out_h == 1:
        return _band(padded, rows, cols, search_radius, offsets)

    result = np.empty((out_h, out_w), dtype=np.uint8)
    bands = [band for band in np.array_split(np.arange(out_h), min(workers, out_h)) if band.size]

    def run(band: np.ndarray) -> None:
        result[band[0] : band[-1] + 1] = _band(padded, rows[band], cols, search_radius, offsets)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        for _ in pool.map(run, bands):
            pass
    return result
