from __future__ import annotations

import io
from typing import List, Sequence, Tuple

import numpy as np
from PIL import Image

from .glyph_source import Glyph
from .packing import Canvas, PackedRect

UV = Tuple[float, float, float, float]


def compose_atlas(glyphs: Sequence[Glyph], rects: Sequence[PackedRect], canvas: Canvas) -> np.ndarray:
    if len(glyphs) != len(rects):
        raise ValueError(f"{len(glyphs)} glyphs but {len(rects)} packed rects")
    image = np.zeros((canvas.height, canvas.width), dtype=np.uint8)
    for glyph, rect in zip(glyphs, rects):
        if (glyph.width, glyph.height) != (rect.width, rect.height):
            raise ValueError(
                f"glyph U+{glyph.codepoint:04X} is {glyph.width}x{glyph.height} "
                f"but its slot is {rect.width}x{rect.height}"
            )
        if rect.width == 0 or rect.height == 0:
            continue
        image[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width] = glyph.bitmap
    return image


def compute_uvs(rects: Sequence[PackedRect], canvas: Canvas) -> List[UV]:
    u_scale = 1.0 / canvas.width
    v_scale = 1.0 / canvas.height
    return [
        (rect.x * u_scale, rect.y * v_scale, rect.width * u_scale, rect.height * v_scale)
        for rect in rects
    ]


def distance_atlas_size(canvas: Canvas, output_size: int) -> Tuple[int, int]:
    """Scale the canvas so its longer axis is output_size, rounding the other up."""
    if output_size <= 0:
        raise ValueError(f"output size must be positive, got {output_size}")
    if canvas.width > canvas.height:
        height = -(-canvas.height * output_size // canvas.width)
        return output_size, max(height, 1)
    width = -(-canvas.width * output_size // canvas.height)
    return max(width, 1), output_size


def to_rgb_image(atlas: np.ndarray) -> Image.Image:
    gray = Image.fromarray(np.ascontiguousarray(atlas, dtype=np.uint8))
    return Image.merge("RGB", [gray, gray, gray])


def encode_png(atlas: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    to_rgb_image(atlas).save(buffer, format="PNG")
    return buffer.getvalue()
