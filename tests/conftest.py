from __future__ import annotations

import os
import sys
from pathlib import Path

import numpy as np
import pytest

from sdf_atlas.glyph_source import FontMetrics, Glyph

SYSTEM_FONTS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/Library/Fonts/Arial.ttf",
]
if sys.platform == "win32":
    fonts_dir = os.path.join(os.environ.get("WINDIR", "C:\\Windows"), "Fonts")
    SYSTEM_FONTS = [os.path.join(fonts_dir, "arial.ttf"), os.path.join(fonts_dir, "segoeui.ttf")]


class FakeFace:
    """In-memory glyph source: solid rectangles with a fixed kerning table."""

    def __init__(self, pixel_height, sizes, kerning=None, metrics=None):
        self.pixel_height = pixel_height
        self.scale = 1.0 / pixel_height
        self.sizes = sizes
        self.kerning_table = kerning or {}
        self._metrics = metrics or FontMetrics(line_height=1.25, ascender=1.0, descender=-0.25)
        self.glyph_calls = []
        self.kerning_calls = []

    def metrics(self):
        return self._metrics

    def glyph(self, codepoint):
        self.glyph_calls.append(codepoint)
        width, height = self.sizes[codepoint]
        return Glyph(
            codepoint=codepoint,
            width=width,
            height=height,
            advance=(width + 2) * self.scale,
            bearing_left=1 * self.scale,
            bearing_top=0.0,
            bitmap=np.full((height, width), 255, dtype=np.uint8),
        )

    def kerning(self, left, right):
        self.kerning_calls.append((left, right))
        return self.kerning_table.get((left, right), 0.0)


@pytest.fixture
def fake_face():
    return FakeFace(32, {ord("A"): (20, 23), ord("B"): (17, 23)})


@pytest.fixture(scope="session")
def system_font() -> Path:
    for path in SYSTEM_FONTS:
        if os.path.exists(path):
            return Path(path)
    pytest.skip("no system TrueType font available")
