from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import freetype
import numpy as np

# FreeType error code for FT_Err_Unknown_File_Format.
FT_ERR_UNKNOWN_FILE_FORMAT = 0x02


class FontError(Exception):
    """Base class for failures reported by the glyph source."""


class UnsupportedFontError(FontError):
    pass


class FontLoadError(FontError):
    pass


class PixelSizeError(FontError):
    pass


class GlyphError(FontError):
    """FreeType failed while rendering a glyph or reading a kerning pair."""


@dataclass(frozen=True)
class FontMetrics:
    line_height: float
    ascender: float
    descender: float


@dataclass(frozen=True, eq=False)
class Glyph:
    codepoint: int
    width: int
    height: int
    advance: float
    bearing_left: float
    bearing_top: float
    bitmap: np.ndarray

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


def warn(message: str) -> None:
    print(f"Warning: {message}", file=sys.stderr)


def bitmap_to_array(buffer, width: int, rows: int, pitch: int) -> np.ndarray:
    if width == 0 or rows == 0:
        return np.zeros((rows, width), dtype=np.uint8)
    stride = abs(pitch)
    data = np.asarray(buffer, dtype=np.uint8)[: rows * stride].reshape(rows, stride)
    if pitch < 0:
        # Negative pitch means the rows are stored bottom-up.
        data = data[::-1]
    return np.ascontiguousarray(data[:, :width])


class FontFace:
    """A FreeType face opened at a fixed pixel height.

    Values are normalized so that 1.0 equals the requested pixel height.
    Use as a context manager, or call close() once done.
    """

    def __init__(self, path: str | Path, pixel_height: int):
        if pixel_height <= 0:
            raise PixelSizeError(f"pixel height must be positive, got {pixel_height}")
        self.path = Path(path)
        self.pixel_height = pixel_height
        self.scale = 1.0 / pixel_height

        try:
            face = freetype.Face(str(self.path))
        except freetype.FT_Exception as exc:
            if getattr(exc, "errcode", None) == FT_ERR_UNKNOWN_FILE_FORMAT:
                raise UnsupportedFontError(f"Unsupported file format: {self.path}") from exc
            raise FontLoadError(f"Failed to load font {self.path}: {exc}") from exc

        try:
            face.set_pixel_sizes(0, pixel_height)
        except freetype.FT_Exception as exc:
            # Release the face before the error propagates.
            del face
            raise PixelSizeError(f"Failed to set font size {pixel_height}px: {exc}") from exc

        self._face: freetype.Face | None = face

    def __enter__(self) -> FontFace:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        # freetype.Face has no close(); its __del__ calls FT_Done_Face, which
        # CPython runs as soon as this last reference is deleted.
        face, self._face = self._face, None
        del face

    @property
    def closed(self) -> bool:
        return self._face is None

    @property
    def face(self) -> freetype.Face:
        if self._face is None:
            raise ValueError("font face is closed")
        return self._face

    def metrics(self) -> FontMetrics:
        size = self.face.size
        return FontMetrics(
            line_height=(size.height >> 6) * self.scale,
            ascender=(size.ascender >> 6) * self.scale,
            descender=(size.descender >> 6) * self.scale,
        )

    def glyph(self, codepoint: int) -> Glyph:
        face = self.face
        try:
            face.load_glyph(face.get_char_index(codepoint), freetype.FT_LOAD_RENDER)
        except freetype.FT_Exception as exc:
            raise GlyphError(f"Failed to render U+{codepoint:04X}: {exc}") from exc
        slot = face.glyph
        if slot.advance.y != 0:
            warn(f"advance y<>0 for U+{codepoint:04X} ignored")
        bitmap = slot.bitmap
        return Glyph(
            codepoint=codepoint,
            width=bitmap.width,
            height=bitmap.rows,
            advance=(slot.advance.x >> 6) * self.scale,
            bearing_left=slot.bitmap_left * self.scale,
            bearing_top=(bitmap.rows - slot.bitmap_top) * self.scale,
            bitmap=bitmap_to_array(bitmap.buffer, bitmap.width, bitmap.rows, bitmap.pitch),
        )

    def kerning(self, left: int, right: int) -> float:
        face = self.face
        try:
            delta = face.get_kerning(
                face.get_char_index(left),
                face.get_char_index(right),
                freetype.FT_KERNING_DEFAULT,
            )
        except freetype.FT_Exception as exc:
            raise GlyphError(f"Failed to read kerning U+{left:04X}/U+{right:04X}: {exc}") from exc
        if delta.y != 0:
            warn(f"kerning y<>0 for U+{left:04X}/U+{right:04X} ignored")
        return (delta.x >> 6) * self.scale


def iter_codepoints(chars: str) -> Iterator[int]:
    seen: set[int] = set()
    for ch in chars:
        codepoint = ord(ch)
        if codepoint in seen:
            continue
        seen.add(codepoint)
        yield codepoint
