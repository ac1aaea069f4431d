"""Binary glyph descriptor (``.dat``).

Little-endian layout::

    uint32   glyph count N
    float32  line height, ascender, descender
    N x      uint32 code point, float32 advance, bearing left, bearing top,
             width, height, u, v, w, h
    ...      float32 kerning value, uint32 repeat count   (until end of file)

Expanding the kerning runs must give exactly N * N values.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .kerning import KerningRun, expand_kerning

FIELD_FORMATS = {"uint32": "<I", "float32": "<f"}

HEADER_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("glyph_count", "uint32"),
    ("line_height", "float32"),
    ("ascender", "float32"),
    ("descender", "float32"),
)

GLYPH_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("codepoint", "uint32"),
    ("advance", "float32"),
    ("bearing_left", "float32"),
    ("bearing_top", "float32"),
    ("width", "float32"),
    ("height", "float32"),
    ("u", "float32"),
    ("v", "float32"),
    ("w", "float32"),
    ("h", "float32"),
)

KERNING_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("value", "float32"),
    ("count", "uint32"),
)


class DescriptorError(ValueError):
    pass


@dataclass(frozen=True)
class GlyphDescriptor:
    codepoint: int
    advance: float
    bearing_left: float
    bearing_top: float
    width: float
    height: float
    u: float
    v: float
    w: float
    h: float


@dataclass
class Descriptor:
    line_height: float
    ascender: float
    descender: float
    glyphs: List[GlyphDescriptor] = field(default_factory=list)
    kerning: List[KerningRun] = field(default_factory=list)

    @property
    def glyph_count(self) -> int:
        return len(self.glyphs)

    def kerning_matrix(self) -> List[List[float]]:
        values = expand_kerning(self.kerning)
        n = self.glyph_count
        if len(values) != n * n:
            raise DescriptorError(f"kerning runs expand to {len(values)} values, expected {n * n}")
        return [values[row * n : (row + 1) * n] for row in range(n)]


def _record_size(fields: Sequence[Tuple[str, str]]) -> int:
    return sum(struct.calcsize(FIELD_FORMATS[kind]) for _, kind in fields)


class DescriptorWriter:
    def __init__(self) -> None:
        self.buffer = bytearray()

    def uint32(self, value: int) -> None:
        self.buffer += struct.pack(FIELD_FORMATS["uint32"], value)

    def float32(self, value: float) -> None:
        self.buffer += struct.pack(FIELD_FORMATS["float32"], value)

    def record(self, fields: Sequence[Tuple[str, str]], values: Dict[str, object]) -> None:
        for name, kind in fields:
            getattr(self, kind)(values[name])

    def getvalue(self) -> bytes:
        return bytes(self.buffer)


def encode_descriptor(descriptor: Descriptor) -> bytes:
    writer = DescriptorWriter()
    writer.record(
        HEADER_FIELDS,
        {
            "glyph_count": descriptor.glyph_count,
            "line_height": descriptor.line_height,
            "ascender": descriptor.ascender,
            "descender": descriptor.descender,
        },
    )
    for glyph in descriptor.glyphs:
        writer.record(GLYPH_FIELDS, vars(glyph))
    for run in descriptor.kerning:
        writer.record(KERNING_FIELDS, vars(run))
    return writer.getvalue()


class DescriptorReader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _read(self, kind: str):
        fmt = FIELD_FORMATS[kind]
        size = struct.calcsize(fmt)
        if self.remaining < size:
            raise DescriptorError(f"truncated descriptor at byte {self.offset}")
        (value,) = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return value

    def uint32(self) -> int:
        return self._read("uint32")

    def float32(self) -> float:
        return self._read("float32")

    def record(self, fields: Sequence[Tuple[str, str]]) -> Dict[str, object]:
        return {name: getattr(self, kind)() for name, kind in fields}


def decode_descriptor(data: bytes) -> Descriptor:
    reader = DescriptorReader(data)
    header = reader.record(HEADER_FIELDS)
    count = header.pop("glyph_count")
    glyphs = [GlyphDescriptor(**reader.record(GLYPH_FIELDS)) for _ in range(count)]

    run_size = _record_size(KERNING_FIELDS)
    if reader.remaining % run_size:
        raise DescriptorError(
            f"kerning section is {reader.remaining} bytes, not a multiple of {run_size}"
        )
    kerning = []
    while reader.remaining:
        kerning.append(KerningRun(**reader.record(KERNING_FIELDS)))

    expanded = sum(run.count for run in kerning)
    if expanded != count * count:
        raise DescriptorError(f"kerning runs expand to {expanded} values, expected {count * count}")

    return Descriptor(glyphs=glyphs, kerning=kerning, **header)


def read_descriptor(path: Path) -> Descriptor:
    return decode_descriptor(Path(path).read_bytes())
