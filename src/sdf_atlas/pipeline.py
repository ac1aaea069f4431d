from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Tuple

import numpy as np

from .atlas import compose_atlas, compute_uvs, distance_atlas_size, encode_png
from .config import DEFAULT_CHARSET, DEFAULT_THRESHOLD
from .descriptor import Descriptor, GlyphDescriptor, encode_descriptor
from .distance_field import distance_transform
from .glyph_source import FontFace, FontMetrics, Glyph, iter_codepoints
from .kerning import KerningRun, kerning_runs
from .packing import Canvas, PackedRect, pack_boxes


class GlyphSource(Protocol):
    scale: float

    def metrics(self) -> FontMetrics: ...

    def glyph(self, codepoint: int) -> Glyph: ...

    def kerning(self, left: int, right: int) -> float: ...


@dataclass
class GlyphTable:
    """Code points in charset order, plus the reverse lookup."""

    codepoints: List[int] = field(default_factory=list)
    index_of: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def from_chars(cls, chars: str) -> GlyphTable:
        codepoints = list(iter_codepoints(chars))
        return cls(codepoints, {cp: i for i, cp in enumerate(codepoints)})

    def __len__(self) -> int:
        return len(self.codepoints)


@dataclass
class Assets:
    table: GlyphTable
    glyphs: List[Glyph]
    rects: List[PackedRect]
    canvas: Canvas
    atlas: np.ndarray
    descriptor: Descriptor
    png: bytes
    dat: bytes

    @property
    def atlas_size(self) -> Tuple[int, int]:
        height, width = self.atlas.shape
        return width, height


@dataclass(frozen=True)
class CompileResult:
    png_path: Path
    dat_path: Path
    glyph_count: int
    canvas: Canvas
    atlas_size: Tuple[int, int]
    kerning_runs: int


def build_descriptor(
    metrics: FontMetrics,
    glyphs: Sequence[Glyph],
    uvs: Sequence[Tuple[float, float, float, float]],
    kerning: Sequence[KerningRun],
    scale: float,
) -> Descriptor:
    records = [
        GlyphDescriptor(
            codepoint=glyph.codepoint,
            advance=glyph.advance,
            bearing_left=glyph.bearing_left,
            bearing_top=glyph.bearing_top,
            width=glyph.width * scale,
            height=glyph.height * scale,
            u=u,
            v=v,
            w=w,
            h=h,
        )
        for glyph, (u, v, w, h) in zip(glyphs, uvs)
    ]
    return Descriptor(
        line_height=metrics.line_height,
        ascender=metrics.ascender,
        descender=metrics.descender,
        glyphs=records,
        kerning=list(kerning),
    )


def build_assets(
    source: GlyphSource,
    chars: str,
    gap: int,
    search_radius: int,
    output_size: int,
    workers: int = 1,
    threshold: int = DEFAULT_THRESHOLD,
) -> Assets:
    """Run every stage in memory; nothing is written to disk."""
    table = GlyphTable.from_chars(chars)
    if not table.codepoints:
        raise ValueError("character set is empty")

    kerning = kerning_runs(source, table.codepoints)
    glyphs = [source.glyph(cp) for cp in table.codepoints]

    rects, canvas = pack_boxes([glyph.size for glyph in glyphs], gap)
    image = compose_atlas(glyphs, rects, canvas)
    uvs = compute_uvs(rects, canvas)

    atlas = distance_transform(
        image,
        distance_atlas_size(canvas, output_size),
        search_radius,
        threshold=threshold,
        workers=workers,
    )

    descriptor = build_descriptor(source.metrics(), glyphs, uvs, kerning, source.scale)
    return Assets(
        table=table,
        glyphs=glyphs,
        rects=rects,
        canvas=canvas,
        atlas=atlas,
        descriptor=descriptor,
        png=encode_png(atlas),
        dat=encode_descriptor(descriptor),
    )


def write_assets(assets: Assets, out_prefix: Path) -> Tuple[Path, Path]:
    """Write <prefix>.png and <prefix>.dat together, or leave neither behind.

    Both files are staged as .tmp siblings and then moved into place. If any
    step fails, staged files and anything already moved are removed.
    """
    png_path = Path(f"{out_prefix}.png")
    dat_path = Path(f"{out_prefix}.dat")
    png_path.parent.mkdir(parents=True, exist_ok=True)

    staged: List[Tuple[Path, Path]] = []
    placed: List[Path] = []
    try:
        for path, data in ((png_path, assets.png), (dat_path, assets.dat)):
            tmp_path = path.with_name(path.name + ".tmp")
            staged.append((tmp_path, path))
            tmp_path.write_bytes(data)
        for tmp_path, path in staged:
            os.replace(tmp_path, path)
            placed.append(path)
    except OSError:
        for tmp_path, _ in staged:
            tmp_path.unlink(missing_ok=True)
        for path in placed:
            path.unlink(missing_ok=True)
        raise
    return png_path, dat_path


def compile_font(
    font_path: Path,
    pixel_height: int,
    gap: int,
    search_radius: int,
    output_size: int,
    chars: str = DEFAULT_CHARSET,
    out_prefix: Path | None = None,
    workers: int = 1,
    threshold: int = DEFAULT_THRESHOLD,
) -> CompileResult:
    font_path = Path(font_path)
    out_prefix = Path(out_prefix) if out_prefix is not None else font_path

    with FontFace(font_path, pixel_height) as face:
        assets = build_assets(
            face,
            chars,
            gap=gap,
            search_radius=search_radius,
            output_size=output_size,
            workers=workers,
            threshold=threshold,
        )

    png_path, dat_path = write_assets(assets, out_prefix)
    return CompileResult(
        png_path=png_path,
        dat_path=dat_path,
        glyph_count=len(assets.table),
        canvas=assets.canvas,
        atlas_size=assets.atlas_size,
        kerning_runs=len(assets.descriptor.kerning),
    )
