"""Command line entry point for building SDF font atlases."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from .config import check_threshold, default_charset, default_threshold, default_workers
from .descriptor import DescriptorError, read_descriptor
from .glyph_source import FontError
from .pipeline import compile_font


class ArgumentParser(argparse.ArgumentParser):
    """argparse, but usage errors exit with status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def threshold_arg(raw: str) -> int:
    try:
        return check_threshold(int(raw))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid threshold {raw!r}: expected an integer in [0, 255]") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = ArgumentParser(
        prog="sdf-atlas",
        description="Compile a font into a signed distance field atlas and glyph descriptor.",
    )
    commands = parser.add_subparsers(dest="command", required=True, parser_class=ArgumentParser)

    compile_cmd = commands.add_parser("compile", help="Render, pack and distance-transform a font.")
    compile_cmd.add_argument("font_path", type=Path, help="TrueType/OpenType font file.")
    compile_cmd.add_argument("pixel_height", type=int, help="Rasterization height in pixels.")
    compile_cmd.add_argument("gap", type=int, help="Empty texels kept around every glyph.")
    compile_cmd.add_argument("search_radius", type=int, help="Distance search radius in source texels.")
    compile_cmd.add_argument("output_size", type=int, help="Length of the atlas' longer axis.")
    compile_cmd.add_argument(
        "--chars",
        default=None,
        help="Characters to include (UTF-8). Defaults to the Latin-1 range or SDF_ATLAS_CHARS.",
    )
    compile_cmd.add_argument(
        "--chars-file",
        type=Path,
        default=None,
        help="Read the characters to include from a UTF-8 text file.",
    )
    compile_cmd.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Output path prefix for <prefix>.png and <prefix>.dat. Defaults to the font path.",
    )
    compile_cmd.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used for the distance field. Defaults to SDF_ATLAS_WORKERS or 1.",
    )
    compile_cmd.add_argument(
        "--threshold",
        type=threshold_arg,
        default=None,
        help="Coverage value (0-255) from which a texel counts as inside. Defaults to 128.",
    )

    inspect_cmd = commands.add_parser("inspect", help="Print a descriptor file as JSON.")
    inspect_cmd.add_argument("descriptor", type=Path, help="Path to a .dat descriptor.")
    return parser


def resolve_chars(args: argparse.Namespace) -> str:
    if args.chars is not None:
        return args.chars
    if args.chars_file is not None:
        return args.chars_file.read_text(encoding="utf-8").rstrip("\r\n")
    return default_charset()


def run_compile(args: argparse.Namespace) -> int:
    workers = args.workers if args.workers is not None else default_workers()
    threshold = args.threshold if args.threshold is not None else default_threshold()
    chars = resolve_chars(args)

    print(f"[sdf-atlas] compiling {args.font_path} ({len(chars)} chars, {args.pixel_height}px)")
    result = compile_font(
        args.font_path,
        args.pixel_height,
        args.gap,
        args.search_radius,
        args.output_size,
        chars=chars,
        out_prefix=args.out,
        workers=workers,
        threshold=threshold,
    )
    print(
        f"[sdf-atlas] {result.glyph_count} glyphs, canvas "
        f"{result.canvas.width}x{result.canvas.height} -> atlas "
        f"{result.atlas_size[0]}x{result.atlas_size[1]}, {result.kerning_runs} kerning runs"
    )
    print(f"[sdf-atlas] wrote {result.png_path}")
    print(f"[sdf-atlas] wrote {result.dat_path}")
    return 0


def run_inspect(args: argparse.Namespace) -> int:
    descriptor = read_descriptor(args.descriptor)
    summary = {
        "glyph_count": descriptor.glyph_count,
        "line_height": descriptor.line_height,
        "ascender": descriptor.ascender,
        "descender": descriptor.descender,
        "glyphs": [vars(glyph) for glyph in descriptor.glyphs],
        "kerning_runs": len(descriptor.kerning),
        "kerning_pairs": sum(run.count for run in descriptor.kerning),
    }
    print(json.dumps(summary, indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "compile":
            return run_compile(args)
        return run_inspect(args)
    except (FontError, DescriptorError, OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
