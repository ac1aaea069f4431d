from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CHARSET = (
    "".join(chr(c) for c in range(0x21, 0x7F))
    + " "
    + "".join(chr(c) for c in range(0xA1, 0x100))
)

DEFAULT_THRESHOLD = 128
DEFAULT_WORKERS = 1


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def default_charset() -> str:
    return os.environ.get("SDF_ATLAS_CHARS") or DEFAULT_CHARSET


def default_workers() -> int:
    workers = _env_int("SDF_ATLAS_WORKERS", DEFAULT_WORKERS)
    if workers < 1:
        raise ValueError(f"SDF_ATLAS_WORKERS must be >= 1, got {workers}")
    return workers


def check_threshold(threshold: int, name: str = "threshold") -> int:
    if not 0 <= threshold <= 255:
        raise ValueError(f"{name} must be in [0, 255], got {threshold}")
    return threshold


def default_threshold() -> int:
    return check_threshold(_env_int("SDF_ATLAS_THRESHOLD", DEFAULT_THRESHOLD), "SDF_ATLAS_THRESHOLD")
