from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Protocol, Sequence


class KerningSource(Protocol):
    def kerning(self, left: int, right: int) -> float: ...


@dataclass(frozen=True)
class KerningRun:
    value: float
    count: int


def iter_kerning(source: KerningSource, codepoints: Sequence[int]) -> Iterator[float]:
    """Yield the kerning matrix in row-major order: (i, j) is j following i."""
    for left in codepoints:
        for right in codepoints:
            yield source.kerning(left, right)


def compress_kerning(values: Iterable[float]) -> List[KerningRun]:
    runs: List[KerningRun] = []
    current: float | None = None
    count = 0
    for value in values:
        if count and value == current:
            count += 1
            continue
        if count:
            runs.append(KerningRun(current, count))
        current = value
        count = 1
    if count:
        runs.append(KerningRun(current, count))
    return runs


def expand_kerning(runs: Iterable[KerningRun]) -> List[float]:
    values: List[float] = []
    for run in runs:
        if run.count < 0:
            raise ValueError(f"negative run length {run.count}")
        values.extend([run.value] * run.count)
    return values


def kerning_runs(source: KerningSource, codepoints: Sequence[int]) -> List[KerningRun]:
    return compress_kerning(iter_kerning(source, codepoints))
