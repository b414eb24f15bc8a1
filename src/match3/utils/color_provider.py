from __future__ import annotations

import random
from itertools import cycle
from typing import Iterable, Protocol, Sequence

from match3.components.cell import CellColor, PALETTE


class ColorProvider(Protocol):
    """Source of colors for newly spawned cells."""

    def next_color(self) -> CellColor:
        ...


class RandomColorProvider:
    """Uniform draw from the palette using an injectable ``random.Random``."""

    def __init__(self, rng: random.Random | None = None, palette: Sequence[CellColor] = PALETTE):
        if not palette:
            raise ValueError("palette must not be empty")
        self.rng = rng or random.Random()
        self.palette = tuple(palette)

    def next_color(self) -> CellColor:
        return self.rng.choice(self.palette)


class SequenceColorProvider:
    """Replays a fixed color sequence, looping when it runs out."""

    def __init__(self, colors: Iterable[CellColor]):
        colors = list(colors)
        if not colors:
            raise ValueError("colors must not be empty")
        self._colors = cycle(colors)

    def next_color(self) -> CellColor:
        return next(self._colors)
