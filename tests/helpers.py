from __future__ import annotations

from typing import Iterable, Sequence

from esper import World

from match3.components.cell import Cell, CellColor
from match3.constants import START_TIME
from match3.events.bus import EventBus
from match3.systems.cascade_system import CascadeSystem
from match3.systems.grid_ops import get_grid
from match3.systems.swap_system import SwapSystem
from match3.utils.color_provider import SequenceColorProvider
from match3.world import create_world

LETTERS = {
    'R': CellColor.RED,
    'G': CellColor.GREEN,
    'B': CellColor.BLUE,
    'Y': CellColor.YELLOW,
    'P': CellColor.PURPLE,
}

# Color index (x + 2y) % 5: neighbours along a row or column never share a color.
BASE_ROWS = [
    "RGBYPRGB",
    "BYPRGBYP",
    "PRGBYPRG",
    "GBYPRGBY",
    "YPRGBYPR",
    "RGBYPRGB",
    "BYPRGBYP",
    "PRGBYPRG",
]

# Swapping (6,2) and (7,2) drops the yellow into row 7 for a Y-Y-Y run; refill
# colors GBR then leave the board settled.
SWAP_ROWS = [
    "RGBYPRGB",
    "BYPRGBYP",
    "PRGBYPRG",
    "GBYPRGBY",
    "YPRGBYPR",
    "RGBYPRGB",
    "BYYRGBYP",
    "YYGBYPRG",
]

# Row 7 Y-Y-Y clears first; columns 0-2 drop one row, lining up G-G-G at
# (7,1)..(7,3) for a second batch. Refill colors PRG then BYG end the cascade.
CASCADE_ROWS = [
    "RGBYPRGB",
    "BYPRGBYP",
    "PRGBYPRG",
    "GBYPRGBY",
    "YPRGBYPR",
    "RGBYPRGB",
    "BGGRGBYP",
    "YYYGYPRG",
]
CASCADE_COLORS = "PRGBYG"


def layout_from_rows(rows: Sequence[str] = BASE_ROWS) -> list[CellColor]:
    """Turn eight strings of R/G/B/Y/P letters into a row-major layout."""
    layout: list[CellColor] = []
    for row in rows:
        layout.extend(LETTERS[ch] for ch in row.replace(" ", ""))
    return layout


def set_color(world: World, y: int, x: int, color: CellColor | str) -> None:
    if isinstance(color, str):
        color = LETTERS[color]
    grid = get_grid(world)
    entity = grid.slots[grid.index(y, x)]
    assert entity is not None, f"No cell at {(y, x)}"
    world.component_for_entity(entity, Cell).color = color


def grid_signature(world: World) -> tuple:
    """Every slot as (y, x, entity, color) so tests can compare grids exactly."""
    grid = get_grid(world)
    signature = []
    for y in range(grid.rows):
        for x in range(grid.cols):
            entity = grid.slots[grid.index(y, x)]
            color = world.component_for_entity(entity, Cell).color if entity is not None else None
            signature.append((y, x, entity, color))
    return tuple(signature)


def build_session(
    rows: Sequence[str] = BASE_ROWS,
    *,
    colors: Iterable[CellColor | str] = ('P',),
    step_delay: float = 0.0,
    start_time: float = START_TIME,
):
    """World, bus, swap and cascade systems with a deterministic refill sequence."""
    bus = EventBus()
    world = create_world(bus, layout=layout_from_rows(rows), start_time=start_time)
    provider = SequenceColorProvider(LETTERS[c] if isinstance(c, str) else c for c in colors)
    swaps = SwapSystem(world, bus)
    cascade = CascadeSystem(world, bus, color_provider=provider, step_delay=step_delay)
    return bus, world, swaps, cascade
