from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from esper import World

from match3.components.cascade_state import CascadePhase
from match3.components.cell import Cell, CellColor
from match3.systems.grid_ops import get_grid
from match3.utils.scoring import level_for_score
from match3.utils.state import get_or_create_cascade_state, get_or_create_score_state

SnapshotCell = Tuple[int, int, Optional[CellColor]]


@dataclass(frozen=True, slots=True)
class GridSnapshot:
    """Read-only view of the session handed to the render collaborator."""

    rows: int
    cols: int
    cells: Tuple[SnapshotCell, ...]
    score: int
    level: int
    time_remaining: float
    phase: CascadePhase

    def color_at(self, y: int, x: int) -> Optional[CellColor]:
        return self.cells[y * self.cols + x][2]

    def rows_of_colors(self) -> Tuple[Tuple[Optional[CellColor], ...], ...]:
        return tuple(
            tuple(self.color_at(y, x) for x in range(self.cols)) for y in range(self.rows)
        )

    @property
    def is_full(self) -> bool:
        return all(color is not None for _, _, color in self.cells)


def build_snapshot(world: World) -> GridSnapshot:
    grid = get_grid(world)
    score_state = get_or_create_score_state(world)
    cascade_state = get_or_create_cascade_state(world)
    cells = []
    for y in range(grid.rows):
        for x in range(grid.cols):
            entity = grid.slots[grid.index(y, x)]
            color = world.component_for_entity(entity, Cell).color if entity is not None else None
            cells.append((y, x, color))
    return GridSnapshot(
        rows=grid.rows,
        cols=grid.cols,
        cells=tuple(cells),
        score=score_state.score,
        level=level_for_score(score_state.score),
        time_remaining=score_state.time_remaining,
        phase=cascade_state.phase,
    )


def format_board(snapshot: GridSnapshot) -> str:
    """Plain-text board, one letter per cell and ``.`` for empty slots."""
    lines = []
    for row in snapshot.rows_of_colors():
        lines.append(" ".join(color.name[0] if color is not None else "." for color in row))
    return "\n".join(lines)
