from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from esper import World

from match3.components.cell import Cell, CellColor
from match3.constants import MIN_RUN_LENGTH
from match3.systems.grid_ops import Position, get_grid, require_cell_at

AXIS_ROW = "row"
AXIS_COLUMN = "column"


@dataclass(frozen=True, slots=True)
class Group:
    """A run of same-colored cells along one row or column."""

    axis: str
    color: CellColor
    entities: Tuple[int, ...]
    positions: Tuple[Position, ...]

    def __len__(self) -> int:
        return len(self.entities)


def _scan_line(world: World, axis: str, line: List[Position]) -> List[Group]:
    groups: List[Group] = []
    run: List[Tuple[int, Position]] = []
    run_color: CellColor | None = None

    def flush() -> None:
        if len(run) >= MIN_RUN_LENGTH and run_color is not None:
            groups.append(
                Group(
                    axis=axis,
                    color=run_color,
                    entities=tuple(entity for entity, _ in run),
                    positions=tuple(pos for _, pos in run),
                )
            )

    for y, x in line:
        entity = require_cell_at(world, y, x)
        color = world.component_for_entity(entity, Cell).color
        if not run or color == run_color:
            run.append((entity, (y, x)))
            run_color = color
        else:
            flush()
            run = [(entity, (y, x))]
            run_color = color
    flush()
    return groups


def find_groups(world: World) -> List[Group]:
    """Detect every horizontal then vertical run of MIN_RUN_LENGTH or more.

    Rows are scanned top to bottom, each left to right, followed by columns
    left to right, each top to bottom. A cell can appear in both a row group
    and a column group; callers that destroy cells union the memberships.
    Raises InconsistentGridState if any slot is empty.
    """
    grid = get_grid(world)
    groups: List[Group] = []
    for y in range(grid.rows):
        groups.extend(_scan_line(world, AXIS_ROW, [(y, x) for x in range(grid.cols)]))
    for x in range(grid.cols):
        groups.extend(_scan_line(world, AXIS_COLUMN, [(y, x) for y in range(grid.rows)]))
    return groups


def destroyed_entities(groups: List[Group]) -> List[int]:
    """Union of group members, each entity once, in first-seen order."""
    seen: dict[int, None] = {}
    for group in groups:
        for entity in group.entities:
            seen.setdefault(entity, None)
    return list(seen)
