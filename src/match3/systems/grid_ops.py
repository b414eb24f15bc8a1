from __future__ import annotations

import random
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from esper import World

from match3.components.cell import Cell, CellColor, PALETTE
from match3.components.grid import Grid
from match3.components.grid_position import GridPosition
from match3.constants import GRID_COLS, GRID_ROWS, LAYOUT_MAX_ATTEMPTS, MIN_RUN_LENGTH

Position = Tuple[int, int]


class InconsistentGridState(RuntimeError):
    """An expected cell is missing or the arena disagrees with cell positions."""


class Direction(Enum):
    LEFT = (0, -1)
    RIGHT = (0, 1)
    UP = (-1, 0)
    DOWN = (1, 0)

    @property
    def dy(self) -> int:
        return self.value[0]

    @property
    def dx(self) -> int:
        return self.value[1]


_R, _G, _B, _Y, _P = (
    CellColor.RED,
    CellColor.GREEN,
    CellColor.BLUE,
    CellColor.YELLOW,
    CellColor.PURPLE,
)

# Opening board of the classic game, row-major from the top-left corner.
INITIAL_LAYOUT: Tuple[CellColor, ...] = (
    _P, _R, _B, _G, _G, _Y, _G, _G,
    _R, _B, _G, _Y, _R, _B, _R, _P,
    _Y, _P, _B, _R, _G, _G, _P, _P,
    _B, _P, _B, _G, _R, _B, _G, _R,
    _P, _R, _G, _B, _G, _R, _R, _P,
    _B, _G, _P, _P, _G, _Y, _G, _Y,
    _R, _G, _Y, _P, _R, _G, _Y, _B,
    _G, _Y, _B, _B, _R, _B, _Y, _Y,
)


def get_grid(world: World) -> Grid:
    for _, grid in world.get_component(Grid):
        return grid
    raise RuntimeError("Grid component not found")


def in_bounds(y: int, x: int, rows: int = GRID_ROWS, cols: int = GRID_COLS) -> bool:
    return 0 <= y < rows and 0 <= x < cols


def neighbor(
    y: int, x: int, direction: Direction | str, rows: int = GRID_ROWS, cols: int = GRID_COLS
) -> Optional[Position]:
    """Return the coordinate next to (y, x) in ``direction`` or None at the edge.

    There is no wraparound: LEFT from x=0, RIGHT from the last column, UP from
    y=0 and DOWN from the last row have no neighbor.
    """
    if isinstance(direction, str):
        direction = Direction[direction.upper()]
    ny, nx = y + direction.dy, x + direction.dx
    if not in_bounds(ny, nx, rows, cols):
        return None
    return (ny, nx)


def is_adjacent(a: Position, b: Position) -> bool:
    ay, ax = a
    by, bx = b
    return (abs(ay - by) == 1 and ax == bx) or (abs(ax - bx) == 1 and ay == by)


def cell_at(world: World, y: int, x: int) -> Optional[int]:
    grid = get_grid(world)
    return grid.slots[grid.index(y, x)]


def require_cell_at(world: World, y: int, x: int) -> int:
    entity = cell_at(world, y, x)
    if entity is None:
        raise InconsistentGridState(f"Cell {y} {x} not found")
    return entity


def color_at(world: World, y: int, x: int) -> Optional[CellColor]:
    entity = cell_at(world, y, x)
    if entity is None:
        return None
    return world.component_for_entity(entity, Cell).color


def all_positions(world: World) -> List[Position]:
    grid = get_grid(world)
    return [(y, x) for y in range(grid.rows) for x in range(grid.cols)]


def empty_positions(world: World) -> List[Position]:
    grid = get_grid(world)
    return [
        (y, x)
        for y in range(grid.rows)
        for x in range(grid.cols)
        if grid.slots[grid.index(y, x)] is None
    ]


def place_cell(world: World, entity: int, y: int, x: int) -> None:
    """Put ``entity`` into the empty slot (y, x) and update its GridPosition."""
    grid = get_grid(world)
    idx = grid.index(y, x)
    occupant = grid.slots[idx]
    if occupant is not None and occupant != entity:
        raise InconsistentGridState(f"Slot {y} {x} already holds entity {occupant}")
    grid.slots[idx] = entity
    position = world.component_for_entity(entity, GridPosition)
    position.y, position.x = y, x


def spawn_cell(world: World, y: int, x: int, color: CellColor) -> int:
    entity = world.create_entity(Cell(color=color), GridPosition(x=x, y=y))
    place_cell(world, entity, y, x)
    return entity


def move_cell(world: World, entity: int, y: int, x: int) -> None:
    grid = get_grid(world)
    position = world.component_for_entity(entity, GridPosition)
    old_idx = grid.index(position.y, position.x)
    if grid.slots[old_idx] == entity:
        grid.slots[old_idx] = None
    place_cell(world, entity, y, x)


def swap_cells(world: World, first: int, second: int) -> None:
    """Exchange the coordinates of two cells; colors stay with the entities."""
    grid = get_grid(world)
    pos_a = world.component_for_entity(first, GridPosition)
    pos_b = world.component_for_entity(second, GridPosition)
    idx_a = grid.index(pos_a.y, pos_a.x)
    idx_b = grid.index(pos_b.y, pos_b.x)
    grid.slots[idx_a], grid.slots[idx_b] = second, first
    pos_a.x, pos_b.x = pos_b.x, pos_a.x
    pos_a.y, pos_b.y = pos_b.y, pos_a.y


def remove_cell(world: World, entity: int) -> Position:
    """Vacate the entity's slot and delete the entity. Returns the freed position."""
    grid = get_grid(world)
    position = world.component_for_entity(entity, GridPosition)
    idx = grid.index(position.y, position.x)
    if grid.slots[idx] != entity:
        raise InconsistentGridState(
            f"Entity {entity} claims {position.y} {position.x} but the slot holds {grid.slots[idx]}"
        )
    grid.slots[idx] = None
    freed = (position.y, position.x)
    world.delete_entity(entity, immediate=True)
    return freed


def clear_grid(world: World) -> None:
    grid = get_grid(world)
    for entity in grid.slots:
        if entity is not None:
            world.delete_entity(entity, immediate=True)
    grid.slots = [None] * (grid.rows * grid.cols)


def populate_grid(world: World, layout: Sequence[CellColor]) -> List[int]:
    """Fill an empty grid from a row-major color layout."""
    grid = get_grid(world)
    if len(layout) != grid.rows * grid.cols:
        raise ValueError(f"Layout has {len(layout)} colors, grid needs {grid.rows * grid.cols}")
    if any(slot is not None for slot in grid.slots):
        raise InconsistentGridState("populate_grid requires an empty grid")
    entities: List[int] = []
    for idx, color in enumerate(layout):
        y, x = divmod(idx, grid.cols)
        entities.append(spawn_cell(world, y, x, CellColor(color)))
    return entities


def random_layout(
    rng: random.Random | None = None,
    rows: int = GRID_ROWS,
    cols: int = GRID_COLS,
    *,
    palette: Sequence[CellColor] = PALETTE,
    max_attempts: int = LAYOUT_MAX_ATTEMPTS,
) -> List[CellColor]:
    """Build a row-major layout with no run of MIN_RUN_LENGTH in any row or column."""
    rng = rng or random.Random()
    span = MIN_RUN_LENGTH - 1
    for _ in range(max_attempts):
        layout: List[CellColor] = []
        valid = True
        for y in range(rows):
            for x in range(cols):
                available = list(palette)
                if x >= span:
                    left = {layout[y * cols + x - step] for step in range(1, span + 1)}
                    if len(left) == 1:
                        available = [c for c in available if c not in left]
                if y >= span:
                    up = {layout[(y - step) * cols + x] for step in range(1, span + 1)}
                    if len(up) == 1:
                        available = [c for c in available if c not in up]
                if not available:
                    valid = False
                    break
                layout.append(rng.choice(available))
            if not valid:
                break
        if valid:
            return layout
    raise RuntimeError("Unable to build a layout without matches")
