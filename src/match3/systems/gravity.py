from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from esper import World

from match3.components.grid_position import GridPosition
from match3.systems.grid_ops import (
    InconsistentGridState,
    Position,
    empty_positions,
    get_grid,
    move_cell,
    spawn_cell,
)
from match3.utils.color_provider import ColorProvider

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GravityMove:
    source: Position
    target: Position


@dataclass(slots=True)
class GravityResult:
    moves: List[GravityMove] = field(default_factory=list)
    passes: int = 0
    spawned: List[Position] = field(default_factory=list)


def _gravity_pass(world: World) -> List[GravityMove]:
    """Move every non-floor cell with an empty slot below it down by one.

    Candidates are chosen from the slot state before any cell moves, so all
    falling cells advance together.
    """
    grid = get_grid(world)
    falling: List[Tuple[int, Position]] = []
    for y in range(grid.rows - 1):
        for x in range(grid.cols):
            entity = grid.slots[grid.index(y, x)]
            if entity is None:
                continue
            if grid.slots[grid.index(y + 1, x)] is None:
                falling.append((entity, (y, x)))
    moves: List[GravityMove] = []
    for entity, (y, x) in falling:
        move_cell(world, entity, y + 1, x)
        moves.append(GravityMove(source=(y, x), target=(y + 1, x)))
    return moves


def apply_gravity(world: World) -> Tuple[List[GravityMove], int]:
    """Collapse every column until no cell can fall. Returns (moves, passes).

    A column of ``rows`` slots settles in at most ``rows - 1`` moving passes;
    exceeding ``rows`` means the arena is corrupt.
    """
    grid = get_grid(world)
    moves: List[GravityMove] = []
    passes = 0
    while True:
        step = _gravity_pass(world)
        if not step:
            return moves, passes
        moves.extend(step)
        passes += 1
        if passes > grid.rows:
            raise InconsistentGridState(f"Gravity did not settle within {grid.rows} passes")


def refill(world: World, color_provider: ColorProvider) -> List[Position]:
    """Spawn a fresh cell in every empty slot, top-left to bottom-right."""
    spawned: List[Position] = []
    for y, x in empty_positions(world):
        spawn_cell(world, y, x, color_provider.next_color())
        spawned.append((y, x))
    return spawned


def settle(world: World, color_provider: ColorProvider) -> GravityResult:
    """Apply gravity to a fixed point, then refill so all slots are occupied."""
    moves, passes = apply_gravity(world)
    spawned = refill(world, color_provider)
    grid = get_grid(world)
    if any(slot is None for slot in grid.slots):
        raise InconsistentGridState("Grid still has empty slots after refill")
    logger.debug("gravity settled: %d moves over %d passes, %d spawned", len(moves), passes, len(spawned))
    return GravityResult(moves=moves, passes=passes, spawned=spawned)


def has_floating_cells(world: World) -> bool:
    """True if any non-floor cell sits above an empty slot."""
    grid = get_grid(world)
    for _, position in world.get_component(GridPosition):
        if position.y >= grid.rows - 1:
            continue
        if grid.slots[grid.index(position.y + 1, position.x)] is None:
            return True
    return False
