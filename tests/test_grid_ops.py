import random

import pytest

from match3.components.cell import Cell, CellColor
from match3.components.grid_position import GridPosition
from match3.events.bus import EventBus
from match3.systems.grid_ops import (
    INITIAL_LAYOUT,
    Direction,
    InconsistentGridState,
    all_positions,
    cell_at,
    color_at,
    empty_positions,
    neighbor,
    populate_grid,
    random_layout,
    remove_cell,
    require_cell_at,
)
from match3.systems.match_detector import find_groups
from match3.world import create_world
from tests.helpers import layout_from_rows


def test_world_starts_from_classic_layout():
    world = create_world(EventBus())
    assert color_at(world, 0, 0) == CellColor.PURPLE
    assert color_at(world, 0, 3) == CellColor.GREEN
    assert color_at(world, 7, 7) == CellColor.YELLOW
    assert not empty_positions(world)
    assert not find_groups(world), 'Opening board should not contain matches'


def test_initial_layout_has_64_cells():
    assert len(INITIAL_LAYOUT) == 64


def test_all_positions_row_major():
    world = create_world(EventBus())
    positions = all_positions(world)
    assert len(positions) == 64
    assert positions[0] == (0, 0)
    assert positions[1] == (0, 1)
    assert positions[-1] == (7, 7)


def test_cell_at_reflects_logical_position():
    world = create_world(EventBus(), layout=layout_from_rows())
    for y, x in all_positions(world):
        entity = cell_at(world, y, x)
        assert entity is not None
        pos = world.component_for_entity(entity, GridPosition)
        assert (pos.y, pos.x) == (y, x)


@pytest.mark.parametrize(
    "y,x,direction",
    [
        (0, 0, Direction.LEFT),
        (4, 0, Direction.LEFT),
        (3, 7, Direction.RIGHT),
        (0, 5, Direction.UP),
        (7, 2, Direction.DOWN),
    ],
)
def test_neighbor_at_edge_is_none(y, x, direction):
    assert neighbor(y, x, direction) is None


def test_neighbor_inside_grid():
    assert neighbor(3, 3, Direction.LEFT) == (3, 2)
    assert neighbor(3, 3, Direction.RIGHT) == (3, 4)
    assert neighbor(3, 3, Direction.UP) == (2, 3)
    assert neighbor(3, 3, Direction.DOWN) == (4, 3)
    assert neighbor(0, 7, "down") == (1, 7)
    # No wraparound from the end of one row into the next.
    assert neighbor(0, 7, "RIGHT") is None


def test_remove_cell_leaves_empty_slot():
    world = create_world(EventBus(), layout=layout_from_rows())
    entity = require_cell_at(world, 2, 5)
    freed = remove_cell(world, entity)
    assert freed == (2, 5)
    assert cell_at(world, 2, 5) is None
    assert empty_positions(world) == [(2, 5)]
    assert not world.entity_exists(entity)
    with pytest.raises(InconsistentGridState):
        require_cell_at(world, 2, 5)


def test_populate_grid_rejects_wrong_size_and_full_grid():
    world = create_world(EventBus(), layout=layout_from_rows())
    with pytest.raises(ValueError):
        populate_grid(world, [CellColor.RED] * 10)
    with pytest.raises(InconsistentGridState):
        populate_grid(world, layout_from_rows())


def test_random_layout_has_no_matches():
    for seed in range(20):
        layout = random_layout(random.Random(seed))
        world = create_world(EventBus(), layout=layout)
        assert not find_groups(world), f"Seed {seed} produced a board with matches"
        colors = [world.component_for_entity(cell_at(world, y, x), Cell).color for y, x in all_positions(world)]
        assert colors == layout


def test_randomized_world_uses_world_rng():
    world_a = create_world(EventBus(), randomize_layout=True, rng=random.Random(5))
    world_b = create_world(EventBus(), randomize_layout=True, rng=random.Random(5))
    colors_a = [color_at(world_a, y, x) for y, x in all_positions(world_a)]
    colors_b = [color_at(world_b, y, x) for y, x in all_positions(world_b)]
    assert colors_a == colors_b
