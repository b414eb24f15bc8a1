import random
from typing import Sequence

from esper import World

from match3.components.cascade_state import CascadeState
from match3.components.cell import CellColor
from match3.components.grid import Grid
from match3.components.score_state import GameScoreState
from match3.constants import GRID_COLS, GRID_ROWS, START_TIME
from match3.events.bus import EventBus
from match3.systems.grid_ops import INITIAL_LAYOUT, populate_grid, random_layout


def create_world(
    event_bus: EventBus,
    *,
    layout: Sequence[CellColor] | None = None,
    randomize_layout: bool = False,
    start_time: float = START_TIME,
    rng: random.Random | None = None,
) -> World:
    """Build a world holding one game session: grid, score state and cascade state.

    The grid starts from ``layout`` when given, otherwise from a random
    match-free board if ``randomize_layout`` is set, otherwise from the
    classic opening board.
    """
    world = World()
    setattr(world, "random", rng or random.Random())
    setattr(world, "start_time", start_time)

    world.create_entity(Grid(rows=GRID_ROWS, cols=GRID_COLS))
    world.create_entity(GameScoreState(score=0, time_remaining=start_time))
    world.create_entity(CascadeState())

    populate_grid(world, choose_layout(world, layout=layout, randomize_layout=randomize_layout))
    return world


def choose_layout(
    world: World,
    *,
    layout: Sequence[CellColor] | None = None,
    randomize_layout: bool = False,
) -> Sequence[CellColor]:
    if layout is not None:
        return layout
    if randomize_layout:
        return random_layout(getattr(world, "random", None), GRID_ROWS, GRID_COLS)
    return INITIAL_LAYOUT
