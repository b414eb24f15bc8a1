import logging
from typing import Sequence

from esper import World

from match3.components.cascade_state import CascadePhase
from match3.components.cell import CellColor
from match3.constants import START_TIME
from match3.events.bus import EventBus, EVENT_GAME_RESET, EVENT_GRID_SNAPSHOT
from match3.rendering.snapshot import build_snapshot
from match3.systems.grid_ops import clear_grid, populate_grid
from match3.utils.state import get_or_create_cascade_state, get_or_create_score_state
from match3.world import choose_layout

logger = logging.getLogger(__name__)


def reset_session(
    world: World,
    event_bus: EventBus,
    *,
    layout: Sequence[CellColor] | None = None,
    start_time: float | None = None,
) -> None:
    """Start a new game in an existing world.

    The grid is rebuilt from ``layout`` or, when omitted, a random match-free
    board. Score, clock and cascade phase return to their opening values and
    EVENT_GAME_RESET tells systems to drop pending work.
    """
    clear_grid(world)
    populate_grid(world, choose_layout(world, layout=layout, randomize_layout=True))

    score_state = get_or_create_score_state(world)
    score_state.score = 0
    if start_time is None:
        start_time = getattr(world, "start_time", START_TIME)
    score_state.time_remaining = start_time

    cascade_state = get_or_create_cascade_state(world)
    cascade_state.phase = CascadePhase.SETTLED
    cascade_state.depth = 0
    cascade_state.swaps = 0

    logger.info("session reset with %.1fs on the clock", start_time)
    event_bus.emit(EVENT_GAME_RESET)
    event_bus.emit(EVENT_GRID_SNAPSHOT, snapshot=build_snapshot(world))
