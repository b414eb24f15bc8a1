import logging
from typing import Optional

from esper import World

from match3.components.cascade_state import CascadePhase
from match3.components.grid_position import GridPosition
from match3.components.pending_swap import PendingSwap, Position
from match3.events.bus import (
    EventBus,
    EVENT_GAME_RESET,
    EVENT_SWAP_DIRECTION_REQUEST,
    EVENT_SWAP_FINALIZE,
    EVENT_SWAP_REJECTED,
    EVENT_SWAP_REQUEST,
    EVENT_SWAP_ROLLED_BACK,
)
from match3.systems.grid_ops import (
    Direction,
    InconsistentGridState,
    get_grid,
    in_bounds,
    is_adjacent,
    neighbor,
    require_cell_at,
    swap_cells,
)
from match3.systems.match_detector import find_groups
from match3.utils.state import get_or_create_cascade_state, is_expired

logger = logging.getLogger(__name__)

REJECT_SELF = "self"
REJECT_OUT_OF_BOUNDS = "out_of_bounds"
REJECT_NOT_ADJACENT = "not_adjacent"
REJECT_EXPIRED = "expired"
REJECT_BUSY = "busy"


class SwapSystem:
    """Validates, applies and rolls back player swaps.

    A swap is kept only when it produces at least one group; otherwise it is
    undone before the call returns. Kept swaps emit EVENT_SWAP_FINALIZE, which
    starts the cascade.
    """
    def __init__(self, world: World, event_bus: EventBus):
        self.world = world
        self.event_bus = event_bus
        self.pending: Optional[PendingSwap] = None
        self.event_bus.subscribe(EVENT_SWAP_REQUEST, self.on_swap_request)
        self.event_bus.subscribe(EVENT_SWAP_DIRECTION_REQUEST, self.on_direction_request)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)

    def on_swap_request(self, sender, **kwargs):
        src = kwargs.get('src')
        dst = kwargs.get('dst')
        if src is None or dst is None:
            return
        self.propose_swap(tuple(src), tuple(dst))

    def on_direction_request(self, sender, **kwargs):
        y = kwargs.get('y')
        x = kwargs.get('x')
        direction = kwargs.get('direction')
        if y is None or x is None or direction is None:
            return
        self.propose_swap_direction(y, x, direction)

    def on_game_reset(self, sender, **kwargs):
        self.pending = None

    def validate(self, src: Position, dst: Position) -> Optional[str]:
        """Return a rejection reason, or None when the swap may be applied."""
        if is_expired(self.world):
            return REJECT_EXPIRED
        if get_or_create_cascade_state(self.world).phase is not CascadePhase.SETTLED:
            return REJECT_BUSY
        if src == dst:
            return REJECT_SELF
        grid = get_grid(self.world)
        if not (in_bounds(*src, grid.rows, grid.cols) and in_bounds(*dst, grid.rows, grid.cols)):
            return REJECT_OUT_OF_BOUNDS
        if not is_adjacent(src, dst):
            return REJECT_NOT_ADJACENT
        return None

    def propose_swap(self, src: Position, dst: Position) -> bool:
        """Try a swap; True when it produced a match and was kept."""
        reason = self.validate(src, dst)
        if reason is not None:
            self._reject(src, dst, reason)
            return False
        self.apply(src, dst)
        if not find_groups(self.world):
            self.rollback()
            logger.debug("swap %s <-> %s made no match, rolled back", src, dst)
            self.event_bus.emit(EVENT_SWAP_ROLLED_BACK, src=src, dst=dst)
            return False
        self.pending = None
        get_or_create_cascade_state(self.world).swaps += 1
        self.event_bus.emit(EVENT_SWAP_FINALIZE, src=src, dst=dst)
        return True

    def propose_swap_direction(self, y: int, x: int, direction: Direction | str) -> bool:
        """Swap the cell at (y, x) with its neighbor in ``direction``."""
        grid = get_grid(self.world)
        target = neighbor(y, x, direction, grid.rows, grid.cols) if in_bounds(y, x, grid.rows, grid.cols) else None
        if target is None:
            self._reject((y, x), None, REJECT_OUT_OF_BOUNDS)
            return False
        return self.propose_swap((y, x), target)

    def apply(self, src: Position, dst: Position) -> PendingSwap:
        first = require_cell_at(self.world, *src)
        second = require_cell_at(self.world, *dst)
        swap_cells(self.world, first, second)
        self.pending = PendingSwap(first_entity=first, second_entity=second, src=src, dst=dst)
        return self.pending

    def rollback(self) -> bool:
        """Restore the positions from before the last applied swap."""
        pending = self.pending
        if pending is None:
            return False
        swap_cells(self.world, pending.first_entity, pending.second_entity)
        self.pending = None
        first_pos = self.world.component_for_entity(pending.first_entity, GridPosition)
        if first_pos.as_tuple() != pending.src:
            raise InconsistentGridState(
                f"Rollback left entity {pending.first_entity} at {first_pos.as_tuple()}, expected {pending.src}"
            )
        return True

    def _reject(self, src, dst, reason: str) -> None:
        logger.debug("swap %s -> %s rejected: %s", src, dst, reason)
        self.event_bus.emit(EVENT_SWAP_REJECTED, src=src, dst=dst, reason=reason)
