from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from esper import World

from match3.components.cascade_state import CascadePhase
from match3.events.bus import (
    EventBus,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_GAME_RESET,
    EVENT_GRAVITY_APPLIED,
    EVENT_GRID_SNAPSHOT,
    EVENT_MATCH_DESTROYED,
    EVENT_REFILL_COMPLETED,
    EVENT_SCORE_CHANGED,
    EVENT_SWAP_FINALIZE,
    EVENT_TICK,
    EVENT_TIME_BONUS,
)
from match3.rendering.snapshot import GridSnapshot, build_snapshot
from match3.systems.gravity import settle
from match3.systems.grid_ops import Position, empty_positions, remove_cell
from match3.systems.match_detector import Group, destroyed_entities, find_groups
from match3.utils.color_provider import ColorProvider, RandomColorProvider
from match3.utils.scoring import level_for_score, score_for_groups, time_bonus_for_level
from match3.utils.state import get_or_create_cascade_state, get_or_create_score_state, is_expired

logger = logging.getLogger(__name__)

STEP_DESTROYED = "destroyed"
STEP_REFILLED = "refilled"


@dataclass(frozen=True, slots=True)
class DestroyedBatch:
    groups: Tuple[Group, ...]
    positions: Tuple[Position, ...]
    score_delta: int


@dataclass(frozen=True, slots=True)
class CascadeStep:
    """One observable step of a cascade: a destroyed batch or a refill."""

    kind: str
    depth: int
    positions: Tuple[Position, ...]
    snapshot: GridSnapshot
    score_delta: int = 0


class CascadeSystem:
    """Resolves matches after a kept swap until the grid settles.

    Each iteration destroys the union of all detected groups, scores the batch,
    runs gravity and refill, then rescans. The level time bonus is granted
    once, after the first batch of a swap-triggered cascade.

    With ``step_delay`` > 0 the first batch resolves immediately and later
    steps advance on ticks, one per ``step_delay`` seconds.
    """

    def __init__(
        self,
        world: World,
        event_bus: EventBus,
        *,
        color_provider: ColorProvider | None = None,
        step_delay: float = 0.0,
    ) -> None:
        self.world = world
        self.event_bus = event_bus
        rng = getattr(world, "random", None)
        self.color_provider = color_provider or RandomColorProvider(
            rng if isinstance(rng, random.Random) else None
        )
        self.step_delay = max(0.0, float(step_delay))
        self._steps: Optional[Iterator[CascadeStep]] = None
        self._elapsed = 0.0
        self.event_bus.subscribe(EVENT_SWAP_FINALIZE, self.on_swap_finalize)
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_swap_finalize(self, sender, **kwargs) -> None:
        if self.step_delay > 0:
            self._steps = self.iter_cascade(time_bonus=True)
            self._elapsed = 0.0
            self.advance()
        else:
            self.resolve_cascade(time_bonus=True)

    def on_tick(self, sender, **kwargs) -> None:
        if self._steps is None:
            return
        if is_expired(self.world):
            self._elapsed = 0.0
            self.advance()
            return
        self._elapsed += kwargs.get("dt", 0.0)
        if self._elapsed < self.step_delay:
            return
        self._elapsed = 0.0
        self.advance()

    def on_game_reset(self, sender, **kwargs) -> None:
        self._steps = None
        self._elapsed = 0.0

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------

    @property
    def in_progress(self) -> bool:
        return self._steps is not None

    def advance(self) -> Optional[CascadeStep]:
        """Run the next paced step; None once the cascade has finished."""
        if self._steps is None:
            return None
        step = next(self._steps, None)
        if step is None:
            self._steps = None
        return step

    def try_destroy(self, depth: int = 1) -> Optional[DestroyedBatch]:
        """Destroy every matched cell and score the batch; None if nothing matched."""
        if is_expired(self.world):
            return None
        groups = find_groups(self.world)
        if not groups:
            return None
        score_state = get_or_create_score_state(self.world)
        delta = score_for_groups(groups)
        positions = tuple(remove_cell(self.world, entity) for entity in destroyed_entities(groups))
        score_state.score += delta
        get_or_create_cascade_state(self.world).phase = CascadePhase.RESOLVING
        self.event_bus.emit(
            EVENT_SCORE_CHANGED,
            score=score_state.score,
            delta=delta,
            level=level_for_score(score_state.score),
        )
        self.event_bus.emit(
            EVENT_MATCH_DESTROYED,
            destroyed=True,
            positions=sorted(positions),
            depth=depth,
            groups=len(groups),
        )
        logger.debug("depth %d: destroyed %d cells in %d groups (+%d)", depth, len(positions), len(groups), delta)
        return DestroyedBatch(groups=tuple(groups), positions=positions, score_delta=delta)

    def iter_cascade(self, *, time_bonus: bool = False) -> Iterator[CascadeStep]:
        """Lazily run destroy -> gravity -> rescan, yielding one step per action.

        Each call starts a fresh sequence from the current grid. The sequence
        ends when a rescan finds no group, or early when the clock has run out.
        """
        state = get_or_create_cascade_state(self.world)
        bonus_pending = time_bonus
        depth = 0
        started = False
        while True:
            if is_expired(self.world):
                if started:
                    self._finish(depth, cancelled=True)
                return
            if empty_positions(self.world):
                state.phase = CascadePhase.RESOLVING
                started = True
                result = settle(self.world, self.color_provider)
                self.event_bus.emit(
                    EVENT_GRAVITY_APPLIED,
                    moves=[(move.source, move.target) for move in result.moves],
                    passes=result.passes,
                )
                self.event_bus.emit(EVENT_REFILL_COMPLETED, new_cells=list(result.spawned))
                yield self._emit_step(STEP_REFILLED, depth, tuple(result.spawned))
                continue
            batch = self.try_destroy(depth + 1)
            if batch is None:
                break
            depth += 1
            state.phase = CascadePhase.RESOLVING
            state.depth = depth
            started = True
            if bonus_pending:
                bonus_pending = False
                self._apply_time_bonus()
            yield self._emit_step(STEP_DESTROYED, depth, batch.positions, batch.score_delta)
        if started:
            self._finish(depth, cancelled=False)

    def resolve_cascade(self, *, time_bonus: bool = False) -> List[CascadeStep]:
        """Run the whole cascade synchronously and return its steps."""
        return list(self.iter_cascade(time_bonus=time_bonus))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _apply_time_bonus(self) -> None:
        score_state = get_or_create_score_state(self.world)
        level = level_for_score(score_state.score)
        amount = time_bonus_for_level(level)
        score_state.time_remaining += amount
        self.event_bus.emit(
            EVENT_TIME_BONUS,
            amount=amount,
            level=level,
            time_remaining=score_state.time_remaining,
        )

    def _emit_step(self, kind: str, depth: int, positions: Tuple[Position, ...], score_delta: int = 0) -> CascadeStep:
        snapshot = build_snapshot(self.world)
        step = CascadeStep(
            kind=kind,
            depth=depth,
            positions=tuple(sorted(positions)),
            snapshot=snapshot,
            score_delta=score_delta,
        )
        self.event_bus.emit(EVENT_CASCADE_STEP, step=step)
        self.event_bus.emit(EVENT_GRID_SNAPSHOT, snapshot=snapshot)
        return step

    def _finish(self, depth: int, *, cancelled: bool) -> None:
        state = get_or_create_cascade_state(self.world)
        if is_expired(self.world):
            state.phase = CascadePhase.EXPIRED
        else:
            state.phase = CascadePhase.SETTLED
        state.depth = depth
        if cancelled:
            logger.debug("cascade cancelled at depth %d: clock expired", depth)
        self.event_bus.emit(EVENT_CASCADE_COMPLETE, depth=depth, cancelled=cancelled)
        self.event_bus.emit(EVENT_GRID_SNAPSHOT, snapshot=build_snapshot(self.world))
