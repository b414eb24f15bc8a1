import logging
from datetime import datetime
from typing import Callable, Optional

from esper import World

from match3.components.cascade_state import CascadePhase
from match3.components.score_record import ScoreRecord
from match3.events.bus import EventBus, EVENT_GAME_RESET, EVENT_SESSION_ENDED, EVENT_TICK
from match3.utils.state import get_or_create_cascade_state, get_or_create_score_state

logger = logging.getLogger(__name__)


def format_clock(seconds: float) -> str:
    """Render a countdown as ``m:ss``."""
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    return f"{minutes}:{int(seconds % 60):02d}"


class TimerSystem:
    """Counts the session clock down and ends the session at zero.

    The clock only runs once the player has scored. Reaching zero moves the
    cascade state to EXPIRED and emits a single ScoreRecord on
    EVENT_SESSION_ENDED; later ticks do nothing until EVENT_GAME_RESET.
    """
    def __init__(self, world: World, event_bus: EventBus, *, clock: Optional[Callable[[], datetime]] = None):
        self.world = world
        self.event_bus = event_bus
        self._clock = clock or datetime.now
        self.ended = False
        self.last_record: Optional[ScoreRecord] = None
        self.event_bus.subscribe(EVENT_TICK, self.on_tick)
        self.event_bus.subscribe(EVENT_GAME_RESET, self.on_game_reset)

    def on_tick(self, sender, **kwargs):
        if self.ended:
            return
        dt = kwargs.get('dt', 0.0)
        score_state = get_or_create_score_state(self.world)
        if score_state.time_remaining > 0:
            if score_state.score == 0:
                return
            score_state.time_remaining -= dt
        if score_state.time_remaining <= 0:
            self.expire()

    def on_game_reset(self, sender, **kwargs):
        self.ended = False
        self.last_record = None

    def expire(self) -> Optional[ScoreRecord]:
        """Drive the clock to zero and end the session; returns None if already ended."""
        if self.ended:
            return None
        self.ended = True
        score_state = get_or_create_score_state(self.world)
        score_state.time_remaining = 0.0
        get_or_create_cascade_state(self.world).phase = CascadePhase.EXPIRED
        record = ScoreRecord(timestamp=self._clock(), final_score=score_state.score)
        self.last_record = record
        logger.info("session ended with score %d", record.final_score)
        self.event_bus.emit(EVENT_SESSION_ENDED, record=record)
        return record
