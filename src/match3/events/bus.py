from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Strong references so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# SYSTEM & TIMING
# ============================================================================
EVENT_TICK = "tick"                                # payload: dt=float (seconds)


# ============================================================================
# SWAPS
# ============================================================================
EVENT_SWAP_REQUEST = "swap_request"                      # payload: src=(y,x), dst=(y,x)
EVENT_SWAP_DIRECTION_REQUEST = "swap_direction_request"  # payload: y, x, direction=Direction|str
EVENT_SWAP_REJECTED = "swap_rejected"                    # payload: src, dst, reason=str
EVENT_SWAP_ROLLED_BACK = "swap_rolled_back"              # payload: src, dst
EVENT_SWAP_FINALIZE = "swap_finalize"                    # payload: src, dst


# ============================================================================
# MATCHES & CASCADE
# ============================================================================
EVENT_MATCH_DESTROYED = "match_destroyed"      # payload: destroyed=True, positions=[(y,x),...], depth=int, groups=int
EVENT_SCORE_CHANGED = "score_changed"          # payload: score=int, delta=int, level=int
EVENT_TIME_BONUS = "time_bonus"                # payload: amount=float, level=int, time_remaining=float
EVENT_GRAVITY_APPLIED = "gravity_applied"      # payload: moves=[((y,x),(y,x)),...], passes=int
EVENT_REFILL_COMPLETED = "refill_completed"    # payload: new_cells=[(y,x),...]
EVENT_CASCADE_STEP = "cascade_step"            # payload: step=CascadeStep
EVENT_CASCADE_COMPLETE = "cascade_complete"    # payload: depth=int, cancelled=bool
EVENT_GRID_SNAPSHOT = "grid_snapshot"          # payload: snapshot=GridSnapshot


# ============================================================================
# SESSION
# ============================================================================
EVENT_SESSION_ENDED = "session_ended"          # payload: record=ScoreRecord
EVENT_GAME_RESET = "game_reset"                # payload: None
