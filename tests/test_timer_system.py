from datetime import datetime

from match3.components.cascade_state import CascadePhase
from match3.events.bus import (
    EVENT_CASCADE_COMPLETE,
    EVENT_SESSION_ENDED,
    EVENT_SWAP_FINALIZE,
    EVENT_SWAP_REJECTED,
    EVENT_TICK,
)
from match3.systems.grid_ops import empty_positions
from match3.systems.timer_system import TimerSystem, format_clock
from match3.utils.state import get_or_create_cascade_state, get_or_create_score_state
from tests.helpers import CASCADE_COLORS, CASCADE_ROWS, SWAP_ROWS, build_session, grid_signature

FIXED_TIME = datetime(2024, 5, 1, 12, 30)


def capture(bus, event):
    payloads = []
    bus.subscribe(event, lambda sender, **payload: payloads.append(payload))
    return payloads


def drive(bus, ticks, dt=0.1):
    for _ in range(ticks):
        bus.emit(EVENT_TICK, dt=dt)


def test_clock_waits_for_first_score():
    bus, world, _, _ = build_session()
    TimerSystem(world, bus)
    drive(bus, 100)
    assert get_or_create_score_state(world).time_remaining == 5.0


def test_clock_counts_down_after_scoring():
    bus, world, swaps, _ = build_session(SWAP_ROWS, colors='GBR')
    timer = TimerSystem(world, bus)
    assert swaps.propose_swap((6, 2), (7, 2))
    assert get_or_create_score_state(world).time_remaining == 10.0
    drive(bus, 4, dt=1.0)
    assert get_or_create_score_state(world).time_remaining == 6.0
    assert not timer.ended


def test_expiry_emits_one_record_and_freezes_engine():
    bus, world, swaps, cascade = build_session(SWAP_ROWS, colors='GBR')
    timer = TimerSystem(world, bus, clock=lambda: FIXED_TIME)
    ended = capture(bus, EVENT_SESSION_ENDED)
    rejected = capture(bus, EVENT_SWAP_REJECTED)
    assert swaps.propose_swap((6, 2), (7, 2))

    drive(bus, 12, dt=1.0)
    score_state = get_or_create_score_state(world)
    assert score_state.time_remaining == 0.0
    assert timer.ended
    assert get_or_create_cascade_state(world).phase is CascadePhase.EXPIRED
    assert len(ended) == 1
    record = ended[0]['record']
    assert record.final_score == 8
    assert record.timestamp == FIXED_TIME

    before = grid_signature(world)
    assert swaps.propose_swap((0, 0), (0, 1)) is False
    assert rejected[-1]['reason'] == 'expired'
    assert cascade.try_destroy() is None
    assert cascade.resolve_cascade(time_bonus=True) == []
    assert grid_signature(world) == before
    assert score_state.score == 8

    drive(bus, 10, dt=1.0)
    assert len(ended) == 1
    assert timer.expire() is None


def test_expiry_cancels_paced_cascade():
    bus, world, _, cascade = build_session(CASCADE_ROWS, colors=CASCADE_COLORS, step_delay=0.5)
    timer = TimerSystem(world, bus)
    complete = capture(bus, EVENT_CASCADE_COMPLETE)
    bus.emit(EVENT_SWAP_FINALIZE, src=(7, 2), dst=(6, 2))
    assert cascade.in_progress
    assert len(empty_positions(world)) == 3
    timer.expire()
    drive(bus, 1, dt=0.5)
    assert complete == [{'depth': 1, 'cancelled': True}]
    assert not cascade.in_progress
    # The grid is left exactly where the cascade stopped.
    assert len(empty_positions(world)) == 3
    assert get_or_create_cascade_state(world).phase is CascadePhase.EXPIRED


def test_format_clock():
    assert format_clock(0) == "0:00"
    assert format_clock(5) == "0:05"
    assert format_clock(65.7) == "1:05"
    assert format_clock(-3) == "0:00"
