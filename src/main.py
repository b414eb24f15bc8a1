"""Headless driver for the match-three engine.

Wires the ECS world, event bus and systems, then plays random adjacent swaps
until the clock runs out or the swap budget is spent. Prints the board after
every settle and the final scoreboard.

Run with: ``python src/main.py --seed 7``
"""
import argparse
import logging
import random

from match3.constants import GRID_COLS, GRID_ROWS
from match3.events.bus import (
    EventBus,
    EVENT_GRID_SNAPSHOT,
    EVENT_SESSION_ENDED,
    EVENT_TICK,
)
from match3.rendering.snapshot import format_board
from match3.systems.cascade_system import CascadeSystem
from match3.systems.grid_ops import Direction
from match3.systems.scoreboard_system import ScoreboardSystem
from match3.systems.swap_system import SwapSystem
from match3.systems.timer_system import TimerSystem, format_clock
from match3.utils.color_provider import RandomColorProvider
from match3.world import create_world

TICK_SECONDS = 0.1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Autoplay a match-three session')
    parser.add_argument('--seed', type=int, default=None, help='Seed for board and spawn colors')
    parser.add_argument('--swaps', type=int, default=200, help='Maximum swap attempts')
    parser.add_argument('--random-board', action='store_true', help='Start from a random match-free board')
    parser.add_argument('--quiet', action='store_true', help='Only print the final result')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )
    rng = random.Random(args.seed)
    bus = EventBus()
    world = create_world(bus, randomize_layout=args.random_board, rng=rng)
    swaps = SwapSystem(world, bus)
    CascadeSystem(world, bus, color_provider=RandomColorProvider(rng))
    timer = TimerSystem(world, bus)
    scoreboard = ScoreboardSystem(bus)

    if not args.quiet:
        def show(sender, **payload):
            snapshot = payload['snapshot']
            if not snapshot.is_full:
                return
            print(format_board(snapshot))
            print(f"score={snapshot.score} level={snapshot.level} time={format_clock(snapshot.time_remaining)}\n")
        bus.subscribe(EVENT_GRID_SNAPSHOT, show)
    bus.subscribe(EVENT_SESSION_ENDED, lambda sender, **payload: print(f"Game over: {payload['record'].final_score} points"))

    directions = list(Direction)
    for _ in range(args.swaps):
        if timer.ended:
            break
        y, x = rng.randrange(GRID_ROWS), rng.randrange(GRID_COLS)
        swaps.propose_swap_direction(y, x, rng.choice(directions))
        bus.emit(EVENT_TICK, dt=TICK_SECONDS)
    if not timer.ended:
        timer.expire()

    for rank, record in enumerate(scoreboard.top(), start=1):
        print(f"{rank}. {record.timestamp:%Y-%m-%d %H:%M} {record.final_score}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
