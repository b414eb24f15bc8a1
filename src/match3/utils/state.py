from esper import World

from match3.components.cascade_state import CascadePhase, CascadeState
from match3.components.score_state import GameScoreState


def get_or_create_score_state(world: World) -> GameScoreState:
    """Return the shared GameScoreState component, creating it if absent."""
    existing = list(world.get_component(GameScoreState))
    if existing:
        return existing[0][1]
    state = GameScoreState()
    world.create_entity(state)
    return state


def get_or_create_cascade_state(world: World) -> CascadeState:
    """Return the shared CascadeState component, creating it if absent."""
    existing = list(world.get_component(CascadeState))
    if existing:
        return existing[0][1]
    state = CascadeState()
    world.create_entity(state)
    return state


def is_expired(world: World) -> bool:
    """True once the session clock has run out; the engine is inert until reset."""
    score_state = get_or_create_score_state(world)
    cascade_state = get_or_create_cascade_state(world)
    return cascade_state.phase is CascadePhase.EXPIRED or score_state.time_remaining <= 0
