from dataclasses import dataclass
from enum import Enum, auto


class CascadePhase(Enum):
    SETTLED = auto()
    RESOLVING = auto()
    # Terminal until the session is reset.
    EXPIRED = auto()


@dataclass(slots=True)
class CascadeState:
    """Tracks where the engine is in the swap -> cascade cycle."""

    phase: CascadePhase = CascadePhase.SETTLED
    depth: int = 0
    swaps: int = 0
