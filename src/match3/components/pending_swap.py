from dataclasses import dataclass
from typing import Tuple

Position = Tuple[int, int]


@dataclass(slots=True)
class PendingSwap:
    """A swap applied to the grid that may still be rolled back."""
    first_entity: int
    second_entity: int
    src: Position
    dst: Position
