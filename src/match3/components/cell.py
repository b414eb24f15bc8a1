from dataclasses import dataclass
from enum import Enum


class CellColor(Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    YELLOW = "yellow"
    PURPLE = "purple"


PALETTE = tuple(CellColor)


@dataclass(slots=True)
class Cell:
    """Color of one grid tile. Position lives in GridPosition."""
    color: CellColor
