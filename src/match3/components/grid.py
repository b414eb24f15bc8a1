from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(slots=True)
class Grid:
    """Board arena: one slot per (y, x) holding the occupying cell entity.

    Slots are indexed row-major (``y * cols + x``). ``None`` marks a slot left
    empty between destruction and gravity refill. Only grid_ops mutates it.
    """
    rows: int
    cols: int
    slots: List[Optional[int]] = field(default_factory=list)

    def __post_init__(self):
        if not self.slots:
            self.slots = [None] * (self.rows * self.cols)

    def index(self, y: int, x: int) -> int:
        return y * self.cols + x
