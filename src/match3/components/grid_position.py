from dataclasses import dataclass


@dataclass(slots=True)
class GridPosition:
    x: int
    y: int

    def as_tuple(self) -> tuple[int, int]:
        """Return the position as (y, x), the order used for grid lookups."""
        return (self.y, self.x)
