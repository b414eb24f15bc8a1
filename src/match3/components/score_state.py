from dataclasses import dataclass


@dataclass(slots=True)
class GameScoreState:
    """Singleton component with the session score and clock."""
    score: int = 0
    time_remaining: float = 0.0
