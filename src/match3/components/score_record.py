from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ScoreRecord:
    """Final result of a session, handed to the persistence collaborator."""
    timestamp: datetime
    final_score: int
