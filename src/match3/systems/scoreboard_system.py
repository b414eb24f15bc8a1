from typing import List

from match3.components.score_record import ScoreRecord
from match3.constants import SCOREBOARD_SIZE
from match3.events.bus import EventBus, EVENT_SESSION_ENDED


class ScoreboardSystem:
    """Keeps final-score records from ended sessions and ranks them."""

    def __init__(self, event_bus: EventBus):
        self.event_bus = event_bus
        self.records: List[ScoreRecord] = []
        self.event_bus.subscribe(EVENT_SESSION_ENDED, self.on_session_ended)

    def on_session_ended(self, sender, **kwargs):
        record = kwargs.get('record')
        if record is None:
            return
        self.records.append(record)

    def top(self, limit: int = SCOREBOARD_SIZE) -> List[ScoreRecord]:
        """Highest scores first; ties keep the order the sessions ended in."""
        ranked = sorted(self.records, key=lambda record: record.final_score, reverse=True)
        return ranked[:limit]

    def best(self) -> ScoreRecord | None:
        ranked = self.top(1)
        return ranked[0] if ranked else None
