from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Mapping, Tuple

from tracker.services.wynn import TerritoryEntry


@dataclass(frozen=True)
class Transition:
    territory_name: str
    old_guild_name: str
    old_guild_terr_amt: int
    new_guild_name: str
    new_guild_terr_amt: int
    old_acquired: datetime
    new_acquired: datetime

    @property
    def time_diff_ms(self) -> int:
        return int((self.new_acquired - self.old_acquired).total_seconds() * 1000)


@dataclass(frozen=True)
class LogRange:
    """Log ids written by one commit: old_id exclusive, new_id inclusive."""
    old_id: int
    new_id: int

    @property
    def empty(self) -> bool:
        return self.new_id <= self.old_id


def compute_transitions(previous: Mapping[str, Tuple[str, datetime]],
                        snapshot: Iterable[TerritoryEntry]) -> List[Transition]:
    """Ownership changes between the stored owners and a new snapshot.

    ``previous`` maps territory name to (guild name, acquired). Only
    territories present on both sides can transition; territory counts are
    taken from the new snapshot.
    """
    entries = list(snapshot)
    counts = Counter(e.guild_name for e in entries)
    transitions = []
    for entry in entries:
        before = previous.get(entry.name)
        if before is None:
            continue
        old_guild, old_acquired = before
        if old_guild == entry.guild_name:
            continue
        transitions.append(Transition(
            territory_name=entry.name,
            old_guild_name=old_guild,
            old_guild_terr_amt=counts.get(old_guild, 0),
            new_guild_name=entry.guild_name,
            new_guild_terr_amt=counts[entry.guild_name],
            old_acquired=old_acquired,
            new_acquired=entry.acquired,
        ))
    return transitions


class DiffEngine:
    def __init__(self, store):
        self.store = store

    def commit_range(self, snapshot: List[TerritoryEntry]) -> LogRange:
        """Replace the stored snapshot; returns the range of log ids it produced."""
        return self.store.commit_and_range(snapshot)

    def commit(self, snapshot: List[TerritoryEntry]) -> list:
        log_range = self.commit_range(snapshot)
        if log_range.empty:
            return []
        return self.store.find_log_range(log_range.old_id, log_range.new_id)
