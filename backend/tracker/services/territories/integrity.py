from datetime import datetime
from typing import Optional, Sequence

from tracker.errors import IntegrityViolation
from tracker.services.wynn import TerritoryEntry


def latest_acquired(snapshot: Sequence[TerritoryEntry]) -> Optional[datetime]:
    return max((e.acquired for e in snapshot), default=None)


def accept(previous_latest: Optional[datetime], snapshot: Sequence[TerritoryEntry]) -> bool:
    """True unless the snapshot is older than the last accepted one.

    Load balanced upstream replicas can lag behind each other, so a later
    poll may return an earlier state.
    """
    if previous_latest is None:
        return True
    retrieved = latest_acquired(snapshot)
    if retrieved is None:
        return False
    return previous_latest <= retrieved


def check_integrity(previous_latest: Optional[datetime], snapshot: Sequence[TerritoryEntry]) -> None:
    if not accept(previous_latest, snapshot):
        raise IntegrityViolation(
            f"snapshot latest acquired {latest_acquired(snapshot)} is older than stored {previous_latest}"
        )
