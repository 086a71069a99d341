import threading
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from tracker import db
from tracker.errors import PersistenceError
from tracker.models import Territory, TerritoryLog
from tracker.services.wynn import TerritoryEntry
from .diff import LogRange, compute_transitions


class TerritoryStore:
    """Territory snapshot table plus the append-only territory log.

    Writers of either table go through ``commit_and_range`` (or
    ``replace_snapshot``), which hold the store lock for the whole
    read-modify-read sequence.
    """

    # One lock for every store in the process, the tables are shared
    _lock = threading.Lock()

    def latest_acquired(self) -> Optional[datetime]:
        try:
            return db.session.query(db.func.max(Territory.acquired)).scalar()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"reading latest acquired time failed: {exc}") from exc

    def current_max_log_id(self) -> int:
        try:
            return db.session.query(db.func.max(TerritoryLog.id)).scalar() or 0
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"reading last territory log id failed: {exc}") from exc

    def _replace(self, entries: Sequence[TerritoryEntry]) -> int:
        by_name = {}
        for entry in entries:
            if entry.name in by_name:
                raise ValueError(f"duplicate territory {entry.name!r} in snapshot")
            by_name[entry.name] = entry

        current = {t.name: t for t in Territory.query.all()}
        previous = {name: (t.guild_name, t.acquired) for name, t in current.items()}
        transitions = compute_transitions(previous, entries)

        for entry in entries:
            row = current.pop(entry.name, None)
            if row is None:
                db.session.add(Territory.from_entry(entry))
            else:
                row.update_from(entry)
        for gone in current.values():
            db.session.delete(gone)

        for t in transitions:
            db.session.add(TerritoryLog(
                territory_name=t.territory_name,
                old_guild_name=t.old_guild_name,
                old_guild_terr_amt=t.old_guild_terr_amt,
                new_guild_name=t.new_guild_name,
                new_guild_terr_amt=t.new_guild_terr_amt,
                acquired=t.new_acquired,
                time_diff=t.time_diff_ms,
            ))
        db.session.flush()
        return len(transitions)

    def replace_snapshot(self, entries: Sequence[TerritoryEntry]) -> bool:
        self.commit_and_range(entries)
        return True

    def commit_and_range(self, entries: Sequence[TerritoryEntry]) -> LogRange:
        """Atomically replace the snapshot and report the log ids it produced."""
        with self._lock:
            try:
                old_id = db.session.query(db.func.max(TerritoryLog.id)).scalar() or 0
                self._replace(entries)
                new_id = db.session.query(db.func.max(TerritoryLog.id)).scalar() or 0
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise PersistenceError(f"updating territories failed: {exc}") from exc
            except ValueError as exc:
                db.session.rollback()
                raise PersistenceError(str(exc)) from exc
        return LogRange(old_id, new_id)

    def find_log_range(self, low_exclusive: int, high_inclusive: int) -> List[TerritoryLog]:
        try:
            return (TerritoryLog.query
                    .filter(TerritoryLog.id > low_exclusive, TerritoryLog.id <= high_inclusive)
                    .order_by(TerritoryLog.id.asc())
                    .all())
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise PersistenceError(f"reading territory logs ({low_exclusive}, {high_inclusive}] failed: {exc}") from exc

    def find_logs_after(self, after_id: int, limit: int = 50) -> List[TerritoryLog]:
        return (TerritoryLog.query
                .filter(TerritoryLog.id > after_id)
                .order_by(TerritoryLog.id.asc())
                .limit(limit)
                .all())

    def all_territories(self) -> List[Territory]:
        return Territory.query.order_by(Territory.name.asc()).all()

    def count_guild_territories(self, guild_name: str) -> int:
        return Territory.query.filter_by(guild_name=guild_name).count()

    def guild_territory_numbers(self) -> List[Tuple[str, int]]:
        """Guilds ordered by number of territories held, most first."""
        amount = db.func.count(Territory.name)
        rows = (db.session.query(Territory.guild_name, amount)
                .group_by(Territory.guild_name)
                .order_by(amount.desc(), Territory.guild_name.asc())
                .all())
        return [(name, int(count)) for name, count in rows]

    def guild_ranking(self, guild_name: str) -> int:
        """1-based rank by territory count, ties share a rank; 0 if the guild holds none."""
        numbers = self.guild_territory_numbers()
        held = dict(numbers).get(guild_name, 0)
        if held == 0:
            return 0
        return 1 + sum(1 for _, count in numbers if count > held)
