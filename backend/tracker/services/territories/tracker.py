import threading
import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from tracker import socketio
from tracker.errors import (
    IntegrityViolation,
    PersistenceError,
    SubscriptionLookupError,
    TransientFetchError,
)
from .diff import DiffEngine
from .integrity import check_integrity
from .notifications import NotificationDispatcher
from .store import TerritoryStore
from .subscriptions import SubscriptionResolver, SubscriptionStore

STATUS_OK = 'ok'
STATUS_SKIPPED = 'skipped'
STATUS_FETCH_FAILED = 'fetch_failed'
STATUS_INTEGRITY_REJECTED = 'integrity_rejected'
STATUS_PERSISTENCE_FAILED = 'persistence_failed'
STATUS_SUBSCRIPTION_FAILED = 'subscription_failed'


@dataclass
class CycleResult:
    status: str
    old_id: Optional[int] = None
    new_id: Optional[int] = None
    transitions: int = 0
    notified: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TerritoryTracker:
    """Periodic territory poll: fetch, validate, diff, notify.

    Cycles start every ``interval`` seconds after ``first_delay``. A cycle
    that is triggered while another one is still running is skipped.
    """

    name = 'Territory Tracker'

    def __init__(self, app, wynn_api, store: TerritoryStore, subscriptions: SubscriptionStore,
                 dispatcher: NotificationDispatcher, first_delay: float = 1, interval: float = 30):
        self.app = app
        self.logger = app.logger
        self.wynn_api = wynn_api
        self.store = store
        self.diff_engine = DiffEngine(store)
        self.subscriptions = subscriptions
        self.dispatcher = dispatcher
        self.first_delay = first_delay
        self.interval = interval

        self._cycle_lock = threading.Lock()
        self._stop = threading.Event()
        self._started = False
        self._last_result: Optional[CycleResult] = None

    @property
    def busy(self) -> bool:
        return self._cycle_lock.locked()

    def status(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'first_delay_sec': self.first_delay,
            'interval_sec': self.interval,
            'started': self._started,
            'busy': self.busy,
            'last_result': self._last_result.to_dict() if self._last_result else None,
        }

    def run_cycle(self) -> CycleResult:
        """Run one cycle now. Must be called inside an app context."""
        if not self._cycle_lock.acquire(blocking=False):
            self.logger.info('[tracker-skip] previous cycle still running')
            return CycleResult(STATUS_SKIPPED)
        try:
            result = self._run_cycle()
        finally:
            self._cycle_lock.release()
        self._last_result = result
        return result

    def _run_cycle(self) -> CycleResult:
        try:
            snapshot = self.wynn_api.get_territory_list()
        except TransientFetchError as exc:
            self.logger.warning(f"[tracker-fetch-failed] {exc}")
            return CycleResult(STATUS_FETCH_FAILED, error=str(exc))

        try:
            check_integrity(self.store.latest_acquired(), snapshot)
        except IntegrityViolation as exc:
            self.logger.warning(f"[tracker-integrity] failed to pass timestamp integrity check: {exc}")
            return CycleResult(STATUS_INTEGRITY_REJECTED, error=str(exc))
        except PersistenceError as exc:
            self.logger.error(f"[tracker-db-failed] {exc}")
            return CycleResult(STATUS_PERSISTENCE_FAILED, error=str(exc))

        try:
            log_range = self.diff_engine.commit_range(snapshot)
        except PersistenceError as exc:
            self.logger.error(f"[tracker-db-failed] failed to update territories: {exc}")
            return CycleResult(STATUS_PERSISTENCE_FAILED, error=str(exc))

        result = CycleResult(STATUS_OK, old_id=log_range.old_id, new_id=log_range.new_id)
        if log_range.empty:
            return result

        try:
            records = self.store.find_log_range(log_range.old_id, log_range.new_id)
        except PersistenceError as exc:
            self.logger.error(f"[tracker-db-failed] not sending tracking this time. "
                              f"old id (exclusive): {log_range.old_id}, new id (inclusive): {log_range.new_id}: {exc}")
            result.status, result.error = STATUS_PERSISTENCE_FAILED, str(exc)
            return result
        result.transitions = len(records)

        # Resolve every record before sending anything, so a lookup failure
        # leaves the whole cycle unannounced rather than half of it
        try:
            resolver = SubscriptionResolver.for_cycle(self.subscriptions)
            plan = [(record, resolver.resolve(record)) for record in records]
        except SubscriptionLookupError as exc:
            self.logger.error(f"[tracker-subscriptions-failed] not sending tracking this time. "
                              f"old id (exclusive): {log_range.old_id}, new id (inclusive): {log_range.new_id}: {exc}")
            result.status, result.error = STATUS_SUBSCRIPTION_FAILED, str(exc)
            return result

        for record, channels in plan:
            result.notified += self.dispatcher.dispatch(record, channels)
        self.logger.info(
            f"[tracker-cycle] range=({log_range.old_id}, {log_range.new_id}] "
            f"transitions={result.transitions} notified={result.notified}"
        )
        return result

    def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._stop.clear()
        socketio.start_background_task(self._loop)

    def stop(self) -> None:
        self._stop.set()

    def _loop(self) -> None:
        socketio.sleep(self.first_delay)
        next_start = time.monotonic()
        while not self._stop.is_set():
            with self.app.app_context():
                try:
                    self.run_cycle()
                except Exception:
                    self.logger.exception('[tracker-error] an exception occurred in territory tracker')
            next_start += self.interval
            now = time.monotonic()
            if next_start <= now:
                missed = int((now - next_start) // self.interval) + 1
                self.logger.warning(f"[tracker-overrun] cycle overran its interval, skipping {missed} tick(s)")
                next_start += missed * self.interval
            socketio.sleep(next_start - now)
        self._started = False
