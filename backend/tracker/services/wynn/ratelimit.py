import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple


@dataclass(frozen=True)
class Proceed:
    """Request is within quota."""


@dataclass(frozen=True)
class ProceedDegraded:
    """Request arrived too soon but is let through anyway."""
    burst: int
    backoff: float


@dataclass(frozen=True)
class Rejected:
    """Request arrived too soon and the caller said it can retry later."""
    backoff: float

    @property
    def message(self) -> str:
        return (f"Requesting the Wynncraft API too quickly! "
                f"Please wait `{self.backoff:.3f}` seconds before trying again.")


class _ResourceState:
    __slots__ = ('lock', 'last_request', 'burst')

    def __init__(self):
        self.lock = threading.Lock()
        self.last_request: Optional[float] = None
        self.burst = 0


class RateLimiter:
    """Per-resource request spacing with a small forced-burst allowance.

    A resource with a quota of N requests per W seconds wants one request
    every W/N seconds. A request that arrives sooner is still allowed when
    the caller cannot wait, or while the burst counter is at most
    ``max_burst``; every such forced pass grows the required spacing by
    one more W/N. Only a caller that can wait and is past the burst
    allowance is turned away, with the remaining wait as backoff.
    """

    def __init__(self, quotas: Dict[str, Tuple[int, float]], max_burst: int = 5,
                 clock: Callable[[], float] = time.time, logger=None):
        self.max_burst = max_burst
        self.clock = clock
        self.logger = logger
        self._min_spacing = {resource: window / requests for resource, (requests, window) in quotas.items()}
        self._states: Dict[str, _ResourceState] = {}
        self._states_lock = threading.Lock()

    def min_spacing(self, resource: str) -> float:
        return self._min_spacing[resource]

    def _state(self, resource: str) -> _ResourceState:
        state = self._states.get(resource)
        if state is None:
            with self._states_lock:
                state = self._states.setdefault(resource, _ResourceState())
        return state

    def check(self, resource: str, can_wait: bool):
        """Decide whether a request to ``resource`` may go out now.

        Returns Proceed, ProceedDegraded or Rejected.
        """
        if resource not in self._min_spacing:
            raise KeyError(f"no rate limit configured for resource {resource!r}")
        spacing = self._min_spacing[resource]
        state = self._state(resource)
        with state.lock:
            now = self.clock()
            elapsed = math.inf if state.last_request is None else abs(now - state.last_request)
            required = spacing * state.burst
            if elapsed < required:
                backoff = required - elapsed
                if can_wait and state.burst > self.max_burst:
                    return Rejected(backoff=backoff)
                state.burst += 1
                if self.logger is not None:
                    self.logger.debug(
                        f"[wynn-ratelimit] resource={resource} forcing quick request "
                        f"({state.burst} requests in series, has to wait {backoff * 1000:.0f} more ms)"
                    )
                return ProceedDegraded(burst=state.burst, backoff=backoff)
            state.last_request = now
            state.burst = 1
            return Proceed()

    def snapshot(self) -> dict:
        out = {}
        for resource, spacing in self._min_spacing.items():
            state = self._states.get(resource)
            out[resource] = {
                'min_spacing_sec': spacing,
                'last_request': state.last_request if state else None,
                'burst': state.burst if state else 0,
            }
        return out
