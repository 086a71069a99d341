import time
from urllib.parse import quote
from typing import Any, List, Optional, Union
from zoneinfo import ZoneInfo

import requests

from tracker.errors import TransientFetchError
from .cache import ResponseCache
from .ratelimit import RateLimiter, Rejected
from .structs import TerritoryEntry, parse_territory_list

PLAYER_RESOURCE = 'player'


class WynnApi:
    """Client for the Wynncraft public API.

    The territory list is unthrottled; per-identity resources (player
    statistics) go through the rate limiter and are cached per identity.
    """

    def __init__(self, territory_url: str, player_url: str, rate_limiter: RateLimiter,
                 player_cache: ResponseCache, wynn_timezone: str = 'UTC', timeout: float = 10,
                 session: Optional[requests.Session] = None, logger=None):
        self.territory_url = territory_url
        self.player_url = player_url
        self.rate_limiter = rate_limiter
        self.player_cache = player_cache
        self.wynn_timezone = ZoneInfo(wynn_timezone)
        self.timeout = timeout
        self.s = session or requests.Session()
        self.logger = logger

    def _debug(self, message: str) -> None:
        if self.logger is not None:
            self.logger.debug(message)

    def _get_json(self, url: str, what: str) -> Any:
        try:
            start = time.perf_counter()
            r = self.s.get(url, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as exc:
            raise TransientFetchError(f"requesting {what} failed: {exc}") from exc
        took_ms = (time.perf_counter() - start) * 1000
        self._debug(f"[wynn-request] requested {what}, took {took_ms:.1f} ms")
        if data is None:
            raise TransientFetchError(f"requesting {what} returned an empty body")
        return data

    def get_territory_list(self) -> List[TerritoryEntry]:
        body = self._get_json(self.territory_url, 'territory list')
        return parse_territory_list(body, self.wynn_timezone)

    def fetch(self, resource: str, identity: str, url: str, cache: ResponseCache,
              can_wait: bool, force_reload: bool = False) -> Union[Any, Rejected]:
        """Throttled, cached GET of one identity of a rate limited resource.

        Returns the payload, or the Rejected decision when the caller can
        wait and has to back off first.
        """
        if not force_reload:
            cached = cache.get(identity)
            if cached is not None:
                return cached

        decision = self.rate_limiter.check(resource, can_wait)
        if isinstance(decision, Rejected):
            self._debug(f"[wynn-ratelimit] resource={resource} rejected {identity}, backoff {decision.backoff:.3f}s")
            return decision

        payload = self._get_json(url, f"{resource} {identity}")
        cache.put(identity, payload)
        return payload

    def get_player_statistics(self, player_name: str, can_wait: bool,
                              force_reload: bool = False) -> Union[Any, Rejected]:
        url = self.player_url.format(name=quote(player_name, safe=''))
        return self.fetch(PLAYER_RESOURCE, player_name, url, self.player_cache,
                          can_wait=can_wait, force_reload=force_reload)
