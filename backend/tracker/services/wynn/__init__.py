"""Wynncraft API access: rate limiting, response caching and payload parsing."""

from tracker import socketio
from .api import PLAYER_RESOURCE, WynnApi
from .cache import ResponseCache
from .ratelimit import Proceed, ProceedDegraded, RateLimiter, Rejected
from .structs import TerritoryEntry


def build_wynn_api(app) -> WynnApi:
    cfg = app.config
    limiter = RateLimiter(
        {PLAYER_RESOURCE: (int(cfg.get('PLAYER_RATE_LIMIT_REQUESTS', 750)),
                           float(cfg.get('PLAYER_RATE_LIMIT_WINDOW_SEC', 1800)))},
        max_burst=int(cfg.get('MAX_REQUEST_BURST', 5)),
        logger=app.logger,
    )
    app.logger.debug(f"[wynn-ratelimit] min. wait sec: {limiter.min_spacing(PLAYER_RESOURCE):.3f} ({PLAYER_RESOURCE})")
    return WynnApi(
        territory_url=cfg['WYNN_TERRITORY_URL'],
        player_url=cfg['WYNN_PLAYER_URL'],
        rate_limiter=limiter,
        player_cache=ResponseCache(retention=float(cfg.get('CACHE_RETENTION_SEC', 600))),
        wynn_timezone=cfg.get('WYNN_TIMEZONE', 'UTC'),
        timeout=float(cfg.get('HTTP_TIMEOUT_SEC', 10)),
        logger=app.logger,
    )


def start_cache_sweeper(app, cache: ResponseCache) -> None:
    interval = float(app.config.get('CACHE_SWEEP_INTERVAL_SEC', 600))

    def _worker():
        while True:
            socketio.sleep(interval)
            evicted = cache.sweep()
            if evicted:
                app.logger.debug(f"[cache-sweep] evicted={evicted} remaining={len(cache)}")

    socketio.start_background_task(_worker)


__all__ = [
    'PLAYER_RESOURCE', 'Proceed', 'ProceedDegraded', 'RateLimiter', 'Rejected',
    'ResponseCache', 'TerritoryEntry', 'WynnApi', 'build_wynn_api', 'start_cache_sweeper',
]
