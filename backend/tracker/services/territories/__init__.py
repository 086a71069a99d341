"""Territory tracking pipeline: integrity check, snapshot diff, subscriber
resolution and notification fan-out, driven by the periodic tracker.

HTTP routes, socket handlers and CLI commands import from here, keeping
transport concerns separated from the tracking logic.
"""

from tracker import socketio
from .notifications import ChannelRenderer, NotificationDispatcher, SocketIONotificationSink
from .store import TerritoryStore
from .subscriptions import SubscriptionStore
from .tracker import TerritoryTracker


def build_territory_tracker(app, wynn_api, sink=None) -> TerritoryTracker:
    cfg = app.config
    dispatcher = NotificationDispatcher(
        sink if sink is not None else SocketIONotificationSink(socketio),
        ChannelRenderer(cfg.get('DEFAULT_TIMEZONE', 'UTC'), cfg.get('DEFAULT_DATE_FORMAT', '%Y/%m/%d %H:%M:%S')),
        logger=app.logger,
    )
    return TerritoryTracker(
        app,
        wynn_api,
        TerritoryStore(),
        SubscriptionStore(),
        dispatcher,
        first_delay=float(cfg.get('TERRITORY_TRACKER_FIRST_DELAY_SEC', 1)),
        interval=float(cfg.get('TERRITORY_TRACKER_INTERVAL_SEC', 30)),
    )
