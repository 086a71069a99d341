from datetime import timezone
from typing import Iterable, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.exc import SQLAlchemyError

from tracker import db
from tracker.models import ChannelFormat
from .subscriptions import ChannelKey

TERRITORY_UPDATE_EVENT = 'territory_update'
WS_NAMESPACE = '/ws'

_UNITS = (('d', 86400), ('h', 3600), ('m', 60), ('s', 1))


def channel_room(guild_id: int, channel_id: int) -> str:
    return f"channel:{guild_id}:{channel_id}"


def format_readable_time(seconds: int) -> str:
    """4000 -> '1 h 6 m 40 s'."""
    sign = '-' if seconds < 0 else ''
    seconds = abs(int(seconds))
    parts = []
    for unit, size in _UNITS:
        amount, seconds = divmod(seconds, size)
        if amount:
            parts.append(f"{amount} {unit}")
    return sign + (' '.join(parts) if parts else '0 s')


def format_base(record) -> str:
    held_for = format_readable_time(int(record.time_diff / 1000))
    return (
        f"{record.territory_name}: *{record.old_guild_name}* ({record.old_guild_terr_amt}) → "
        f"**{record.new_guild_name}** ({record.new_guild_terr_amt})\n"
        f"    Territory held for {held_for}\n"
    )


class ChannelRenderer:
    """Renders instants in each destination's own time zone and date format.

    Lookup order: channel row, then the guild-wide row, then the defaults.
    """

    def __init__(self, default_timezone: str = 'UTC', default_date_format: str = '%Y/%m/%d %H:%M:%S'):
        self.default_timezone = default_timezone
        self.default_date_format = default_date_format

    def preferences(self, channel: ChannelKey) -> Tuple[str, str]:
        rows = ChannelFormat.query.filter(
            ChannelFormat.guild_id == channel.guild_id,
            (ChannelFormat.channel_id == channel.channel_id) | (ChannelFormat.channel_id.is_(None)),
        ).all()
        tz_name, date_format = None, None
        # channel-specific rows first
        for row in sorted(rows, key=lambda r: r.channel_id is None):
            tz_name = tz_name or row.timezone
            date_format = date_format or row.date_format
        return tz_name or self.default_timezone, date_format or self.default_date_format

    def _zone(self, tz_name: str) -> ZoneInfo:
        try:
            return ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo(self.default_timezone)

    def render_acquired(self, record, channel: ChannelKey) -> str:
        tz_name, date_format = self.preferences(channel)
        local = record.acquired.replace(tzinfo=timezone.utc).astimezone(self._zone(tz_name))
        return f"    Acquired: {local.strftime(date_format)} ({local.strftime('%Z')})"


class SocketIONotificationSink:
    """Delivers messages to Socket.IO rooms, one room per destination channel."""

    def __init__(self, socketio):
        self.socketio = socketio

    def send(self, channel: ChannelKey, text: str) -> None:
        self.socketio.emit(
            TERRITORY_UPDATE_EVENT,
            {'guild_id': channel.guild_id, 'channel_id': channel.channel_id, 'text': text},
            to=channel_room(channel.guild_id, channel.channel_id),
            namespace=WS_NAMESPACE,
        )


class NotificationDispatcher:
    def __init__(self, sink, renderer: ChannelRenderer, logger=None):
        self.sink = sink
        self.renderer = renderer
        self.logger = logger

    def dispatch(self, record, channels: Iterable[ChannelKey]) -> int:
        """Send one message per channel; returns how many sends succeeded.

        A failing channel is logged and skipped, it never blocks the others.
        """
        base = format_base(record)
        sent = 0
        for channel in sorted(channels):
            try:
                self.sink.send(channel, base + self.renderer.render_acquired(record, channel))
                sent += 1
            except SQLAlchemyError as exc:
                # an aborted transaction would fail every later channel
                db.session.rollback()
                self._warn(record, channel, exc)
            except Exception as exc:
                self._warn(record, channel, exc)
        return sent

    def _warn(self, record, channel: ChannelKey, exc: Exception) -> None:
        if self.logger is not None:
            self.logger.warning(
                f"[notify-failed] log={record.id} guild={channel.guild_id} "
                f"channel={channel.channel_id}: {exc!r}"
            )
