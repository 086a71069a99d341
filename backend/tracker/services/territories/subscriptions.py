from typing import Iterable, List, NamedTuple, Optional, Set

from sqlalchemy.exc import SQLAlchemyError

from tracker import db
from tracker.errors import SubscriptionLookupError
from tracker.models import TrackChannel, TrackType


class ChannelKey(NamedTuple):
    guild_id: int
    channel_id: int


def channel_key(track: TrackChannel) -> ChannelKey:
    return ChannelKey(int(track.guild_id), int(track.channel_id))


class SubscriptionStore:
    """Reads and writes track_channel rows."""

    @staticmethod
    def _validate(track_type: str, guild_name: Optional[str]) -> None:
        if track_type not in TrackType.ALL:
            raise ValueError(f"unknown track type {track_type!r}")
        if track_type == TrackType.TERRITORY_SPECIFIC and not guild_name:
            raise ValueError('guild_name is required for TERRITORY_SPECIFIC')
        if track_type == TrackType.TERRITORY_ALL and guild_name:
            raise ValueError('guild_name is not allowed for TERRITORY_ALL')

    def _find(self, track_type, guild_id, channel_id, guild_name):
        return TrackChannel.query.filter_by(
            type=track_type, guild_id=guild_id, channel_id=channel_id, guild_name=guild_name
        ).first()

    def create(self, track_type: str, guild_id: int, channel_id: int, guild_name: Optional[str] = None) -> bool:
        """False if an identical subscription already exists."""
        self._validate(track_type, guild_name)
        if self._find(track_type, guild_id, channel_id, guild_name) is not None:
            return False
        db.session.add(TrackChannel(type=track_type, guild_id=guild_id, channel_id=channel_id, guild_name=guild_name))
        db.session.commit()
        return True

    def exists(self, track_type: str, guild_id: int, channel_id: int, guild_name: Optional[str] = None) -> bool:
        return self._find(track_type, guild_id, channel_id, guild_name) is not None

    def delete(self, track_type: str, guild_id: int, channel_id: int, guild_name: Optional[str] = None) -> bool:
        track = self._find(track_type, guild_id, channel_id, guild_name)
        if track is None:
            return False
        db.session.delete(track)
        db.session.commit()
        return True

    def count(self) -> int:
        return TrackChannel.query.count()

    def find_all_of(self, guild_id: int, channel_id: int) -> List[TrackChannel]:
        return TrackChannel.query.filter_by(guild_id=guild_id, channel_id=channel_id).all()

    def find_all_global(self, track_type: str = TrackType.TERRITORY_ALL) -> List[TrackChannel]:
        try:
            return TrackChannel.query.filter_by(type=track_type).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise SubscriptionLookupError(f"loading {track_type} tracks failed: {exc}") from exc

    def find_all_targeted(self, guild_name: str, track_type: str = TrackType.TERRITORY_SPECIFIC) -> List[TrackChannel]:
        try:
            return TrackChannel.query.filter_by(type=track_type, guild_name=guild_name).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise SubscriptionLookupError(f"loading {track_type} tracks of {guild_name} failed: {exc}") from exc


class SubscriptionResolver:
    """Channels interested in a transition, for one tracking cycle.

    The global list is loaded once when the resolver is built; targeted
    lists are looked up per transition for its old and new owner.
    """

    def __init__(self, store: SubscriptionStore, global_tracks: Iterable[TrackChannel]):
        self.store = store
        self.global_channels = {channel_key(t) for t in global_tracks}

    @classmethod
    def for_cycle(cls, store: SubscriptionStore) -> 'SubscriptionResolver':
        return cls(store, store.find_all_global())

    def resolve(self, record) -> Set[ChannelKey]:
        channels = set(self.global_channels)
        for guild_name in {record.old_guild_name, record.new_guild_name}:
            channels.update(channel_key(t) for t in self.store.find_all_targeted(guild_name))
        return channels
