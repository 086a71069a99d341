from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from tracker.errors import TransientFetchError

ACQUIRED_FORMAT = '%Y-%m-%d %H:%M:%S'


@dataclass(frozen=True)
class TerritoryEntry:
    name: str
    guild_name: str
    acquired: datetime  # naive UTC, same convention as the territory table
    attacker: Optional[str]
    start_x: int
    start_z: int
    end_x: int
    end_z: int


def parse_acquired(value: str, source_tz: tzinfo) -> datetime:
    local = datetime.strptime(value, ACQUIRED_FORMAT).replace(tzinfo=source_tz)
    return local.astimezone(timezone.utc).replace(tzinfo=None)


def parse_territory_list(body: Dict[str, Any], source_tz: tzinfo) -> List[TerritoryEntry]:
    """Convert the upstream territory list payload into snapshot entries.

    The payload is keyed by territory name, so names are unique.
    """
    try:
        territories = body['territories']
        entries = []
        for key, raw in territories.items():
            location = raw['location']
            guild = raw['guild']
            if not guild:
                raise TransientFetchError(f"territory {key!r} has no owning guild")
            entries.append(TerritoryEntry(
                name=raw.get('territory') or key,
                guild_name=guild,
                acquired=parse_acquired(raw['acquired'], source_tz),
                attacker=raw.get('attacker'),
                start_x=int(location['startX']),
                start_z=int(location['startZ']),
                end_x=int(location['endX']),
                end_z=int(location['endZ']),
            ))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TransientFetchError(f"malformed territory list: {exc!r}") from exc
    return entries
