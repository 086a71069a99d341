from datetime import datetime, timedelta

import requests

from tracker.services.wynn import TerritoryEntry

T0 = datetime(2020, 4, 1, 12, 0, 0)


def entry(name, guild, acquired=T0, attacker=None):
    return TerritoryEntry(name=name, guild_name=guild, acquired=acquired, attacker=attacker,
                          start_x=0, start_z=0, end_x=100, end_z=100)


def minutes(n):
    return timedelta(minutes=n)


class FakeWynnApi:
    """Hands out queued snapshots; an exception in the queue is raised instead."""

    def __init__(self, *snapshots):
        self.snapshots = list(snapshots)

    def push(self, snapshot):
        self.snapshots.append(snapshot)

    def get_territory_list(self):
        item = self.snapshots.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSink:
    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    def send(self, channel, text):
        if channel in self.failing:
            raise ConnectionError(f'channel {channel} unreachable')
        self.sent.append((channel, text))

    def channels(self):
        return [c for c, _ in self.sent]


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        if self.invalid_json:
            raise ValueError('not json')
        return self.payload


class StubSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item
