from datetime import datetime

import pytest
import requests

from helpers import FakeClock, StubResponse, StubSession
from tracker.errors import TransientFetchError
from tracker.services.wynn import RateLimiter, Rejected, ResponseCache, WynnApi


def territory_payload(**overrides):
    detlas = {
        'territory': 'Detlas',
        'guild': 'Alpha',
        'acquired': '2020-04-01 12:00:00',
        'attacker': None,
        'location': {'startX': -10, 'startZ': 20, 'endX': 30, 'endZ': 40},
    }
    detlas.update(overrides)
    return {'territories': {'Detlas': detlas}}


def make_api(session, clock=None, wynn_timezone='UTC', max_burst=5):
    clock = clock or FakeClock()
    return WynnApi(
        territory_url='http://wynn.test/territories',
        player_url='http://wynn.test/player/{name}/stats',
        rate_limiter=RateLimiter({'player': (750, 1800)}, max_burst=max_burst, clock=clock),
        player_cache=ResponseCache(retention=600, clock=clock),
        wynn_timezone=wynn_timezone,
        session=session,
    )


def test_cache_expires_after_retention():
    clock = FakeClock()
    cache = ResponseCache(retention=600, clock=clock)
    cache.put('Salted', {'rank': 'player'})
    clock.advance(600)
    assert cache.get('Salted') == {'rank': 'player'}
    clock.advance(1)
    assert cache.get('Salted') is None
    assert len(cache) == 0


def test_cache_sweep_drops_only_expired():
    clock = FakeClock()
    cache = ResponseCache(retention=600, clock=clock)
    cache.put('old', 1)
    clock.advance(500)
    cache.put('new', 2)
    clock.advance(200)
    assert cache.sweep() == 1
    assert cache.get('new') == 2
    assert len(cache) == 1


def test_territory_list_parsed_and_normalized_to_utc():
    api = make_api(StubSession(StubResponse(territory_payload())), wynn_timezone='America/New_York')
    [detlas] = api.get_territory_list()
    assert detlas.name == 'Detlas'
    assert detlas.guild_name == 'Alpha'
    assert detlas.attacker is None
    # 12:00 EDT
    assert detlas.acquired == datetime(2020, 4, 1, 16, 0, 0)
    assert (detlas.start_x, detlas.start_z, detlas.end_x, detlas.end_z) == (-10, 20, 30, 40)


@pytest.mark.parametrize('response', [
    requests.ConnectionError('boom'),
    StubResponse(status_code=503),
    StubResponse(invalid_json=True),
    StubResponse(payload=None),
    StubResponse(payload=territory_payload(acquired='yesterday')),
    StubResponse(payload={'unexpected': True}),
    StubResponse(payload=territory_payload(guild=None)),
    StubResponse(payload=territory_payload(guild='')),
])
def test_territory_list_failures_are_transient(response):
    api = make_api(StubSession(response))
    with pytest.raises(TransientFetchError):
        api.get_territory_list()


def test_player_statistics_cached_and_force_reload():
    session = StubSession(StubResponse({'username': 'Salted', 'v': 1}), StubResponse({'username': 'Salted', 'v': 2}))
    api = make_api(session)
    assert api.get_player_statistics('Salted', can_wait=True)['v'] == 1
    # served from cache, no request, no throttling
    assert api.get_player_statistics('Salted', can_wait=True)['v'] == 1
    assert len(session.calls) == 1
    assert api.get_player_statistics('Salted', can_wait=False, force_reload=True)['v'] == 2
    assert session.calls == ['http://wynn.test/player/Salted/stats'] * 2


def test_expired_cache_entry_forces_fresh_fetch():
    clock = FakeClock()
    session = StubSession(StubResponse({'v': 1}), StubResponse({'v': 2}))
    api = make_api(session, clock=clock)
    api.get_player_statistics('Salted', can_wait=False)
    clock.advance(601)
    assert api.get_player_statistics('Salted', can_wait=False) == {'v': 2}
    assert len(session.calls) == 2


def test_player_statistics_rejected_without_request():
    clock = FakeClock()
    session = StubSession(*[StubResponse({'n': i}) for i in range(3)])
    api = make_api(session, clock=clock, max_burst=1)
    api.get_player_statistics('a', can_wait=False)
    api.get_player_statistics('b', can_wait=False)
    result = api.get_player_statistics('c', can_wait=True)
    assert isinstance(result, Rejected)
    assert result.backoff > 0
    assert len(session.calls) == 2


def test_player_name_is_url_quoted():
    session = StubSession(StubResponse({}))
    make_api(session).get_player_statistics('a b', can_wait=False)
    assert session.calls == ['http://wynn.test/player/a%20b/stats']
