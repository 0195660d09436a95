"""
Pytest fixtures for token gate tests.
"""
from datetime import datetime, timedelta, timezone

import pytest
import redis

from tokengate import create_app
from tokengate.config import Config
from tokengate.errors import StorageError
from tokengate.services.stores import EventStore, TokenStore

ADMIN_PASSWORD = 's3cret-admin'
IP_SALT = 'pepper'
SITE_URL = 'https://site.test'
SHORT_LINK_BASE = 'https://go.test'


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


# =============================================================================
# In-memory stores
# =============================================================================

class MemoryTokenStore(TokenStore):
    def __init__(self):
        self.rows = {}
        self.reads = 0

    def get(self, token_id):
        self.reads += 1
        return self.rows.get(token_id)

    def put(self, token):
        self.rows[token.id] = token

    def put_if_absent(self, token):
        if token.id in self.rows:
            return False
        self.rows[token.id] = token
        return True

    def scan(self):
        return list(self.rows.values())


class MemoryEventStore(EventStore):
    def __init__(self):
        self.rows = []

    def put(self, event):
        self.rows.append(event)

    def query_by_token(self, token_id, limit, newest_first=True):
        rows = sorted((e for e in self.rows if e.token == token_id),
                      key=lambda e: e.ts, reverse=newest_first)
        return rows[:limit]

    def scan_recent(self, limit):
        # deliberately oldest first: callers must not rely on store order
        return self.rows[:limit]


class BrokenStore(TokenStore, EventStore):
    def _fail(self, *args, **kwargs):
        raise StorageError('backend unavailable')

    get = put = put_if_absent = scan = query_by_token = scan_recent = _fail


@pytest.fixture
def token_store():
    return MemoryTokenStore()


@pytest.fixture
def event_store():
    return MemoryEventStore()


# =============================================================================
# Redis double
# =============================================================================

class FakeRedis:
    """Just enough of the redis-py client for the Redis stores."""

    def __init__(self):
        self.strings = {}
        self.sets = {}
        self.zsets = {}
        self.expiry = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError('connection refused')

    def get(self, key):
        self._check()
        return self.strings.get(key)

    def set(self, key, value, nx=False, exat=None, keepttl=False):
        self._check()
        if nx and key in self.strings:
            return None
        self.strings[key] = value
        if exat is not None:
            self.expiry[key] = exat
        elif not keepttl:
            self.expiry.pop(key, None)
        return True

    def mget(self, keys):
        self._check()
        return [self.strings.get(k) for k in keys]

    def sadd(self, key, *values):
        self._check()
        self.sets.setdefault(key, set()).update(values)
        return len(values)

    def srem(self, key, *values):
        self._check()
        members = self.sets.get(key, set())
        removed = len(members & set(values))
        members.difference_update(values)
        return removed

    def smembers(self, key):
        self._check()
        return set(self.sets.get(key, set()))

    def zadd(self, key, mapping):
        self._check()
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def _zsorted(self, key, reverse):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1], reverse=reverse)
        return [member for member, _ in items]

    def zrange(self, key, start, end):
        self._check()
        return self._zsorted(key, False)[start:end + 1]

    def zrevrange(self, key, start, end):
        self._check()
        return self._zsorted(key, True)[start:end + 1]

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.calls = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return queue

    def execute(self):
        return [getattr(self.client, name)(*args, **kwargs) for name, args, kwargs in self.calls]


@pytest.fixture
def fake_redis():
    return FakeRedis()


# =============================================================================
# Flask app
# =============================================================================

def make_config(**overrides):
    settings = dict(
        SQLALCHEMY_DATABASE_URI='sqlite://',
        STORE_BACKEND='sql',
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        IP_SALT=IP_SALT,
        SITE_URL=SITE_URL,
        SHORT_LINK_BASE=SHORT_LINK_BASE,
        ALLOWED_ORIGIN=SITE_URL,
        DEFAULT_TOKEN_DAYS=30,
    )
    settings.update(overrides)
    return Config(**settings)


@pytest.fixture
def app(clock):
    app = create_app(make_config(), clock=clock)
    app.config['TESTING'] = True
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions['tokengate']


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {ADMIN_PASSWORD}'}
