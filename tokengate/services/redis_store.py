import json
import logging
import uuid

import redis

from ..errors import MalformedRecordError, StorageError
from .records import AccessEvent, AccessToken
from .stores import EventStore, TokenStore

log = logging.getLogger(__name__)


def connect(url: str, timeout: float):
    """Build the process-wide client. Store calls fail fast on ``timeout``."""
    return redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def _loads(raw: str, what: str) -> dict:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise MalformedRecordError(f'{what}: not valid JSON')


class RedisTokenStore(TokenStore):
    """Tokens as JSON strings at ``{ns}:{id}``; ids also kept in the ``{ns}`` set.

    Each key expires at the token's ``expiresAt``. That is only garbage
    collection; the validator still compares ``expiresAt`` on every read.
    """

    def __init__(self, client, namespace='tokens'):
        self.client = client
        self.ns = namespace

    def _key(self, token_id):
        return f"{self.ns}:{token_id}"

    def _exat(self, token):
        return int(token.expires_at.timestamp()) if token.expires_at else None

    def get(self, token_id):
        try:
            raw = self.client.get(self._key(token_id))
        except redis.RedisError as e:
            raise StorageError(f'token lookup failed: {e}') from e
        if raw is None:
            return None
        return AccessToken.load(_loads(raw, f'token {token_id}'))

    def put(self, token):
        try:
            pipe = self.client.pipeline(transaction=False)
            # updates keep the expiry set at insert time
            pipe.set(self._key(token.id), json.dumps(token.to_dict()), keepttl=True)
            pipe.sadd(self.ns, token.id)
            pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f'token write failed: {e}') from e

    def put_if_absent(self, token):
        try:
            created = self.client.set(
                self._key(token.id), json.dumps(token.to_dict()), nx=True, exat=self._exat(token))
            if created:
                self.client.sadd(self.ns, token.id)
        except redis.RedisError as e:
            raise StorageError(f'token insert failed: {e}') from e
        return bool(created)

    def scan(self):
        try:
            ids = sorted(self.client.smembers(self.ns))
            raws = self.client.mget([self._key(i) for i in ids]) if ids else []
        except redis.RedisError as e:
            raise StorageError(f'token scan failed: {e}') from e
        tokens, stale = [], []
        for token_id, raw in zip(ids, raws):
            if raw is None:
                # key already collected by its expiry
                stale.append(token_id)
                continue
            tokens.append(AccessToken.load(_loads(raw, f'token {token_id}')))
        if stale:
            try:
                self.client.srem(self.ns, *stale)
            except redis.RedisError as e:
                log.warning('could not prune %d expired ids from %s: %s', len(stale), self.ns, e)
        return tokens


class RedisEventStore(EventStore):
    """Events as members of sorted sets scored by epoch seconds.

    ``{ns}:{token}`` is the per-token index and ``{ns}`` the global one.
    """

    def __init__(self, client, namespace='token_events'):
        self.client = client
        self.ns = namespace

    def put(self, event):
        doc = event.to_dict()
        # distinct members for events that share a timestamp
        doc['id'] = uuid.uuid4().hex
        member = json.dumps(doc, sort_keys=True)
        score = event.ts.timestamp()
        try:
            pipe = self.client.pipeline(transaction=False)
            pipe.zadd(f"{self.ns}:{event.token}", {member: score})
            pipe.zadd(self.ns, {member: score})
            pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f'event write failed: {e}') from e

    def _decode(self, members):
        events = []
        for raw in members:
            try:
                events.append(AccessEvent.load(_loads(raw, 'event')))
            except MalformedRecordError as e:
                log.warning('skipping malformed event row: %s', e)
        return events

    def query_by_token(self, token_id, limit, newest_first=True):
        key = f"{self.ns}:{token_id}"
        try:
            if newest_first:
                members = self.client.zrevrange(key, 0, limit - 1)
            else:
                members = self.client.zrange(key, 0, limit - 1)
        except redis.RedisError as e:
            raise StorageError(f'event query failed: {e}') from e
        return self._decode(members)

    def scan_recent(self, limit):
        try:
            members = self.client.zrevrange(self.ns, 0, limit - 1)
        except redis.RedisError as e:
            raise StorageError(f'event scan failed: {e}') from e
        return self._decode(members)
