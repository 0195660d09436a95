import hmac
import logging
from datetime import timedelta
from typing import List, Optional

from ..errors import AuthenticationError, NotFoundError, TokenCollisionError, ValidationError
from .records import AccessToken, utcnow
from .stores import EventStore, TokenStore
from .tokens import generate_token_id, short_link

log = logging.getLogger(__name__)

EVENTS_LIMIT = 100
MAX_ID_ATTEMPTS = 5
MAX_TOKEN_DAYS = 365


def check_bearer(header: Optional[str], secret: Optional[str]) -> None:
    """Raise ``AuthenticationError`` unless ``header`` is ``Bearer <secret>``."""
    if not secret or not header:
        raise AuthenticationError()
    parts = header.split(' ')
    if len(parts) != 2 or parts[0] != 'Bearer':
        raise AuthenticationError()
    if not hmac.compare_digest(parts[1].encode(), secret.encode()):
        raise AuthenticationError()


def _parse_days(days, default: int) -> int:
    if days is None:
        return default
    # bool is an int subclass; reject it along with floats and strings
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationError('days must be a whole number')
    if days < 1:
        raise ValidationError('days must be at least 1')
    if days > MAX_TOKEN_DAYS:
        raise ValidationError(f'days must be at most {MAX_TOKEN_DAYS}')
    return days


def _optional_text(value, name: str):
    if value is not None and not isinstance(value, str):
        raise ValidationError(f'{name} must be a string')
    return value or None


class AdminService:

    def __init__(self, tokens: TokenStore, events: EventStore, short_link_base: str,
                 default_days: int = 30, clock=utcnow, id_factory=generate_token_id):
        self.tokens = tokens
        self.events = events
        self.short_link_base = short_link_base
        self.default_days = default_days
        self.clock = clock
        self.id_factory = id_factory

    def describe(self, token: AccessToken) -> dict:
        out = token.to_dict()
        out['shortLink'] = short_link(self.short_link_base, token.id)
        return out

    def list_tokens(self) -> List[dict]:
        tokens = sorted(self.tokens.scan(), key=lambda t: t.created_at, reverse=True)
        return [self.describe(t) for t in tokens]

    def create_token(self, campaign, days=None, variant=None, destination_path=None) -> dict:
        if not isinstance(campaign, str) or not campaign.strip():
            raise ValidationError('Campaign name is required')
        days = _parse_days(days, self.default_days)
        variant = _optional_text(variant, 'variant')
        destination_path = _optional_text(destination_path, 'destinationPath')
        now = self.clock()
        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            token = AccessToken(
                id=self.id_factory(),
                campaign=campaign.strip(),
                created_at=now,
                expires_at=now + timedelta(days=days),
                variant=variant,
                destination_path=destination_path,
            )
            if self.tokens.put_if_absent(token):
                log.info('issued token %s for campaign %r (%d days)', token.id, token.campaign, days)
                return self.describe(token)
            log.warning('token id collision on attempt %d: %s', attempt, token.id)
        raise TokenCollisionError(f'no free token id after {MAX_ID_ATTEMPTS} attempts')

    def get_token(self, token_id: str) -> AccessToken:
        token = self.tokens.get(token_id)
        if token is None:
            raise NotFoundError()
        return token

    def revoke_token(self, token_id: str) -> dict:
        token = self.get_token(token_id)
        if not token.revoked:
            token.revoked = True
            self.tokens.put(token)
            log.info('revoked token %s', token_id)
        return self.describe(token)

    def list_events(self, token_id: Optional[str] = None) -> List[dict]:
        if token_id:
            events = self.events.query_by_token(token_id, EVENTS_LIMIT, newest_first=True)
        else:
            events = self.events.scan_recent(EVENTS_LIMIT)
        events = sorted(events, key=lambda e: e.ts, reverse=True)[:EVENTS_LIMIT]
        return [e.to_dict() for e in events]
