import logging
from typing import Optional

from ..errors import StorageError
from .records import AccessToken, utcnow
from .stores import TokenStore

log = logging.getLogger(__name__)


def is_usable(token: AccessToken, now) -> bool:
    if token.revoked:
        return False
    if token.expires_at is not None and token.expires_at < now:
        return False
    return True


class TokenValidator:
    """Decides whether a token id grants access right now.

    Returns the token when usable and ``None`` otherwise. Store failures are
    folded into ``None`` so a flaky backend never opens the gate.
    """

    def __init__(self, store: TokenStore, clock=utcnow):
        self.store = store
        self.clock = clock

    def validate(self, token_id: str) -> Optional[AccessToken]:
        try:
            token = self.store.get(token_id)
        except StorageError as e:
            log.error('token lookup failed, denying access: %s', e)
            return None
        if token is None:
            log.info('token not found: %s', token_id)
            return None
        if not is_usable(token, self.clock()):
            log.info('token expired or revoked: %s', token_id)
            return None
        return token
