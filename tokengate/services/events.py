import logging
from typing import Optional

from .privacy import ClientContext, hash_address
from .records import AccessEvent, utcnow
from .stores import EventStore

log = logging.getLogger(__name__)


class EventLogger:
    """Best-effort access analytics. A failed write is logged, never raised."""

    def __init__(self, store: EventStore, salt: str, clock=utcnow):
        self.store = store
        self.salt = salt
        self.clock = clock

    def log(self, token_id: str, event_type: str, context: ClientContext,
            campaign: Optional[str] = None) -> None:
        try:
            event = AccessEvent(
                token=token_id,
                ts=self.clock(),
                type=event_type,
                campaign=campaign,
                ip_hash=hash_address(context.address, self.salt),
                user_agent=context.user_agent,
                referrer=context.referrer,
            )
            self.store.put(event)
        except Exception as e:
            log.error('failed to log %s event for %s: %s', event_type, token_id, e)
