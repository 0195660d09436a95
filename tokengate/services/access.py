from .events import EventLogger
from .privacy import ClientContext
from .records import DEFAULT_VARIANT, EVENT_OPEN, EVENT_VALIDATE
from .validator import TokenValidator

NO_CACHE_HEADERS = {'Cache-Control': 'no-cache, no-store, must-revalidate'}


class AccessGateway:
    """Public entry points: the short-link redirect and the client-side check.

    Both share one ``TokenValidator``. Neither tells the caller why a token
    was refused.
    """

    def __init__(self, validator: TokenValidator, events: EventLogger, site_url: str):
        self.validator = validator
        self.events = events
        self.site_url = site_url

    @property
    def expired_url(self) -> str:
        return f"{self.site_url}/expired"

    def destination_for(self, token) -> str:
        path = token.destination_path or f"/t/{token.id}"
        if not path.startswith('/'):
            path = '/' + path
        return f"{self.site_url}{path}"

    def redirect(self, token_id, context: ClientContext) -> str:
        if not token_id:
            return self.expired_url
        token = self.validator.validate(token_id)
        if token is None:
            return self.expired_url
        self.events.log(token.id, EVENT_OPEN, context, campaign=token.campaign)
        return self.destination_for(token)

    def validate(self, token_id, context: ClientContext) -> dict:
        if not token_id:
            return {'valid': False, 'error': 'No token provided'}
        token = self.validator.validate(token_id)
        if token is None:
            return {'valid': False}
        self.events.log(token.id, EVENT_VALIDATE, context, campaign=token.campaign)
        return {
            'valid': True,
            'campaign': token.campaign,
            'variant': token.variant or DEFAULT_VARIANT,
            'destinationPath': token.destination_path,
        }
