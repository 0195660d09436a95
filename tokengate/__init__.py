import logging

from dotenv import find_dotenv, load_dotenv

# Config and table names are read from the environment at import time
load_dotenv(find_dotenv(usecwd=True))

from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate
from pythonjsonlogger import jsonlogger
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .errors import register_error_handlers
from .models import db
from .services.access import AccessGateway
from .services.admin import AdminService
from .services.events import EventLogger
from .services.records import utcnow
from .services.stores import SqlEventStore, SqlTokenStore
from .services.validator import TokenValidator


class Services:
    """Components wired once per app and shared read-only across requests."""

    def __init__(self, config, token_store, event_store, clock=utcnow):
        self.token_store = token_store
        self.event_store = event_store
        self.validator = TokenValidator(token_store, clock=clock)
        self.events = EventLogger(event_store, config.IP_SALT, clock=clock)
        self.gateway = AccessGateway(self.validator, self.events, config.SITE_URL)
        self.admin = AdminService(
            token_store, event_store, config.SHORT_LINK_BASE,
            default_days=config.DEFAULT_TOKEN_DAYS, clock=clock,
        )


def json_formatter() -> logging.Formatter:
    return jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(message)s %(name)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        rename_fields={"asctime": "ts", "levelname": "level", "message": "msg"},
    )


def _configure_logging(app: Flask, level: str) -> None:
    """JSON lines on stdout."""
    app.logger.setLevel(level)
    root = logging.getLogger()
    root.setLevel(level)
    # avoid duplicate handlers in reloaders
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(json_formatter())
        root.addHandler(handler)


def _build_stores(config):
    if config.STORE_BACKEND == 'redis':
        from .services.redis_store import RedisEventStore, RedisTokenStore, connect
        client = connect(config.REDIS_URL, config.REDIS_SOCKET_TIMEOUT)
        return (RedisTokenStore(client, config.TOKENS_TABLE),
                RedisEventStore(client, config.EVENTS_TABLE))
    if config.STORE_BACKEND == 'sql':
        return SqlTokenStore(), SqlEventStore()
    raise ValueError(f'unknown STORE_BACKEND: {config.STORE_BACKEND!r}')


def create_app(config=None, clock=utcnow):
    if config is None:
        config = Config()
    app = Flask(__name__)
    app.config.from_object(config)
    _configure_logging(app, config.LOG_LEVEL)

    db.init_app(app)
    Migrate(app, db)
    # Trust reverse proxy headers (Render/Heroku)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
    CORS(
        app,
        resources={r'/validate': {}, r'/admin/*': {}},
        origins=config.ALLOWED_ORIGIN,
        methods=['GET', 'POST', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Authorization'],
    )

    if config.STORE_BACKEND == 'sql':
        with app.app_context():
            db.create_all()

    token_store, event_store = _build_stores(config)
    app.extensions['tokengate'] = Services(config, token_store, event_store, clock=clock)

    from .routes_public import bp as public_bp
    from .routes_api import bp as api_bp
    from .routes_admin import URL_PREFIX as ADMIN_PREFIX, bp as admin_bp
    app.register_blueprint(api_bp)
    app.register_blueprint(admin_bp, url_prefix=ADMIN_PREFIX)
    app.register_blueprint(public_bp)
    register_error_handlers(app)

    @app.get('/health')
    def health():
        return {'ok': True}

    return app
