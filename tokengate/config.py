import os


def _read_secret(path):
    try:
        with open(path, 'r') as f:
            return f.read().strip()
    except OSError:
        return None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///local.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')  # sql|redis
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    REDIS_SOCKET_TIMEOUT = float(os.environ.get('REDIS_SOCKET_TIMEOUT', '2'))
    TOKENS_TABLE = os.environ.get('TOKENS_TABLE', 'tokens')
    EVENTS_TABLE = os.environ.get('EVENTS_TABLE', 'token_events')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD')
    IP_SALT = os.environ.get('IP_SALT', 'salt')
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:5173')
    SHORT_LINK_BASE = os.environ.get('SHORT_LINK_BASE', 'http://localhost:5000')
    ALLOWED_ORIGIN = os.environ.get('ALLOWED_ORIGIN', '*')
    DEFAULT_TOKEN_DAYS = int(os.environ.get('DEFAULT_TOKEN_DAYS', '30'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    def __init__(self, **overrides):
        # Optional fallbacks to support Secret Files on Render (/etc/secrets)
        if not self.ADMIN_PASSWORD:
            self.ADMIN_PASSWORD = _read_secret('/etc/secrets/admin_password')
        if (not self.SECRET_KEY) or self.SECRET_KEY == 'dev':
            self.SECRET_KEY = _read_secret('/etc/secrets/secret_key') or self.SECRET_KEY
        if (not self.IP_SALT) or self.IP_SALT == 'salt':
            self.IP_SALT = _read_secret('/etc/secrets/ip_salt') or self.IP_SALT
        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f'unknown config key: {key}')
            setattr(self, key, value)
        self.SITE_URL = self.SITE_URL.rstrip('/')
        self.SHORT_LINK_BASE = self.SHORT_LINK_BASE.rstrip('/')
