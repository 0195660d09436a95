from flask_sqlalchemy import SQLAlchemy

from .config import Config

db = SQLAlchemy()


class Token(db.Model):
    __tablename__ = Config.TOKENS_TABLE

    id = db.Column(db.String(16), primary_key=True)
    campaign = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    expires_at = db.Column(db.DateTime(timezone=True))
    revoked = db.Column(db.Boolean, nullable=False, default=False)
    destination_path = db.Column(db.Text)
    variant = db.Column(db.String(64))


class TokenEvent(db.Model):
    __tablename__ = Config.EVENTS_TABLE
    __table_args__ = (db.Index('ix_token_events_token_ts', 'token', 'ts'),)

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    token = db.Column(db.String(16), nullable=False)  # no FK: orphaned events are kept
    ts = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)  # validate|open
    campaign = db.Column(db.String(255))
    ip_hash = db.Column(db.String(32))
    user_agent = db.Column(db.Text)
    referrer = db.Column(db.Text)
