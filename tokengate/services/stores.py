from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import FlushError

from ..errors import StorageError
from ..models import db, Token, TokenEvent
from .records import AccessEvent, AccessToken


class TokenStore:
    """Point access to token records keyed by id."""

    def get(self, token_id: str) -> Optional[AccessToken]:
        raise NotImplementedError

    def put(self, token: AccessToken) -> None:
        raise NotImplementedError

    def put_if_absent(self, token: AccessToken) -> bool:
        """Insert ``token`` unless its id is taken. Returns False on conflict."""
        raise NotImplementedError

    def scan(self) -> List[AccessToken]:
        raise NotImplementedError


class EventStore:
    """Append-only access events."""

    def put(self, event: AccessEvent) -> None:
        raise NotImplementedError

    def query_by_token(self, token_id: str, limit: int, newest_first: bool = True) -> List[AccessEvent]:
        raise NotImplementedError

    def scan_recent(self, limit: int) -> List[AccessEvent]:
        """Up to ``limit`` events, in no particular order."""
        raise NotImplementedError


def _token_from_row(row: Token) -> AccessToken:
    return AccessToken.load(dict(
        id=row.id,
        campaign=row.campaign,
        created_at=row.created_at,
        expires_at=row.expires_at,
        revoked=row.revoked,
        destination_path=row.destination_path,
        variant=row.variant,
    ))


def _row_from_token(token: AccessToken) -> Token:
    return Token(
        id=token.id,
        campaign=token.campaign,
        created_at=token.created_at,
        expires_at=token.expires_at,
        revoked=token.revoked,
        destination_path=token.destination_path,
        variant=token.variant,
    )


def _event_from_row(row: TokenEvent) -> AccessEvent:
    return AccessEvent.load(dict(
        token=row.token,
        ts=row.ts,
        type=row.type,
        campaign=row.campaign,
        ip_hash=row.ip_hash,
        user_agent=row.user_agent,
        referrer=row.referrer,
    ))


class SqlTokenStore(TokenStore):

    def get(self, token_id):
        try:
            row = db.session.get(Token, token_id)
        except SQLAlchemyError as e:
            raise StorageError(f'token lookup failed: {e}') from e
        return _token_from_row(row) if row else None

    def put(self, token):
        try:
            db.session.merge(_row_from_token(token))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f'token write failed: {e}') from e

    def put_if_absent(self, token):
        db.session.add(_row_from_token(token))
        try:
            db.session.commit()
        except (IntegrityError, FlushError):
            db.session.rollback()
            return False
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f'token insert failed: {e}') from e
        return True

    def scan(self):
        try:
            rows = Token.query.all()
        except SQLAlchemyError as e:
            raise StorageError(f'token scan failed: {e}') from e
        return [_token_from_row(r) for r in rows]


class SqlEventStore(EventStore):

    def put(self, event):
        db.session.add(TokenEvent(
            token=event.token,
            ts=event.ts,
            type=event.type,
            campaign=event.campaign,
            ip_hash=event.ip_hash,
            user_agent=event.user_agent,
            referrer=event.referrer,
        ))
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise StorageError(f'event write failed: {e}') from e

    def query_by_token(self, token_id, limit, newest_first=True):
        order = TokenEvent.ts.desc() if newest_first else TokenEvent.ts.asc()
        try:
            rows = (TokenEvent.query.filter_by(token=token_id)
                    .order_by(order, TokenEvent.id.desc() if newest_first else TokenEvent.id.asc())
                    .limit(limit).all())
        except SQLAlchemyError as e:
            raise StorageError(f'event query failed: {e}') from e
        return [_event_from_row(r) for r in rows]

    def scan_recent(self, limit):
        try:
            rows = TokenEvent.query.order_by(TokenEvent.id.desc()).limit(limit).all()
        except SQLAlchemyError as e:
            raise StorageError(f'event scan failed: {e}') from e
        return [_event_from_row(r) for r in rows]
