"""Schemas for the rows that cross the store boundary.

Stores build records with ``load``, so a malformed row is rejected with
``MalformedRecordError`` instead of leaking ``None`` fields into the access
decision.
"""
from datetime import datetime, timezone
from typing import Literal, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..errors import MalformedRecordError

EVENT_VALIDATE = 'validate'
EVENT_OPEN = 'open'
DEFAULT_VARIANT = 'general'
UNKNOWN = 'unknown'


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat().replace('+00:00', 'Z') if value else None


class Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def load(cls, data):
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            fields = ', '.join('.'.join(str(p) for p in err['loc']) for err in e.errors())
            raise MalformedRecordError(f'{cls.__name__} row rejected: {fields}') from e


class AccessToken(Record):
    id: str = Field(alias='token', min_length=1)
    campaign: str = Field(min_length=1)
    created_at: datetime = Field(alias='createdAt')
    expires_at: Optional[datetime] = Field(default=None, alias='expiresAt')
    revoked: bool = False
    destination_path: Optional[str] = Field(default=None, alias='destinationPath')
    variant: Optional[str] = None

    @field_validator('created_at', 'expires_at')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)

    @model_validator(mode='after')
    def expires_after_creation(self):
        if self.expires_at is not None and self.expires_at <= self.created_at:
            raise ValueError('expiresAt must be after createdAt')
        return self

    def to_dict(self) -> dict:
        return {
            'token': self.id,
            'campaign': self.campaign,
            'createdAt': iso(self.created_at),
            'expiresAt': iso(self.expires_at),
            'revoked': self.revoked,
            'destinationPath': self.destination_path,
            'variant': self.variant,
        }


class AccessEvent(Record):
    token: str = Field(min_length=1)
    ts: datetime = Field(alias='timestamp')
    type: Literal['validate', 'open']
    campaign: Optional[str] = None
    ip_hash: str = Field(default=UNKNOWN, alias='ipHash')
    user_agent: str = Field(default=UNKNOWN, alias='userAgent')
    referrer: Optional[str] = None

    @field_validator('ts')
    @classmethod
    def normalize_utc(cls, value):
        return as_utc(value)

    @field_validator('ip_hash', 'user_agent', mode='before')
    @classmethod
    def unknown_if_blank(cls, value):
        return value or UNKNOWN

    def to_dict(self) -> dict:
        return {
            'token': self.token,
            'timestamp': iso(self.ts),
            'type': self.type,
            'campaign': self.campaign,
            'ipHash': self.ip_hash,
            'userAgent': self.user_agent,
            'referrer': self.referrer,
        }
