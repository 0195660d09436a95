import hashlib
from dataclasses import dataclass
from typing import Optional

from flask import request

from .records import UNKNOWN

IP_HASH_LENGTH = 16


@dataclass(frozen=True)
class ClientContext:
    address: str = UNKNOWN
    user_agent: str = UNKNOWN
    referrer: Optional[str] = None


def hash_address(raw_address: Optional[str], salt: str) -> str:
    """Salted sha256 of the address, cut to 16 hex chars. ``unknown`` passes through."""
    if not raw_address or raw_address == UNKNOWN:
        return UNKNOWN
    return hashlib.sha256(f"{raw_address}{salt}".encode()).hexdigest()[:IP_HASH_LENGTH]


def client_context() -> ClientContext:
    # remote_addr already reflects X-Forwarded-For through ProxyFix
    return ClientContext(
        address=request.remote_addr or UNKNOWN,
        user_agent=request.headers.get('User-Agent') or UNKNOWN,
        referrer=request.headers.get('Referer') or None,
    )
