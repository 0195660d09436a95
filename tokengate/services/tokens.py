import secrets
import string

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
TOKEN_LENGTH = 8
# largest multiple of len(ALPHABET) that fits in a byte; bytes at or above
# it are rejected so every symbol keeps probability 1/62
_CUTOFF = 256 - (256 % len(ALPHABET))


def generate_token_id(length: int = TOKEN_LENGTH, randbytes=secrets.token_bytes) -> str:
    chars = []
    while len(chars) < length:
        for b in randbytes(length - len(chars)):
            if b < _CUTOFF:
                chars.append(ALPHABET[b % len(ALPHABET)])
    return ''.join(chars)


def short_link(base_url: str, token_id: str) -> str:
    return f"{base_url}/{token_id}"
