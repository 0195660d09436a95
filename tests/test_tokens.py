"""
Unit tests for token id generation.
"""
import pytest

from tokengate.services.tokens import ALPHABET, TOKEN_LENGTH, generate_token_id, short_link


class FakeRandom:
    def __init__(self, *chunks):
        self.chunks = list(chunks)
        self.requests = []

    def __call__(self, n):
        self.requests.append(n)
        return self.chunks.pop(0)


class TestGenerateTokenId:
    """Tests for the 62-symbol id generator."""

    def test_default_length_and_alphabet(self):
        """Test that ids are 8 characters drawn from A-Z a-z 0-9."""
        token_id = generate_token_id()
        assert len(token_id) == TOKEN_LENGTH == 8
        assert all(c in ALPHABET for c in token_id)

    def test_alphabet_has_62_symbols(self):
        assert len(ALPHABET) == 62
        assert len(set(ALPHABET)) == 62

    def test_bytes_above_cutoff_are_rejected(self):
        """Test that 248..255 are discarded instead of being folded onto A..H."""
        rand = FakeRandom(bytes([255, 248, 0]), bytes([61, 62]))
        assert generate_token_id(length=3, randbytes=rand) == 'A9A'
        # second draw only asks for the characters still missing
        assert rand.requests == [3, 2]

    def test_highest_accepted_byte(self):
        rand = FakeRandom(bytes([247]))
        assert generate_token_id(length=1, randbytes=rand) == ALPHABET[247 % 62]

    def test_uses_every_symbol(self):
        """Test that a full byte sweep maps onto every symbol equally often."""
        rand = FakeRandom(bytes(range(256)))
        token_id = generate_token_id(length=248, randbytes=rand)
        counts = {c: token_id.count(c) for c in ALPHABET}
        assert set(counts.values()) == {4}

    def test_ids_differ(self):
        ids = {generate_token_id() for _ in range(200)}
        assert len(ids) == 200


class TestShortLink:

    @pytest.mark.parametrize('base', ['https://go.test', 'http://localhost:5000'])
    def test_joins_base_and_id(self, base):
        assert short_link(base, 'Ab3dE6gH') == f'{base}/Ab3dE6gH'
