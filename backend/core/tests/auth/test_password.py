"""Tests for access codes and password hashers."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from core.auth.password import BcryptHasher, SimpleHasher, generate_access_code, get_hasher


class TestGenerateAccessCode:
    def test_four_digits(self):
        for _ in range(50):
            code = generate_access_code()
            assert code.isdigit()
            assert 1000 <= int(code) <= 9999

    @pytest.mark.parametrize(("draw", "expected"), [(0, "1000"), (8999, "9999")])
    def test_range_bounds(self, draw, expected):
        with patch("core.auth.password.secrets.randbelow", return_value=draw):
            assert generate_access_code() == expected


class TestBcryptHasher:
    async def test_hash_and_verify_roundtrip(self):
        hasher = BcryptHasher()
        hashed = await hasher.hash("4821")
        assert hashed != "4821"
        assert await hasher.verify("4821", hashed) is True

    async def test_wrong_code_rejected(self):
        hasher = BcryptHasher()
        hashed = await hasher.hash("4821")
        assert await hasher.verify("4822", hashed) is False

    async def test_malformed_hash_returns_false(self):
        hasher = BcryptHasher()
        assert await hasher.verify("4821", "!") is False
        assert await hasher.verify("4821", "simple$abc") is False


class TestSimpleHasher:
    async def test_hash_and_verify_roundtrip(self):
        hasher = SimpleHasher()
        hashed = await hasher.hash("4821")
        assert hashed.startswith("simple$")
        assert await hasher.verify("4821", hashed) is True

    async def test_wrong_code_rejected(self):
        hasher = SimpleHasher()
        assert await hasher.verify("0000", await hasher.hash("4821")) is False

    async def test_rejects_non_simple_hash(self):
        assert await SimpleHasher().verify("4821", "$2b$12$notsimple") is False

    async def test_non_ascii_stored_hash_is_rejected(self):
        assert await SimpleHasher().verify("4821", "simple$é") is False


class TestGetHasher:
    def test_returns_bcrypt_by_default(self):
        assert isinstance(get_hasher(), BcryptHasher)

    def test_returns_simple(self):
        assert isinstance(get_hasher("simple"), SimpleHasher)

    def test_raises_for_unknown(self):
        with pytest.raises(ValueError, match="Unknown password hasher"):
            get_hasher("md5")
