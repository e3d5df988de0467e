"""Access-code generation and password hashing.

Accounts get a short numeric access code handed out once by an admin. Only
a salted hash of it is stored: bcrypt in production, a prefixed SHA-256 for
tests where bcrypt's cost would dominate run time.

BcryptHasher is CPU-bound (~100ms per call) and runs off the event loop via
anyio.to_thread.run_sync().
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Protocol, runtime_checkable

import bcrypt
from anyio import to_thread

ACCESS_CODE_DIGITS = 4


def generate_access_code() -> str:
    """Return a random 4-digit code in 1000..9999."""
    low = 10 ** (ACCESS_CODE_DIGITS - 1)
    return str(low + secrets.randbelow(9 * low))


@runtime_checkable
class PasswordHasher(Protocol):
    async def hash(self, plain: str) -> str: ...

    async def verify(self, plain: str, hashed: str) -> bool: ...


class BcryptHasher:
    async def hash(self, plain: str) -> str:
        encoded = plain.encode("utf-8")
        return await to_thread.run_sync(lambda: bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8"))

    async def verify(self, plain: str, hashed: str) -> bool:
        """Return False for malformed hashes rather than propagating a ValueError."""
        encoded_plain = plain.encode("utf-8")
        encoded_hash = hashed.encode("utf-8")
        try:
            return await to_thread.run_sync(lambda: bcrypt.checkpw(encoded_plain, encoded_hash))
        except ValueError:
            return False


_SIMPLE_PREFIX = "simple$"


class SimpleHasher:
    """Fast SHA-256 hasher for tests. Not suitable for production use."""

    async def hash(self, plain: str) -> str:
        return _SIMPLE_PREFIX + hashlib.sha256(plain.encode("utf-8")).hexdigest()

    async def verify(self, plain: str, hashed: str) -> bool:
        if not hashed.startswith(_SIMPLE_PREFIX):
            return False
        return secrets.compare_digest(hashed.encode("utf-8"), (await self.hash(plain)).encode("utf-8"))


def get_hasher(name: str = "bcrypt") -> PasswordHasher:
    """Return a PasswordHasher by name ("bcrypt" or "simple")."""
    if name == "bcrypt":
        return BcryptHasher()
    if name == "simple":
        return SimpleHasher()
    raise ValueError(f"Unknown password hasher: {name!r}")
