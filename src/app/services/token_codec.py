"""
Token Codec

Generates reset secrets and verifies candidates against their argon2id hashes.
"""

import secrets

from argon2 import PasswordHasher, Type
from argon2.exceptions import Argon2Error, InvalidHashError

TOKEN_BYTES = 32
DEFAULT_CODE_LENGTH = 6


class TokenCodec:
    """
    Reset token and code codec.

    Business Rules:
    - Token: 32 bytes from the OS CSPRNG, URL-safe base64 (the bearer secret)
    - Code: fixed-length decimal string, independent of the token (lookup key)
    - Tokens are stored only as argon2id hashes (64 MiB, 3 passes, 1 lane)
    - verify() never raises; any malformed or mismatching input is False
    """

    def __init__(
        self,
        memory_cost: int = 2**16,
        time_cost: int = 3,
        parallelism: int = 1,
    ):
        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )

    def generate_token(self) -> str:
        return secrets.token_urlsafe(TOKEN_BYTES)

    def generate_code(self, length: int = DEFAULT_CODE_LENGTH) -> str:
        if length < 1:
            raise ValueError("Code length must be positive")
        return "".join(str(secrets.randbelow(10)) for _ in range(length))

    def hash(self, secret: str) -> str:
        """Salted argon2id hash; the output embeds algorithm, parameters and salt."""
        return self._hasher.hash(secret)

    def verify(self, hashed: str, candidate: str) -> bool:
        """
        Check a candidate against a stored hash.

        argon2 compares digests in constant time; VerifyMismatchError,
        malformed hashes and non-string input all map to False.
        """
        if not isinstance(hashed, str) or not isinstance(candidate, str):
            return False
        try:
            return self._hasher.verify(hashed, candidate)
        except (Argon2Error, InvalidHashError, ValueError):
            return False
