"""
Session token issuing and verification.

Tokens are sealed with AES-256-GCM, so the claims (including the user id) are
both confidential and tamper-evident. Layout:

    v1.local.<base64url(nonce || ciphertext)>

The version prefix is bound as associated data. The plaintext is a compact JSON
object with `sub` (user id as a string), `iat` and `exp` (ISO-8601 UTC).
"""
import base64
import binascii
import json
import os
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.keys import KeyProvider

TOKEN_TTL = timedelta(hours=24)
TOKEN_PREFIX = "v1.local."
NONCE_SIZE = 12

_SUBJECT_PATTERN = re.compile(r"[+-]?\d+")


class TokenValidationError(Exception):
    """Raised when a token is malformed, tampered with, expired, or has a bad subject."""

    pass


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(value: str) -> bytes:
    padding = "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(value + padding)


class TokenCodec:
    """Issues and verifies session tokens for user ids."""

    def __init__(
        self,
        key_provider: KeyProvider,
        ttl: timedelta = TOKEN_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._key_provider = key_provider
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> timedelta:
        """Token lifetime from issuance."""
        return self._ttl

    def issue(self, user_id: int) -> str:
        """
        Create a token for `user_id` that expires after the configured TTL.

        Raises:
            ConfigurationError: If the token key is malformed.
        """
        now = self._clock()
        claims = {
            "sub": str(user_id),
            "iat": now.isoformat(),
            "exp": (now + self._ttl).isoformat(),
        }
        return self._seal(claims)

    def verify(self, token: str) -> int:
        """
        Open `token` and return the user id it was issued for.

        The token is rejected at and after the expiry instant.

        Raises:
            TokenValidationError: If the token cannot be trusted.
            ConfigurationError: If the token key is malformed.
        """
        claims = self._open(token)

        try:
            expires_at = datetime.fromisoformat(claims["exp"])
        except (KeyError, TypeError, ValueError) as e:
            raise TokenValidationError("Token has no valid expiry") from e
        if expires_at.tzinfo is None:
            raise TokenValidationError("Token expiry has no timezone")
        if not self._clock() < expires_at:
            raise TokenValidationError("Token expired")

        subject = claims.get("sub")
        if not isinstance(subject, str) or not _SUBJECT_PATTERN.fullmatch(subject):
            raise TokenValidationError("Token subject is not a user id")
        return int(subject)

    def _seal(self, claims: dict) -> str:
        key = self._key_provider.get_key()
        nonce = os.urandom(NONCE_SIZE)
        plaintext = json.dumps(claims, separators=(",", ":"), sort_keys=True).encode("utf-8")
        ciphertext = AESGCM(key).encrypt(nonce, plaintext, TOKEN_PREFIX.encode("ascii"))
        return TOKEN_PREFIX + _b64url_encode(nonce + ciphertext)

    def _open(self, token: str) -> dict:
        key = self._key_provider.get_key()
        if not token or not token.startswith(TOKEN_PREFIX):
            raise TokenValidationError("Unrecognized token format")
        try:
            raw = _b64url_decode(token[len(TOKEN_PREFIX):])
        except (binascii.Error, ValueError) as e:
            raise TokenValidationError("Token is not valid base64") from e
        if len(raw) <= NONCE_SIZE:
            raise TokenValidationError("Token is truncated")

        nonce, ciphertext = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = AESGCM(key).decrypt(nonce, ciphertext, TOKEN_PREFIX.encode("ascii"))
        except InvalidTag as e:
            raise TokenValidationError("Token failed authentication") from e

        try:
            claims = json.loads(plaintext)
        except ValueError as e:
            raise TokenValidationError("Token payload is not JSON") from e
        if not isinstance(claims, dict):
            raise TokenValidationError("Token payload is not an object")
        return claims
