"""Symmetric key provider for session tokens."""
import binascii
import logging
import os
import threading

logger = logging.getLogger(__name__)

# AES-256-GCM key size
KEY_SIZE = 32


class ConfigurationError(Exception):
    """Raised when the configured token key is missing or malformed."""

    pass


class KeyProvider:
    """
    Supplies the single symmetric key used to seal and open session tokens.

    The key is resolved lazily on first use and then reused for the lifetime
    of the process. An operator-supplied hex key is adopted when present;
    otherwise a random key is generated, which means sessions do not survive
    a restart.

    A malformed key is remembered as a ConfigurationError and re-raised on
    every call, so all token operations keep failing until the configuration
    is fixed and the process restarted.
    """

    def __init__(self, hex_key: str | None = None) -> None:
        self._hex_key = hex_key
        self._lock = threading.Lock()
        self._resolved = False
        self._key: bytes | None = None
        self._error: ConfigurationError | None = None

    def get_key(self) -> bytes:
        """Return the process key, resolving it exactly once."""
        if not self._resolved:
            with self._lock:
                if not self._resolved:
                    self._resolve()
                    self._resolved = True
        if self._error is not None:
            raise self._error
        return self._key  # type: ignore[return-value]

    def _resolve(self) -> None:
        hex_key = (self._hex_key or "").strip()
        if not hex_key:
            logger.warning(
                "token_key_generated",
                extra={"reason": "no AUTH_TOKEN_KEY configured; sessions reset on restart"},
            )
            self._key = os.urandom(KEY_SIZE)
            return
        try:
            key = binascii.unhexlify(hex_key)
        except (binascii.Error, ValueError):
            self._error = ConfigurationError("AUTH_TOKEN_KEY is not valid hex")
            return
        if len(key) != KEY_SIZE:
            self._error = ConfigurationError(
                f"AUTH_TOKEN_KEY must decode to {KEY_SIZE} bytes (got {len(key)})",
            )
            return
        self._key = key
