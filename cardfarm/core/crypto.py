"""Password decryption for bot configs.

The loader never decrypts on its own: it hands ``(method, ciphertext)`` to a
:class:`SecretDecryptor`. :class:`CipherRegistry` is the stock implementation
and maps each :class:`PasswordFormat` to a cipher callable.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from typing import Callable, Mapping, Protocol

from cryptography.fernet import Fernet

from cardfarm.bot.schema import PasswordFormat
from cardfarm.core.logging import get_logger


APPLICATION_SALT = b"cardfarm.bot-password.v1"
DEFAULT_KDF_ITERATIONS = 390_000

Cipher = Callable[[str], str]


class SecretDecryptor(Protocol):
    def decrypt(self, method: PasswordFormat, ciphertext: str) -> str | None: ...


def derive_key(passphrase: str, salt: bytes = APPLICATION_SALT, *, iterations: int = DEFAULT_KDF_ITERATIONS) -> bytes:
    key = hashlib.pbkdf2_hmac("sha256", passphrase.encode("utf-8"), salt, iterations, dklen=32)
    return base64.urlsafe_b64encode(key)


def fernet_cipher(passphrase: str, *, iterations: int = DEFAULT_KDF_ITERATIONS) -> Cipher:
    fernet = Fernet(derive_key(passphrase, iterations=iterations))

    def _decrypt(ciphertext: str) -> str:
        return fernet.decrypt(ciphertext.encode("ascii")).decode("utf-8")

    return _decrypt


class CipherRegistry:
    def __init__(
        self,
        ciphers: Mapping[PasswordFormat, Cipher] | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._ciphers: dict[PasswordFormat, Cipher] = dict(ciphers or {})
        self.logger = logger or get_logger("cardfarm.core.crypto")

    def register(self, method: PasswordFormat, cipher: Cipher) -> None:
        if method == PasswordFormat.PLAIN_TEXT:
            raise ValueError("plain text passwords do not take a cipher")
        self._ciphers[method] = cipher

    def supports(self, method: PasswordFormat) -> bool:
        return method == PasswordFormat.PLAIN_TEXT or method in self._ciphers

    def decrypt(self, method: PasswordFormat, ciphertext: str) -> str | None:
        if method == PasswordFormat.PLAIN_TEXT:
            return ciphertext
        cipher = self._ciphers.get(method)
        if cipher is None:
            self.logger.warning(
                f"no cipher registered for password format {method.name}",
                extra={"event_action": "decrypt", "event_outcome": "failure"},
            )
            return None
        try:
            return cipher(ciphertext)
        except Exception:
            self.logger.warning(
                f"failed to decrypt password stored as {method.name}",
                exc_info=True,
                extra={"event_action": "decrypt", "event_outcome": "failure"},
            )
            return None


def build_decryptor(passphrase: str, *, logger: logging.Logger | None = None) -> CipherRegistry:
    registry = CipherRegistry(logger=logger)
    if passphrase:
        registry.register(PasswordFormat.AES, fernet_cipher(passphrase))
    return registry
