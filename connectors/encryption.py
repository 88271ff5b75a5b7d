"""
Token encryption — turn a Slack access token into opaque, round-trippable state.

Uses RSA with PKCS#1 v1.5 padding from the ``cryptography`` library.  The
public key encrypts, the private key (unlocked by ``PASSPHRASE``) decrypts.
The ciphertext is hex-encoded and handed to the reactor, which stores it and
sends it back whenever it wants the bridge to reach that user.  Nothing is
stored on this side: the state *is* the session.

Generate a key pair with::

    openssl genrsa -aes256 -passout pass:$PASSPHRASE -out private.pem 2048
    openssl rsa -in private.pem -passin pass:$PASSPHRASE -pubout -out public.pem
"""

from __future__ import annotations

import binascii
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

logger = logging.getLogger(__name__)

# PKCS#1 v1.5 needs 11 bytes of padding overhead per block
_PKCS1_OVERHEAD = 11


class InvalidStateError(ValueError):
    """State could not be decrypted: malformed, tampered or from another key."""


class StateEncryptionError(ValueError):
    """Token could not be encrypted (e.g. longer than the key allows)."""


class TokenCipher:
    """Encrypts / decrypts access tokens with a fixed RSA key pair."""

    def __init__(self, public_key_pem: str, private_key_pem: str, passphrase: str) -> None:
        public_key = serialization.load_pem_public_key(public_key_pem.encode())
        private_key = serialization.load_pem_private_key(
            private_key_pem.encode(),
            password=passphrase.encode(),
        )
        if not isinstance(public_key, rsa.RSAPublicKey) or not isinstance(
            private_key, rsa.RSAPrivateKey
        ):
            raise TypeError("PUBLIC_KEY_PEM and PRIVATE_KEY_PEM must be RSA keys")

        self._public_key = public_key
        self._private_key = private_key
        self._size = private_key.key_size // 8
        logger.info("Token cipher ready (RSA-%d, PKCS#1 v1.5)", private_key.key_size)

    @classmethod
    def from_settings(cls, settings) -> "TokenCipher":
        return cls(settings.public_key_pem, settings.private_key_pem, settings.passphrase)

    @property
    def state_length(self) -> int:
        """Number of hex characters in every encrypted state."""
        return self._size * 2

    def encrypt(self, token: str) -> str:
        """Encrypt *token* and return the ciphertext as lowercase hex."""
        raw = token.encode()
        if len(raw) > self._public_key.key_size // 8 - _PKCS1_OVERHEAD:
            raise StateEncryptionError("token too long for the configured key")
        return self._public_key.encrypt(raw, padding.PKCS1v15()).hex()

    def decrypt(self, state: str) -> str:
        """
        Recover the token from hex *state*.

        Raises ``InvalidStateError`` for anything that is not a ciphertext
        produced by the matching public key.  The message never contains
        the input or the underlying library error.
        """
        try:
            ciphertext = bytes.fromhex(state.strip())
        except (ValueError, AttributeError):
            raise InvalidStateError("state is not valid hex") from None

        if len(ciphertext) != self._size:
            raise InvalidStateError("state has the wrong length")

        try:
            token = self._private_key.decrypt(ciphertext, padding.PKCS1v15()).decode()
        except (ValueError, UnicodeDecodeError, binascii.Error):
            raise InvalidStateError("state failed to decrypt") from None

        # OpenSSL's implicit rejection turns bad padding into a synthetic
        # random message instead of an error; real tokens are printable text.
        if not token or not token.isprintable():
            raise InvalidStateError("state failed to decrypt")
        return token
