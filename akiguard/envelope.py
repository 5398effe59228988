"""
Envelope — Authenticated String Encryption
AES-256-GCM with a fresh random IV per call and a fixed associated-data label.

Envelope format (all hex, colon-delimited):
    iv : tag : ciphertext

- iv:          16 random bytes, never reused
- tag:         16-byte GCM authentication tag
- ciphertext:  same length as the UTF-8 plaintext (empty for "")

The associated-data label separates these ciphertexts from any other use of
the same key. Decryption verifies the tag before a single plaintext byte is
returned: a wrong key and a tampered envelope fail identically.
"""

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from akiguard.config import DEFAULT_ASSOCIATED_DATA, KEY_SIZE
from akiguard.errors import AuthenticationError, EncryptionError, InvalidEnvelopeError

logger = logging.getLogger(__name__)


IV_SIZE = 16
TAG_SIZE = 16
SEPARATOR = ":"


def _cipher(key: bytes) -> AESGCM:
    if isinstance(key, str):
        key = key.encode("utf-8")
    if not isinstance(key, bytes) or len(key) != KEY_SIZE:
        raise EncryptionError(f"Encryption key must be exactly {KEY_SIZE} bytes")
    return AESGCM(key)


def encrypt(plaintext: str, key: bytes, associated_data: bytes = DEFAULT_ASSOCIATED_DATA) -> str:
    """
    Encrypt a string into an envelope.

    Args:
        plaintext: Any string, including "" and non-ASCII text.
        key: 32-byte AES key.
        associated_data: Domain-separation label, authenticated but not encrypted.

    Returns:
        "hex(iv):hex(tag):hex(ciphertext)".

    Raises:
        EncryptionError: If the key is the wrong size or the cipher fails.
    """
    aesgcm = _cipher(key)
    iv = os.urandom(IV_SIZE)
    try:
        sealed = aesgcm.encrypt(iv, plaintext.encode("utf-8"), associated_data)
    except (TypeError, ValueError, OverflowError):
        raise EncryptionError("Encryption failed") from None

    # AESGCM appends the tag to the ciphertext
    ciphertext, tag = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    return SEPARATOR.join((iv.hex(), tag.hex(), ciphertext.hex()))


def parse_envelope(envelope: str) -> tuple[bytes, bytes, bytes]:
    """
    Split an envelope into (iv, tag, ciphertext) bytes.

    Raises:
        InvalidEnvelopeError: On wrong segment count, bad hex, or wrong sizes.
    """
    if not isinstance(envelope, str):
        raise InvalidEnvelopeError("Envelope must be a string")

    parts = envelope.split(SEPARATOR)
    if len(parts) != 3:
        raise InvalidEnvelopeError(
            f"Envelope must have 3 segments, got {len(parts)}"
        )

    try:
        iv, tag, ciphertext = (bytes.fromhex(part) for part in parts)
    except ValueError:
        raise InvalidEnvelopeError("Envelope segments must be hex encoded") from None

    if len(iv) != IV_SIZE:
        raise InvalidEnvelopeError(f"IV must be {IV_SIZE} bytes")
    if len(tag) != TAG_SIZE:
        raise InvalidEnvelopeError(f"Authentication tag must be {TAG_SIZE} bytes")

    return iv, tag, ciphertext


def decrypt(envelope: str, key: bytes, associated_data: bytes = DEFAULT_ASSOCIATED_DATA) -> str:
    """
    Decrypt an envelope produced by encrypt().

    Raises:
        InvalidEnvelopeError: If the envelope is malformed.
        AuthenticationError: If the tag does not verify (wrong key or tampered data).
        EncryptionError: If the key is the wrong size.
    """
    aesgcm = _cipher(key)
    iv, tag, ciphertext = parse_envelope(envelope)

    try:
        plaintext = aesgcm.decrypt(iv, ciphertext + tag, associated_data)
    except InvalidTag:
        logger.warning("Envelope authentication failed")
        raise AuthenticationError("Envelope authentication failed") from None

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidEnvelopeError("Decrypted payload is not UTF-8 text") from None


class EnvelopeCipher:
    """
    Encrypt/decrypt bound to the configured key and associated-data label.

    Args:
        config: SecurityConfig supplying encryption_key and associated_data.
    """

    def __init__(self, config):
        self._key = config.encryption_key
        self._associated_data = config.associated_data

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string into an envelope."""
        return encrypt(plaintext, self._key, self._associated_data)

    def decrypt(self, envelope: str) -> str:
        """Decrypt an envelope back into the original string."""
        return decrypt(envelope, self._key, self._associated_data)
