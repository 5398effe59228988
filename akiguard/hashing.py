"""
Hashing & Signing
Password hashing, one-way lookup hashes and HMAC signatures.

- Passwords:     bcrypt, salted, cost factor from config
- Lookup hashes: SHA-256 over data + secret (deterministic, for indexed search)
- Signatures:    HMAC-SHA256, verified in constant time
"""

import hashlib
import hmac
import json
import logging
import re
import secrets
import string
from dataclasses import dataclass, field

import bcrypt

from akiguard.errors import HashingError

logger = logging.getLogger(__name__)


PASSWORD_SPECIALS = "!@#$%^&*"
PASSWORD_CHARSET = string.ascii_letters + string.digits + PASSWORD_SPECIALS
MIN_STRENGTH_SCORE = 4

_SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
_SIGNATURE = re.compile(r"[0-9a-fA-F]{64}")  # HMAC-SHA256 digest as hex


def generate_secure_token(length: int = 32) -> str:
    """Return `length` random bytes as hex."""
    return secrets.token_hex(length)


def generate_session_id() -> str:
    """Return a fresh 32-byte session identifier as hex."""
    return generate_secure_token(32)


def generate_secure_password(length: int = 16) -> str:
    """Generate a random password from letters, digits and !@#$%^&*."""
    return "".join(secrets.choice(PASSWORD_CHARSET) for _ in range(length))


@dataclass
class PasswordStrength:
    """Result of a password strength check."""
    score: int
    feedback: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.score >= MIN_STRENGTH_SCORE


def check_password_strength(password: str) -> PasswordStrength:
    """
    Score a password from 0 to 6.

    One point each for: 8+ characters, a lowercase letter, an uppercase
    letter, a digit, a special character, and a bonus for 12+ characters.
    A score of 4 or more is acceptable.
    """
    result = PasswordStrength(score=0)
    checks = [
        (len(password) >= 8, "Password must be at least 8 characters long"),
        (re.search(r"[a-z]", password), "Password must contain lowercase letters"),
        (re.search(r"[A-Z]", password), "Password must contain uppercase letters"),
        (re.search(r"\d", password), "Password must contain numbers"),
        (_SPECIAL_CHARS.search(password), "Password must contain special characters"),
    ]
    for passed, message in checks:
        if passed:
            result.score += 1
        else:
            result.feedback.append(message)

    if len(password) >= 12:
        result.score += 1

    return result


def _canonical(data) -> bytes:
    # Structured data is signed in a stable key order
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


class Hasher:
    """
    Password hashing and keyed signing with the configured secrets.

    Args:
        config: SecurityConfig supplying password_hash_rounds and signing_key.
    """

    def __init__(self, config):
        self.rounds = config.password_hash_rounds
        self._secret = config.signing_key

    def hash_password(self, password: str) -> str:
        """
        Hash a password with bcrypt.

        Raises:
            HashingError: If bcrypt rejects the input (e.g. over 72 bytes).
        """
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            return bcrypt.hashpw(password.encode("utf-8"), salt).decode("ascii")
        except (TypeError, ValueError) as e:
            raise HashingError(f"Password hashing failed: {type(e).__name__}") from None

    def verify_password(self, password: str, password_hash: str) -> bool:
        """
        Check a password against a stored bcrypt hash.

        Returns False for a mismatch and for a stored hash bcrypt cannot parse.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("ascii"))
        except (AttributeError, TypeError, ValueError):
            logger.warning("Password verification rejected a malformed hash or password")
            return False

    def hash_sensitive_data(self, data: str) -> str:
        """Deterministic SHA-256 of data + secret, as hex. For lookups, not passwords."""
        return hashlib.sha256(_canonical(data) + self._secret).hexdigest()

    def create_signature(self, data) -> str:
        """HMAC-SHA256 over a string (or JSON-serializable value), as hex."""
        return hmac.new(self._secret, _canonical(data), hashlib.sha256).hexdigest()

    def verify_signature(self, data, signature: str) -> bool:
        """
        Verify an HMAC signature in constant time.

        Any mismatch, including a different length or non-hex input, is False.
        """
        if not isinstance(signature, str) or not _SIGNATURE.fullmatch(signature):
            return False
        provided = bytes.fromhex(signature)
        expected = hmac.new(self._secret, _canonical(data), hashlib.sha256).digest()
        return hmac.compare_digest(provided, expected)
