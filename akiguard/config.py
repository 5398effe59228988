"""
Security Configuration
One immutable settings value, built once at process start.

Every component (EnvelopeCipher, Hasher, TokenManager) takes this object in
its constructor. Nothing else in the library reads the environment, so tests
can hand in throwaway secrets and production can fail fast on a bad deploy.

Usage:
    from akiguard import SecurityConfig
    config = SecurityConfig.from_env()
"""

import os
from dataclasses import dataclass

from akiguard.errors import ConfigurationError, InvalidDurationFormatError
from akiguard.tokens import parse_duration


KEY_SIZE = 32            # AES-256
MIN_SECRET_SIZE = 32     # HS256 signing secrets
DEFAULT_HASH_ROUNDS = 12
MIN_HASH_ROUNDS = 4      # bcrypt accepts 4..31
MAX_HASH_ROUNDS = 31

DEFAULT_ACCESS_LIFETIME = "7d"
DEFAULT_REFRESH_LIFETIME = "30d"
DEFAULT_ISSUER = "akibeks-api"
DEFAULT_AUDIENCE = "akibeks-app"

# Domain-separation label bound into every envelope as associated data
DEFAULT_ASSOCIATED_DATA = b"akibeks-data"


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _coerce_key(value: str | bytes | None) -> bytes:
    """
    Normalize the encryption key to 32 raw bytes.

    Accepts raw bytes, a 32-character string (UTF-8 encoded, the form the
    deployed .env files use) or a 64-character hex string.
    """
    if value is None or len(value) == 0:
        raise ConfigurationError("ENCRYPTION_KEY is required")

    if isinstance(value, str) and len(value) == KEY_SIZE * 2:
        try:
            return bytes.fromhex(value)
        except ValueError:
            pass  # Not hex, fall through to the UTF-8 check

    key = _as_bytes(value)
    if len(key) != KEY_SIZE:
        raise ConfigurationError(
            f"ENCRYPTION_KEY must be exactly {KEY_SIZE} bytes, got {len(key)}"
        )
    return key


def _require_secret(name: str, value: str | bytes | None) -> bytes:
    if value is None or len(value) == 0:
        raise ConfigurationError(f"{name} is required")
    secret = _as_bytes(value)
    if len(secret) < MIN_SECRET_SIZE:
        raise ConfigurationError(
            f"{name} must be at least {MIN_SECRET_SIZE} bytes long"
        )
    return secret


@dataclass(frozen=True)
class SecurityConfig:
    """
    Validated secrets and tunables for the whole utility layer.

    Construction fails with ConfigurationError on any missing or undersized
    secret, so a misconfigured process never starts serving requests.

    Args:
        encryption_key: 32-byte AES key (see _coerce_key for accepted forms).
        access_token_secret: HS256 secret for access tokens (>= 32 bytes).
        refresh_token_secret: HS256 secret for refresh tokens (>= 32 bytes,
            different from the access secret).
        hmac_secret: Key for signatures and data hashing. Defaults to the
            encryption key when unset.
        password_hash_rounds: bcrypt cost factor.
        access_token_lifetime: Duration string, e.g. "15m" or "7d".
        refresh_token_lifetime: Duration string, e.g. "30d".
        token_issuer: `iss` claim stamped and required on every token.
        token_audience: `aud` claim stamped and required on every token.
        associated_data: AEAD label bound into every envelope.
    """
    encryption_key: bytes
    access_token_secret: bytes
    refresh_token_secret: bytes
    hmac_secret: bytes | None = None
    password_hash_rounds: int = DEFAULT_HASH_ROUNDS
    access_token_lifetime: str = DEFAULT_ACCESS_LIFETIME
    refresh_token_lifetime: str = DEFAULT_REFRESH_LIFETIME
    token_issuer: str = DEFAULT_ISSUER
    token_audience: str = DEFAULT_AUDIENCE
    associated_data: bytes = DEFAULT_ASSOCIATED_DATA

    def __post_init__(self):
        # Frozen dataclass: normalized values go in through object.__setattr__
        object.__setattr__(self, "encryption_key", _coerce_key(self.encryption_key))
        access = _require_secret("JWT_SECRET", self.access_token_secret)
        refresh = _require_secret("JWT_REFRESH_SECRET", self.refresh_token_secret)
        if access == refresh:
            raise ConfigurationError(
                "JWT_SECRET and JWT_REFRESH_SECRET must be different"
            )
        object.__setattr__(self, "access_token_secret", access)
        object.__setattr__(self, "refresh_token_secret", refresh)

        if self.hmac_secret is not None:
            object.__setattr__(
                self, "hmac_secret", _require_secret("HMAC_SECRET", self.hmac_secret)
            )

        if not MIN_HASH_ROUNDS <= self.password_hash_rounds <= MAX_HASH_ROUNDS:
            raise ConfigurationError(
                f"PASSWORD_SALT_ROUNDS must be between {MIN_HASH_ROUNDS} "
                f"and {MAX_HASH_ROUNDS}"
            )

        for name, lifetime in (
            ("JWT_EXPIRES_IN", self.access_token_lifetime),
            ("JWT_REFRESH_EXPIRES_IN", self.refresh_token_lifetime),
        ):
            try:
                parse_duration(lifetime)
            except InvalidDurationFormatError as e:
                raise ConfigurationError(f"{name}: {e}") from e

        if not self.associated_data:
            raise ConfigurationError("associated_data must not be empty")

    @property
    def signing_key(self) -> bytes:
        """Key used for HMAC signatures and sensitive-data hashing."""
        return self.hmac_secret or self.encryption_key

    @property
    def access_token_ttl(self) -> int:
        """Access token lifetime in seconds."""
        return parse_duration(self.access_token_lifetime)

    @property
    def refresh_token_ttl(self) -> int:
        """Refresh token lifetime in seconds."""
        return parse_duration(self.refresh_token_lifetime)

    @classmethod
    def from_env(cls, environ=None) -> "SecurityConfig":
        """
        Build the config from environment variables.

        Args:
            environ: Mapping to read from. Defaults to os.environ.

        Raises:
            ConfigurationError: If a required variable is missing or invalid.
        """
        env = os.environ if environ is None else environ

        rounds = env.get("PASSWORD_SALT_ROUNDS", str(DEFAULT_HASH_ROUNDS))
        try:
            rounds = int(rounds)
        except ValueError:
            raise ConfigurationError("PASSWORD_SALT_ROUNDS must be an integer") from None

        return cls(
            encryption_key=env.get("ENCRYPTION_KEY"),
            access_token_secret=env.get("JWT_SECRET"),
            refresh_token_secret=env.get("JWT_REFRESH_SECRET"),
            hmac_secret=env.get("HMAC_SECRET") or None,
            password_hash_rounds=rounds,
            access_token_lifetime=env.get("JWT_EXPIRES_IN", DEFAULT_ACCESS_LIFETIME),
            refresh_token_lifetime=env.get("JWT_REFRESH_EXPIRES_IN", DEFAULT_REFRESH_LIFETIME),
            token_issuer=env.get("JWT_ISSUER", DEFAULT_ISSUER),
            token_audience=env.get("JWT_AUDIENCE", DEFAULT_AUDIENCE),
        )
