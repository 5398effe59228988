"""
Session Tokens
Signed, expiring, typed JWTs for the auth layer.

Every login hands out an access/refresh pair:
- access tokens are short-lived and signed with JWT_SECRET
- refresh tokens live longer and are signed with JWT_REFRESH_SECRET

Using a different secret per type means a leaked access secret cannot mint
refresh tokens. The `token_type` claim is checked as well, but only after the
signature verifies.

Lifecycle per token: Issued -> Valid -> Expired | Rejected.
There is no in-process revocation list; session tables handle that.
"""

import logging
import re
import secrets
import time
from dataclasses import dataclass

import jwt

from akiguard.errors import (
    InvalidDurationFormatError,
    InvalidSignatureError,
    InvalidTokenError,
    TokenExpiredError,
    WrongTokenTypeError,
)

logger = logging.getLogger(__name__)


ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"
JTI_SIZE = 16
BEARER_PREFIX = "Bearer "

DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}
_DURATION = re.compile(r"([0-9]+)([smhdw])")
_NO_WHITESPACE = re.compile(r"\S+")


def parse_duration(text: str) -> int:
    """
    Convert a duration string like "15m" or "7d" to seconds.

    Raises:
        InvalidDurationFormatError: If the string is not <integer><s|m|h|d|w>.
    """
    match = _DURATION.fullmatch(text) if isinstance(text, str) else None
    if not match:
        raise InvalidDurationFormatError(f"Invalid duration format: {text!r}")
    value, unit = match.groups()
    return int(value) * DURATION_UNITS[unit]


def extract_bearer_token(header: str | None) -> str | None:
    """
    Pull the token out of an Authorization header.

    Only the exact form "Bearer <token>" is accepted. Anything else,
    including extra spaces or an empty token, returns None.
    """
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):]
    if not _NO_WHITESPACE.fullmatch(token):
        return None
    return token


@dataclass
class TokenSubject:
    """Who a token is about. Supplied by the caller at login/refresh."""
    subject_id: str
    email: str
    role: str
    session_id: str | None = None


@dataclass
class TokenPayload(TokenSubject):
    """A verified token: the subject plus the fields stamped at issue time."""
    token_type: str = ACCESS
    jti: str = ""
    issued_at: int = 0
    expires_at: int = 0

    @classmethod
    def from_claims(cls, claims: dict) -> "TokenPayload":
        return cls(
            subject_id=claims["sub"],
            email=claims["email"],
            role=claims["role"],
            session_id=claims.get("sid"),
            token_type=claims["token_type"],
            jti=claims["jti"],
            issued_at=claims["iat"],
            expires_at=claims["exp"],
        )

    @property
    def subject(self) -> TokenSubject:
        return TokenSubject(
            subject_id=self.subject_id,
            email=self.email,
            role=self.role,
            session_id=self.session_id,
        )


@dataclass
class TokenPair:
    """Access + refresh tokens with their lifetimes in seconds."""
    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int


class TokenManager:
    """
    Issues and verifies access/refresh tokens.

    Args:
        config: SecurityConfig with both signing secrets, lifetimes,
            issuer and audience.
        clock: Returns the current UNIX time. Injected by tests to issue
            tokens in the past.
    """

    def __init__(self, config, clock=time.time):
        self.issuer = config.token_issuer
        self.audience = config.token_audience
        self._secrets = {
            ACCESS: config.access_token_secret,
            REFRESH: config.refresh_token_secret,
        }
        self._lifetimes = {
            ACCESS: config.access_token_ttl,
            REFRESH: config.refresh_token_ttl,
        }
        self._clock = clock
        self._issued_count = 0

    def _issue(self, subject: TokenSubject, token_type: str) -> str:
        now = int(self._clock())
        jti = secrets.token_hex(JTI_SIZE)
        claims = {
            "sub": str(subject.subject_id),
            "email": subject.email,
            "role": subject.role,
            "token_type": token_type,
            "jti": jti,
            "iat": now,
            "exp": now + self._lifetimes[token_type],
            "iss": self.issuer,
            "aud": self.audience,
        }
        if subject.session_id is not None:
            claims["sid"] = subject.session_id

        token = jwt.encode(claims, self._secrets[token_type], algorithm=ALGORITHM)
        self._issued_count += 1
        logger.debug("Issued %s token jti=%s", token_type, jti)
        return token

    def issue_access_token(self, subject: TokenSubject) -> str:
        """Sign a new access token for the subject."""
        return self._issue(subject, ACCESS)

    def issue_refresh_token(self, subject: TokenSubject) -> str:
        """Sign a new refresh token for the subject."""
        return self._issue(subject, REFRESH)

    def issue_token_pair(self, subject: TokenSubject) -> TokenPair:
        """Issue an access token and a refresh token together."""
        return TokenPair(
            access_token=self.issue_access_token(subject),
            refresh_token=self.issue_refresh_token(subject),
            expires_in=self._lifetimes[ACCESS],
            refresh_expires_in=self._lifetimes[REFRESH],
        )

    def _verify(self, token: str, token_type: str) -> TokenPayload:
        try:
            claims = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "jti", "sub", "token_type"]},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Rejected expired %s token", token_type)
            raise TokenExpiredError(f"{token_type.capitalize()} token expired") from None
        except jwt.InvalidSignatureError:
            other_type = self._signed_as_other_type(token, token_type)
            if other_type is not None:
                logger.warning("Rejected %s token presented as %s", other_type, token_type)
                raise WrongTokenTypeError(token_type, other_type) from None
            logger.warning("Rejected %s token with bad signature", token_type)
            raise InvalidSignatureError(f"Invalid {token_type} token signature") from None
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected malformed %s token: %s", token_type, type(e).__name__)
            raise InvalidTokenError(f"Invalid {token_type} token") from None

        if claims["token_type"] != token_type:
            logger.warning("Rejected %s token presented as %s", claims["token_type"], token_type)
            raise WrongTokenTypeError(token_type, claims["token_type"])

        try:
            return TokenPayload.from_claims(claims)
        except KeyError:
            raise InvalidTokenError(f"Invalid {token_type} token") from None

    def _signed_as_other_type(self, token: str, token_type: str) -> str | None:
        """
        Return the declared type if the token verifies under the other type's secret.

        Each type has its own secret, so a refresh token shown to the access
        verifier fails the signature check first. This tells "wrong type"
        apart from "forged" without trusting any unverified claim.
        """
        other_type = REFRESH if token_type == ACCESS else ACCESS
        try:
            claims = jwt.decode(
                token,
                self._secrets[other_type],
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={"verify_exp": False},
            )
        except jwt.InvalidTokenError:
            return None
        return claims.get("token_type", other_type)

    def verify_access_token(self, token: str) -> TokenPayload:
        """
        Verify an access token.

        Raises:
            TokenExpiredError: Past its expiry.
            InvalidSignatureError: Not signed with the access secret.
            InvalidTokenError: Malformed, or wrong issuer/audience.
            WrongTokenTypeError: A validly signed token of another type.
        """
        return self._verify(token, ACCESS)

    def verify_refresh_token(self, token: str) -> TokenPayload:
        """Verify a refresh token. Raises the same errors as verify_access_token."""
        return self._verify(token, REFRESH)

    def is_token_expired(self, token: str) -> bool:
        """
        Best-effort expiry check on the unverified `exp` claim.

        Malformed tokens and tokens without `exp` count as expired.
        """
        claims = decode_token(token)
        if not claims or not isinstance(claims.get("exp"), (int, float)):
            return True
        return claims["exp"] < int(self._clock())

    @property
    def issued_count(self) -> int:
        """Total number of tokens issued by this manager."""
        return self._issued_count


def decode_token(token: str) -> dict | None:
    """Decode claims WITHOUT verifying the signature. For diagnostics only."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except (jwt.InvalidTokenError, TypeError, ValueError):
        return None
    return claims if isinstance(claims, dict) else None
