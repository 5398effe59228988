"""
Errors
Typed failures raised by every akiguard component.

Messages carry the kind of failure and non-sensitive context only.
Plaintext, key material, tokens and decoded secrets never appear in them.
"""


class AkiguardError(Exception):
    """Base class for all akiguard errors."""


class ConfigurationError(AkiguardError):
    """A secret or setting is missing or invalid. Fatal at startup."""


# Malformed input

class MalformedInputError(AkiguardError, ValueError):
    """Input does not have the shape the codec expects."""


class InvalidEnvelopeError(MalformedInputError):
    """Envelope is not three well-formed hex segments."""


class InvalidDurationFormatError(MalformedInputError):
    """Duration string is not of the form <integer><s|m|h|d|w>."""


class CorruptPayloadError(MalformedInputError):
    """Compressed payload cannot be decoded."""


class InvalidTokenError(MalformedInputError):
    """Token is malformed or carries the wrong issuer/audience."""


# Authentication

class AuthenticationFailureError(AkiguardError):
    """Integrity check failed. Does not say whether key or data was wrong."""


class AuthenticationError(AuthenticationFailureError):
    """Envelope authentication tag did not verify."""


class InvalidSignatureError(AuthenticationFailureError):
    """Token signature did not verify."""


# Token lifecycle

class ExpiredError(AkiguardError):
    """A time-limited value is past its lifetime."""


class TokenExpiredError(ExpiredError):
    """Token is past its `exp` claim."""


class TypeMismatchError(AkiguardError):
    """A value of the wrong kind was presented."""


class WrongTokenTypeError(TypeMismatchError):
    """A refresh token was presented where an access token was expected, or vice versa."""

    def __init__(self, expected: str, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected a {expected} token, got {actual!r}")


# Sanitizer rejections

class ValidationError(AkiguardError, ValueError):
    """User input failed sanitization."""


class InvalidEmailError(ValidationError):
    """Email does not match local@domain.tld."""


class InvalidPhoneFormatError(ValidationError):
    """Phone number cannot be normalized to +254 format."""


# Internal failures

class EncryptionError(AkiguardError):
    """Key is unusable or the cipher call failed."""


class HashingError(AkiguardError):
    """Password hashing failed."""


class CompressionError(AkiguardError):
    """No codec in the chain could compress the input."""
