"""
akiguard — Security Utilities for the Akibeks Platform
Encryption, hashing, tokens, compression and input hygiene.

Five independent pieces, all configured from one SecurityConfig:
1. EnvelopeCipher — AES-256-GCM string encryption (iv:tag:ciphertext, hex)
2. Hasher — bcrypt passwords, lookup hashes, HMAC signatures
3. TokenManager — access/refresh JWTs with per-type secrets
4. TextCompressor — gzip with a run-length fallback, plus attachment records
5. Sanitizers — strings, emails, Kenyan phone numbers

Usage:
    from akiguard import SecurityConfig, EnvelopeCipher
    config = SecurityConfig.from_env()
    cipher = EnvelopeCipher(config)
    envelope = cipher.encrypt("KRA PIN A012345678Z")
"""

from akiguard.config import SecurityConfig
from akiguard.envelope import EnvelopeCipher, encrypt, decrypt
from akiguard.hashing import (
    Hasher,
    PasswordStrength,
    check_password_strength,
    generate_secure_password,
    generate_secure_token,
    generate_session_id,
)
from akiguard.tokens import (
    TokenManager,
    TokenPair,
    TokenPayload,
    TokenSubject,
    decode_token,
    extract_bearer_token,
    parse_duration,
)
from akiguard.compression import (
    Attachment,
    CompressedFile,
    TextCompressor,
    compress_file,
    compress_string,
    decompress_string,
    restore_file,
)
from akiguard.sanitize import sanitize_email, sanitize_kenyan_phone, sanitize_string

__version__ = "0.1.0"
__all__ = [
    "SecurityConfig",
    "EnvelopeCipher",
    "encrypt",
    "decrypt",
    "Hasher",
    "PasswordStrength",
    "check_password_strength",
    "generate_secure_password",
    "generate_secure_token",
    "generate_session_id",
    "TokenManager",
    "TokenPair",
    "TokenPayload",
    "TokenSubject",
    "decode_token",
    "extract_bearer_token",
    "parse_duration",
    "Attachment",
    "CompressedFile",
    "TextCompressor",
    "compress_file",
    "compress_string",
    "decompress_string",
    "restore_file",
    "sanitize_email",
    "sanitize_kenyan_phone",
    "sanitize_string",
]
