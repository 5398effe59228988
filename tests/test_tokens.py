"""
Tests for the access/refresh token manager.
Lifecycle, type discrimination, expiry, tampering and header parsing.
"""

import base64
import json
import sys
import time
from pathlib import Path

import jwt

sys.path.insert(0, str(Path(__file__).parent.parent))

from akiguard import SecurityConfig, TokenManager, TokenSubject
from akiguard.tokens import decode_token, extract_bearer_token, parse_duration
from akiguard.errors import (
    ExpiredError,
    InvalidDurationFormatError,
    InvalidSignatureError,
    InvalidTokenError,
    TokenExpiredError,
    TypeMismatchError,
    WrongTokenTypeError,
)

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"
SUBJECT = TokenSubject(
    subject_id="usr_1042",
    email="wanjiku@example.co.ke",
    role="client",
    session_id="sess-7f3a",
)


def make_config(**overrides) -> SecurityConfig:
    settings = dict(
        encryption_key=b"0123456789abcdef0123456789abcdef",
        access_token_secret=ACCESS_SECRET,
        refresh_token_secret=REFRESH_SECRET,
    )
    settings.update(overrides)
    return SecurityConfig(**settings)


def _expect(error_type, func, *args):
    try:
        func(*args)
    except error_type as e:
        return e
    raise AssertionError(f"{func.__name__} did not raise {error_type.__name__}")


def test_access_token_round_trip():
    """Verification returns the issued subject plus the stamped fields."""
    print("Testing access token round trip...", end=" ")
    manager = TokenManager(make_config())
    before = int(time.time())
    token = manager.issue_access_token(SUBJECT)
    payload = manager.verify_access_token(token)

    assert payload.subject == SUBJECT
    assert payload.subject_id == "usr_1042"
    assert payload.session_id == "sess-7f3a"
    assert payload.token_type == "access"
    assert len(payload.jti) == 32
    assert before <= payload.issued_at <= int(time.time())
    assert payload.expires_at - payload.issued_at == 7 * 86400
    print("PASS")


def test_refresh_token_round_trip():
    """Refresh tokens verify with the refresh verifier and last 30 days."""
    print("Testing refresh token round trip...", end=" ")
    manager = TokenManager(make_config())
    payload = manager.verify_refresh_token(manager.issue_refresh_token(SUBJECT))
    assert payload.subject == SUBJECT
    assert payload.token_type == "refresh"
    assert payload.expires_at - payload.issued_at == 30 * 86400
    print("PASS")


def test_session_id_optional():
    """Subjects without a session id round-trip with session_id None."""
    print("Testing optional session id...", end=" ")
    manager = TokenManager(make_config())
    subject = TokenSubject(subject_id="usr_1", email="a@b.co", role="admin")
    token = manager.issue_access_token(subject)
    assert "sid" not in decode_token(token)
    assert manager.verify_access_token(token).session_id is None
    print("PASS")


def test_unique_jti():
    """Every issued token carries a different jti."""
    print("Testing jti uniqueness...", end=" ")
    manager = TokenManager(make_config())
    tokens = [manager.issue_access_token(SUBJECT) for _ in range(20)]
    jtis = {decode_token(t)["jti"] for t in tokens}
    assert len(jtis) == 20
    assert manager.issued_count == 20
    print("PASS")


def test_wrong_token_type():
    """A refresh token is rejected by the access verifier and vice versa."""
    print("Testing token type discrimination...", end=" ")
    manager = TokenManager(make_config())
    pair = manager.issue_token_pair(SUBJECT)

    e = _expect(WrongTokenTypeError, manager.verify_access_token, pair.refresh_token)
    assert e.expected == "access" and e.actual == "refresh"
    assert isinstance(e, TypeMismatchError)

    e = _expect(WrongTokenTypeError, manager.verify_refresh_token, pair.access_token)
    assert e.expected == "refresh" and e.actual == "access"
    print("PASS")


def test_wrong_type_claim_under_right_secret():
    """A token signed with the access secret but typed refresh is a type mismatch."""
    print("Testing type claim check...", end=" ")
    manager = TokenManager(make_config())
    now = int(time.time())
    forged_type = jwt.encode(
        {
            "sub": "usr_1042", "email": SUBJECT.email, "role": "client",
            "token_type": "refresh", "jti": "abc", "iat": now, "exp": now + 60,
            "iss": "akibeks-api", "aud": "akibeks-app",
        },
        ACCESS_SECRET,
        algorithm="HS256",
    )
    _expect(WrongTokenTypeError, manager.verify_access_token, forged_type)
    print("PASS")


def test_expired_token():
    """Tokens issued past their lifetime fail with an expiry error."""
    print("Testing token expiry...", end=" ")
    config = make_config(access_token_lifetime="1s", refresh_token_lifetime="1h")
    thirty_days_ago = lambda: time.time() - 30 * 86400
    past = TokenManager(config, clock=thirty_days_ago)
    manager = TokenManager(config)

    access = past.issue_access_token(SUBJECT)
    refresh = past.issue_refresh_token(SUBJECT)
    e = _expect(TokenExpiredError, manager.verify_access_token, access)
    assert isinstance(e, ExpiredError)
    _expect(TokenExpiredError, manager.verify_refresh_token, refresh)

    assert manager.is_token_expired(access)
    fresh = TokenManager(make_config())
    assert not fresh.is_token_expired(fresh.issue_access_token(SUBJECT))
    print("PASS")


def test_bad_signature():
    """Tokens from another deployment or with edited claims fail the signature check."""
    print("Testing signature rejection...", end=" ")
    manager = TokenManager(make_config())
    foreign = TokenManager(make_config(
        access_token_secret="another-access-secret-0123456789abcdef",
        refresh_token_secret="another-refresh-secret-0123456789abcdef",
    ))
    _expect(InvalidSignatureError, manager.verify_access_token, foreign.issue_access_token(SUBJECT))
    _expect(InvalidSignatureError, manager.verify_refresh_token, foreign.issue_refresh_token(SUBJECT))

    # Escalate the role without re-signing
    header, payload, signature = manager.issue_access_token(SUBJECT).split(".")
    claims = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    claims["role"] = "admin"
    edited = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    _expect(InvalidSignatureError, manager.verify_access_token, f"{header}.{edited}.{signature}")
    print("PASS")


def test_malformed_and_foreign_claims():
    """Garbage, wrong issuer and wrong audience are invalid tokens."""
    print("Testing malformed tokens...", end=" ")
    manager = TokenManager(make_config())
    for bad in ["", "garbage", "a.b.c", None]:
        _expect(InvalidTokenError, manager.verify_access_token, bad)

    other_issuer = TokenManager(make_config(token_issuer="someone-else"))
    _expect(InvalidTokenError, manager.verify_access_token, other_issuer.issue_access_token(SUBJECT))

    other_audience = TokenManager(make_config(token_audience="another-app"))
    _expect(InvalidTokenError, manager.verify_access_token, other_audience.issue_access_token(SUBJECT))
    print("PASS")


def test_token_pair():
    """Pairs carry both tokens and their lifetimes in seconds."""
    print("Testing token pair...", end=" ")
    manager = TokenManager(make_config())
    pair = manager.issue_token_pair(SUBJECT)
    assert pair.expires_in == 604800
    assert pair.refresh_expires_in == 2592000
    assert manager.verify_access_token(pair.access_token).subject == SUBJECT
    assert manager.verify_refresh_token(pair.refresh_token).subject == SUBJECT

    short = TokenManager(make_config(access_token_lifetime="15m", refresh_token_lifetime="2w"))
    pair = short.issue_token_pair(SUBJECT)
    assert pair.expires_in == 900
    assert pair.refresh_expires_in == 1209600
    print("PASS")


def test_parse_duration():
    """<integer><unit> strings convert to seconds; anything else is rejected."""
    print("Testing duration parsing...", end=" ")
    assert parse_duration("30s") == 30
    assert parse_duration("5m") == 300
    assert parse_duration("2h") == 7200
    assert parse_duration("7d") == 604800
    assert parse_duration("1w") == 604800
    assert parse_duration("0s") == 0
    for bad in ["", "7", "d", "7 d", " 7d", "1.5h", "7D", "7y", "-1d", "7d\n", None]:
        _expect(InvalidDurationFormatError, parse_duration, bad)
    print("PASS")


def test_decode_token():
    """Unverified decode returns claims, or None for anything malformed."""
    print("Testing unverified decode...", end=" ")
    manager = TokenManager(make_config())
    claims = decode_token(manager.issue_refresh_token(SUBJECT))
    assert claims["sub"] == "usr_1042"
    assert claims["token_type"] == "refresh"
    for bad in ["", "garbage", "a.b.c", None, 42]:
        assert decode_token(bad) is None
    print("PASS")


def test_is_token_expired_fails_closed():
    """Malformed tokens and tokens without exp count as expired."""
    print("Testing expiry check fail-closed...", end=" ")
    manager = TokenManager(make_config())
    no_exp = jwt.encode({"sub": "x"}, ACCESS_SECRET, algorithm="HS256")
    assert manager.is_token_expired(no_exp)
    assert manager.is_token_expired("garbage")
    assert manager.is_token_expired("")
    print("PASS")


def test_extract_bearer_token():
    """Only the exact "Bearer <token>" form yields a token."""
    print("Testing bearer header parsing...", end=" ")
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
    for bad in [
        None,
        "",
        "Bearer",
        "Bearer ",
        "bearer abc",
        "Basic abc",
        "Bearer  abc",
        "Bearer abc ",
        "Bearer abc def",
        " Bearer abc",
        "Bearer\tabc",
        "Bearer abc\n",
    ]:
        assert extract_bearer_token(bad) is None, bad
    print("PASS")


def main():
    tests = [
        test_access_token_round_trip,
        test_refresh_token_round_trip,
        test_session_id_optional,
        test_unique_jti,
        test_wrong_token_type,
        test_wrong_type_claim_under_right_secret,
        test_expired_token,
        test_bad_signature,
        test_malformed_and_foreign_claims,
        test_token_pair,
        test_parse_duration,
        test_decode_token,
        test_is_token_expired_fails_closed,
        test_extract_bearer_token,
    ]
    failed = 0
    for test in tests:
        try:
            test()
        except Exception as e:
            print(f"FAIL: {e}")
            failed += 1
    print(f"\nResults: {len(tests) - failed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
