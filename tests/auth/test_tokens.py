"""Tests for auth/tokens.py - bearer token issue and verification."""

import jwt
import pytest

from auth.exceptions import ConfigurationError, InvalidPayloadError, InvalidTokenError
from auth.tokens import DEFAULT_EXPIRY_SECONDS, TokenService, parse_expiry
from auth.types import AuthPayload

SECRET = "test-signing-secret-0123456789abcdef"


@pytest.fixture
def tokens(clock):
    return TokenService(SECRET, expiry="1h", clock=clock)


@pytest.fixture
def payload():
    return AuthPayload(subject="5f1c3e0a-8c1f-4d2b-9c53-0a1b2c3d4e5f", email="user@example.com")


def _forge(claims: dict, secret: str = SECRET) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


class TestParseExpiry:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (3600, 3600),
            ("3600", 3600),
            ("90s", 90),
            ("15m", 900),
            ("1h", 3600),
            ("2 hours", 7200),
            ("1d", 86400),
            ("2 days", 172800),
            ("1w", 604800),
            ("1.5h", 5400),
            ("5000ms", 5),
            ("1H", 3600),
        ],
    )
    def test_accepts_seconds_and_durations(self, value, expected):
        assert parse_expiry(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["", "soon", "1 fortnight", "h1", "-5", "0", 0, -10, "500ms", None, True],
    )
    def test_falls_back_to_default(self, value):
        assert parse_expiry(value) == DEFAULT_EXPIRY_SECONDS

    def test_custom_default(self):
        assert parse_expiry("nonsense", default=60) == 60


class TestTokenServiceInit:
    def test_missing_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            TokenService("")

    def test_invalid_expiry_uses_default(self):
        assert TokenService(SECRET, expiry="whenever").expiry_seconds == 3600


class TestIssue:
    def test_contains_subject_email_and_expiry(self, tokens, payload, clock):
        token = tokens.issue(payload)

        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims["sub"] == payload.subject
        assert claims["email"] == payload.email
        assert claims["iat"] == int(clock.now)
        assert claims["exp"] == int(clock.now) + 3600

    def test_signed_with_hs256(self, tokens, payload):
        token = tokens.issue(payload)
        assert jwt.get_unverified_header(token)["alg"] == "HS256"


class TestVerify:
    def test_round_trip(self, tokens, payload):
        assert tokens.verify(tokens.issue(payload)) == payload

    def test_valid_until_just_before_expiry(self, tokens, payload, clock):
        token = tokens.issue(payload)
        clock.advance(3599)
        assert tokens.verify(token) == payload

    def test_expired_token_rejected(self, clock, payload):
        short = TokenService(SECRET, expiry=1, clock=clock)
        token = short.issue(payload)

        clock.advance(2)

        with pytest.raises(InvalidTokenError):
            short.verify(token)

    def test_wrong_secret_rejected(self, tokens, payload):
        other = TokenService("a-completely-different-secret-value!")
        with pytest.raises(InvalidTokenError):
            other.verify(tokens.issue(payload))

    def test_tampered_token_rejected(self, tokens, payload):
        token = tokens.issue(payload)
        header, body, signature = token.split(".")
        tampered = f"{header}.{body}.{signature[:-4]}AAAA"

        with pytest.raises(InvalidTokenError):
            tokens.verify(tampered)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer x.y.z"])
    def test_malformed_token_rejected(self, tokens, token):
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_none_algorithm_rejected(self, tokens, clock):
        token = jwt.encode(
            {"sub": "abc", "email": "user@example.com", "exp": int(clock.now) + 60},
            key=None,
            algorithm="none",
        )
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_missing_exp_rejected(self, tokens):
        token = _forge({"sub": "abc", "email": "user@example.com"})
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_missing_subject_is_invalid_payload(self, tokens, clock):
        token = _forge({"email": "user@example.com", "exp": int(clock.now) + 60})
        with pytest.raises(InvalidPayloadError):
            tokens.verify(token)

    def test_missing_email_is_invalid_payload(self, tokens, clock):
        token = _forge({"sub": "abc", "exp": int(clock.now) + 60})
        with pytest.raises(InvalidPayloadError):
            tokens.verify(token)

    def test_non_string_email_is_invalid_payload(self, tokens, clock):
        token = _forge({"sub": "abc", "email": ["user@example.com"], "exp": int(clock.now) + 60})
        with pytest.raises(InvalidPayloadError):
            tokens.verify(token)

    def test_empty_subject_is_invalid_payload(self, tokens, clock):
        token = _forge({"sub": "", "email": "user@example.com", "exp": int(clock.now) + 60})
        with pytest.raises(InvalidPayloadError):
            tokens.verify(token)

    def test_invalid_payload_is_an_invalid_token(self):
        assert issubclass(InvalidPayloadError, InvalidTokenError)

    def test_extra_claims_are_ignored(self, tokens, clock):
        token = _forge(
            {"sub": "abc", "email": "user@example.com", "exp": int(clock.now) + 60, "admin": True}
        )
        assert tokens.verify(token) == AuthPayload(subject="abc", email="user@example.com")
