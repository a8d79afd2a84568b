from datetime import timedelta

import pytest
from jose import jwt

from notifier.errors import ConfigurationError, InvalidToken
from notifier.tokens import TokenService

SECRET = "token-test-secret"


def _flip_char(text: str, index: int) -> str:
    replacement = "A" if text[index] != "A" else "B"
    return text[:index] + replacement + text[index + 1:]


def test_issue_then_verify_returns_same_user(clock):
    service = TokenService(SECRET, clock=clock)
    token = service.issue("user-123")

    claims = service.verify(token)

    assert claims.user_id == "user-123"
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)


def test_payload_carries_user_id_and_timestamps(clock):
    service = TokenService(SECRET, clock=clock)
    payload = jwt.get_unverified_claims(service.issue("abc"))

    assert payload["userId"] == "abc"
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_token_expires_after_one_day(clock):
    service = TokenService(SECRET, clock=clock)
    token = service.issue("user-1")

    clock.advance(timedelta(hours=23, minutes=59))
    assert service.verify(token).user_id == "user-1"

    clock.advance(timedelta(minutes=1))
    with pytest.raises(InvalidToken):
        service.verify(token)


def test_tampered_signature_fails(clock):
    service = TokenService(SECRET, clock=clock)
    header, payload, signature = service.issue("user-1").split(".")
    tampered = ".".join([header, payload, _flip_char(signature, 5)])

    with pytest.raises(InvalidToken):
        service.verify(tampered)


def test_tampered_payload_fails(clock):
    service = TokenService(SECRET, clock=clock)
    other = TokenService(SECRET, clock=clock)
    header, _, signature = service.issue("user-1").split(".")
    _, forged_payload, _ = other.issue("user-2").split(".")

    with pytest.raises(InvalidToken):
        service.verify(".".join([header, forged_payload, signature]))


def test_token_signed_with_other_secret_fails(clock):
    token = TokenService("another-secret", clock=clock).issue("user-1")

    with pytest.raises(InvalidToken):
        TokenService(SECRET, clock=clock).verify(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_tokens_fail(token, clock):
    with pytest.raises(InvalidToken):
        TokenService(SECRET, clock=clock).verify(token)


def test_token_without_user_claim_fails(clock):
    now = int(clock().timestamp())
    token = jwt.encode({"sub": "x", "iat": now, "exp": now + 60}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        TokenService(SECRET, clock=clock).verify(token)


def test_token_without_expiry_fails(clock):
    token = jwt.encode({"userId": "x", "iat": 1}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidToken):
        TokenService(SECRET, clock=clock).verify(token)


@pytest.mark.parametrize("secret", [None, ""])
def test_missing_secret_is_a_configuration_error(secret):
    with pytest.raises(ConfigurationError):
        TokenService(secret)


def test_secret_not_in_repr():
    assert SECRET not in repr(TokenService(SECRET))
