"""Tests for the session token codec (issue / verify / reissue)."""

import jwt
import pytest

from mutabaah.tokens import Invalid, SessionClaims, TokenCodec, TokenConfig, Valid

SECRET = "unit-test-secret-0123456789-abcdefghijklmnopqrstuvwxyz-0123456789"
TTL = 8 * 60 * 60
NOW = 1_700_000_000

_B64URL = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _codec(secret: str = SECRET) -> TokenCodec:
    return TokenCodec(TokenConfig(secret=secret, ttl_seconds=TTL), clock=lambda: NOW)


def _claims(**overrides) -> SessionClaims:
    values = dict(
        user_id="300001",
        email="nurse@example.com",
        name="Nur Perawat",
        nip="300001",
        role="admin",
        managed_hospital_ids=("H1", "H2"),
    )
    values.update(overrides)
    return SessionClaims(**values)


def test_verify_returns_original_claims():
    codec = _codec()
    claims = _claims()

    result = codec.verify(codec.issue(claims))

    assert isinstance(result, Valid)
    assert result.session.claims == claims
    assert result.session.issued_at == NOW
    assert result.session.expires_at == NOW + TTL


def test_claims_without_managed_hospitals_round_trip():
    codec = _codec()
    claims = _claims(role="user", managed_hospital_ids=())

    result = codec.verify(codec.issue(claims))

    assert isinstance(result, Valid)
    assert result.session.claims.managed_hospital_ids == ()


def test_payload_uses_wire_claim_names():
    token = _codec().issue(_claims())
    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})

    assert payload["userId"] == "300001"
    assert payload["managedHospitalIds"] == ["H1", "H2"]
    assert payload["exp"] - payload["iat"] == TTL


def test_expiry_boundary():
    codec = _codec()
    token = codec.issue(_claims(), now=NOW)
    expires_at = NOW + TTL

    assert isinstance(codec.verify(token, now=expires_at - 1), Valid)
    assert isinstance(codec.verify(token, now=expires_at + 1), Invalid)


def test_wrong_secret_is_invalid():
    token = _codec("another-secret-0123456789-abcdefghijklmnopqrstuvwxyz-0123456789").issue(_claims())
    assert isinstance(_codec().verify(token), Invalid)


@pytest.mark.parametrize("token", [None, "", "abc", "a.b", "a.b.c.d", "not a token at all", "...."])
def test_garbage_is_invalid_without_raising(token):
    assert isinstance(_codec().verify(token), Invalid)


def test_single_character_tamper_is_always_rejected():
    codec = _codec()
    token = codec.issue(_claims())

    for i, ch in enumerate(token):
        if ch == ".":
            continue
        replacement = _B64URL[(_B64URL.index(ch) + 1) % len(_B64URL)]
        tampered = token[:i] + replacement + token[i + 1 :]
        result = codec.verify(tampered)
        assert isinstance(result, Invalid), f"tampered token verified at position {i}"


def test_unknown_role_is_rejected():
    payload = {
        "userId": "1",
        "email": "x@example.com",
        "name": "X",
        "nip": "1",
        "role": "owner",
        "iat": NOW,
        "exp": NOW + TTL,
    }
    token = jwt.encode(payload, SECRET, algorithm="HS256")
    assert isinstance(_codec().verify(token), Invalid)


def test_missing_expiry_is_rejected():
    payload = {"userId": "1", "email": "x@example.com", "name": "X", "nip": "1", "role": "user", "iat": NOW}
    token = jwt.encode(payload, SECRET, algorithm="HS256")
    assert isinstance(_codec().verify(token), Invalid)


def test_other_algorithm_is_rejected():
    payload = {**_claims().to_payload(), "iat": NOW, "exp": NOW + TTL}
    token = jwt.encode(payload, SECRET, algorithm="HS512")
    assert isinstance(_codec().verify(token), Invalid)


def test_reissue_keeps_claims_and_moves_expiry():
    codec = _codec()
    original = codec.verify(codec.issue(_claims(), now=NOW), now=NOW)
    assert isinstance(original, Valid)

    later = NOW + 3600
    refreshed = codec.verify(codec.reissue(original.session, now=later), now=later)

    assert isinstance(refreshed, Valid)
    assert refreshed.session.claims == original.session.claims
    assert refreshed.session.issued_at == later
    assert refreshed.session.expires_at == later + TTL
