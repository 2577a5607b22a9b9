"""Tests for bearer token issuance."""

from __future__ import annotations

from datetime import timedelta

import pytest
from jose import JWTError

from ldpathjson.auth import ADMIN_ROLE, TokenIssuer
from ldpathjson.errors import ConfigurationError


@pytest.fixture
def issuer():
    return TokenIssuer("test-secret")


def test_claims(issuer):
    bearer = issuer.issue("camel-ldpath", "jdoe")
    claims = issuer.decode(bearer.token)
    assert claims["sub"] == "camel-ldpath"
    assert claims["iss"] == "jdoe"
    assert claims["role"] == ADMIN_ROLE
    assert claims["exp"] - claims["iat"] == 3600


def test_custom_ttl(issuer):
    bearer = issuer.issue("camel", "jdoe", ttl=timedelta(minutes=5))
    claims = issuer.decode(bearer.token)
    assert claims["exp"] - claims["iat"] == 300
    assert bearer.expires_at.tzinfo is not None


def test_authorization_header(issuer):
    bearer = issuer.issue("camel", "jdoe")
    assert bearer.authorization_header() == f"Bearer {bearer.token}"


def test_empty_issuer_rejected(issuer):
    with pytest.raises(ValueError):
        issuer.issue("camel", "")


def test_empty_secret_is_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenIssuer("")


def test_wrong_secret_fails_verification(issuer):
    bearer = issuer.issue("camel", "jdoe")
    with pytest.raises(JWTError):
        TokenIssuer("other-secret").decode(bearer.token)


def test_expired_token_fails_verification(issuer):
    bearer = issuer.issue("camel", "jdoe", ttl=timedelta(seconds=-10))
    with pytest.raises(JWTError):
        issuer.decode(bearer.token)
