"""Bearer token issuance for outbound repository requests.

Tokens are short-lived HS256 JWTs minted on behalf of the user named in the
inbound message. Each outbound request gets a fresh token; nothing here is
cached.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from pydantic import BaseModel

from ldpathjson.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Role claim that lets the fetch bypass fine-grained repository authorization
ADMIN_ROLE = "fedoraAdmin"

DEFAULT_TTL = timedelta(hours=1)


class BearerToken(BaseModel):
    """A signed token plus the claims it was minted with."""

    subject: str
    issuer: str
    expires_at: datetime
    role: str
    token: str

    def authorization_header(self) -> str:
        """Value for the ``Authorization`` request header."""
        return f"Bearer {self.token}"


class TokenIssuer:
    """Mint signed bearer tokens.

    Parameters
    ----------
    secret:
        Signing key. An empty key is a deployment error and raises
        :class:`~ldpathjson.errors.ConfigurationError` immediately.
    algorithm:
        JWS algorithm passed to :func:`jose.jwt.encode`.
    """

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ConfigurationError(
                "JWT signing secret is not configured (set JWT_SECRET)",
            )
        self._secret = secret
        self.algorithm = algorithm

    def issue(
        self,
        subject: str,
        issuer: str,
        ttl: timedelta = DEFAULT_TTL,
        role: str = ADMIN_ROLE,
    ) -> BearerToken:
        """Create a token for *subject* acting on behalf of *issuer*."""
        if not issuer:
            raise ValueError("Token issuer must be a non-empty identity")

        now = datetime.now(timezone.utc)
        expires_at = now + ttl
        claims = {
            "sub": subject,
            "iss": issuer,
            "iat": now,
            "exp": expires_at,
            "role": role,
        }
        token = jwt.encode(claims, self._secret, algorithm=self.algorithm)
        logger.debug(
            "Issued token for %s (issuer %s) expiring %s",
            subject, issuer, expires_at.isoformat(),
        )
        return BearerToken(
            subject=subject,
            issuer=issuer,
            expires_at=expires_at,
            role=role,
            token=token,
        )

    def decode(self, token: str) -> dict:
        """Verify *token* and return its claims.

        Raises
        ------
        jose.JWTError
            If the token signature is invalid or it has expired.
        """
        return jwt.decode(token, self._secret, algorithms=[self.algorithm])
