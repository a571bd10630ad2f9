"""Signed, time-limited bearer tokens (JWT)."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytz
from jose import JWTError, jwt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenClaims:
    subject_id: str
    role: str
    issued_at: datetime
    expires_at: datetime


class TokenIssuer:
    """Issues and verifies stateless access tokens.

    Tokens are never recorded server-side, so expiry is the only way a
    token stops being accepted.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(days=7),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def issue(self, subject_id: str, role: str, ttl: Optional[timedelta] = None) -> str:
        """Create a signed access token.

        Args:
            subject_id: Account id placed in the ``sub`` claim.
            role: Account role placed in the ``role`` claim.
            ttl: Optional lifetime overriding the default.

        Returns:
            Encoded JWT token string.
        """
        issued_at = datetime.now(pytz.utc)
        expires_at = issued_at + (ttl if ttl is not None else self.ttl)
        payload = {
            "sub": subject_id,
            "role": role,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[TokenClaims]:
        """Verify signature and expiry of a token.

        Args:
            token: Encoded JWT token string.

        Returns:
            TokenClaims if the token is valid, None if it is expired, tampered
            with or malformed.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug("Rejected access token: %s", e)
            return None

        subject_id = payload.get("sub")
        role = payload.get("role")
        if not subject_id or not role or "exp" not in payload:
            return None
        return TokenClaims(
            subject_id=subject_id,
            role=role,
            issued_at=datetime.fromtimestamp(payload.get("iat", 0), tz=pytz.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=pytz.utc),
        )
