"""Password hashing with bcrypt."""

import logging

import bcrypt

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Adaptive, salted one-way password hashing."""

    def __init__(self, rounds: int = 12):
        """Initialize PasswordHasher.

        Args:
            rounds: Bcrypt cost factor (4-31). Each increment doubles the work.
        """
        self.rounds = rounds

    @staticmethod
    def _to_bytes(password: str) -> bytes:
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
        return password_bytes

    def hash(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(self._to_bytes(password), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain text password to verify.
            password_hash: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise (including malformed hashes).
        """
        if not password_hash:
            return False
        try:
            return bcrypt.checkpw(self._to_bytes(password), password_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.warning("Password verification against malformed hash: %s", e)
            return False
