"""
Security Utilities

Password hashing and opaque token helpers.

- Passwords are hashed with bcrypt via passlib.
- Session ids and password-reset tokens are generated with secrets.token_urlsafe.
- Reset tokens are SHA-256 hashed before storage so a database leak does not
  expose usable tokens.
"""

import hashlib
import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_LENGTH = 32  # 256 bits of entropy


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Check a password against a stored hash. Accounts without a hash never match."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def generate_token() -> str:
    """Generate a URL-safe random token."""
    return secrets.token_urlsafe(TOKEN_LENGTH)


def hash_token(token: str) -> str:
    """Hex-encoded SHA-256 of a token, used for at-rest storage."""
    return hashlib.sha256(token.encode()).hexdigest()
