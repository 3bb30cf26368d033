"""Authentication utilities: admin password hashing."""

from passlib.context import CryptContext

# Pure-python scheme: no native bcrypt backend required
PWD_CONTEXT = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password for storage."""
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plaintext password against its hash."""
    return PWD_CONTEXT.verify(plain_password, password_hash)
