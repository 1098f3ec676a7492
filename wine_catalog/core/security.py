"""Password hashing and access token primitives.

Passwords are hashed with PBKDF2-HMAC-SHA256 and a per-password random
salt. The stored form is ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``
so the iteration count can be raised without invalidating old hashes.
Access tokens are opaque random hex strings with no embedded claims.
"""

import hashlib
import hmac
import os
import secrets

HASH_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 100_000
SALT_BYTES = 16


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Hash a plain text password for storage.

    Args:
        password: The plain text password.
        iterations: PBKDF2 iteration count.

    Returns:
        The encoded hash string.
    """
    salt = os.urandom(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return f"{HASH_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain password against a stored hash in constant time.

    Returns False for hashes in an unknown or corrupt format.
    """
    try:
        scheme, iterations, salt_hex, hash_hex = hashed_password.split("$", 3)
        if scheme != HASH_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
        rounds = int(iterations)
    except ValueError:
        return False

    digest = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest, expected)


def generate_token(nbytes: int = 128) -> str:
    """Generate a fresh opaque access token."""
    return secrets.token_hex(nbytes)
