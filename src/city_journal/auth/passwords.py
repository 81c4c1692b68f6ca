"""Password hashing for email/password accounts.

Passwords are stored as salted PBKDF2-HMAC-SHA256 hashes using the
``cryptography`` KDF primitives.

## Stored Format

```
pbkdf2_sha256$<iterations>$<salt b64>$<hash b64>
```

The iteration count is stored with each hash, so raising
``PASSWORD_HASH_ITERATIONS`` only affects new passwords; old hashes keep
verifying.
"""

from __future__ import annotations

import base64
import logging
import secrets

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from city_journal.config import get_settings

logger = logging.getLogger(__name__)

SCHEME = "pbkdf2_sha256"
SALT_BYTES = 16
KEY_LENGTH = 32


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )


def hash_password(password: str, iterations: int | None = None) -> str:
    """Hash a password for storage.

    Args:
        password: Plaintext password
        iterations: PBKDF2 rounds (default from settings)

    Returns:
        Encoded hash string including scheme, rounds and salt
    """
    if iterations is None:
        iterations = get_settings().password_hash_iterations

    salt = secrets.token_bytes(SALT_BYTES)
    key = _kdf(salt, iterations).derive(password.encode("utf-8"))

    return "$".join(
        [
            SCHEME,
            str(iterations),
            base64.b64encode(salt).decode("ascii"),
            base64.b64encode(key).decode("ascii"),
        ]
    )


def verify_password(password: str, encoded: str | None) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False for accounts without a password and for unparseable hashes.
    """
    if not encoded:
        return False

    try:
        scheme, iterations, salt_b64, key_b64 = encoded.split("$")
        if scheme != SCHEME:
            logger.warning(f"Unknown password hash scheme: {scheme}")
            return False
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(key_b64)
        kdf = _kdf(salt, int(iterations))
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False

    try:
        kdf.verify(password.encode("utf-8"), expected)
    except InvalidKey:
        return False
    return True
