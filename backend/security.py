import hashlib
import hmac
import secrets
import sys
from typing import Optional

HASH_ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = 260000


def hash_password(password: str, salt: Optional[str] = None, iterations: int = HASH_ITERATIONS) -> str:
    """
    Hash a password with a random salt.

    Returns a single string "pbkdf2_sha256$<iterations>$<salt>$<hex digest>"
    suitable for the ADMIN_PASSWORD_HASH setting.
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"{HASH_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, _ = encoded.split("$", 3)
        iterations = int(iterations)
    except ValueError:
        return False
    if algorithm != HASH_ALGORITHM:
        return False
    candidate = hash_password(password, salt, iterations)
    return hmac.compare_digest(candidate.encode("utf-8"), encoded.encode("utf-8"))


def verify_credentials(username: str, password: str, expected_username: str, password_hash: str) -> bool:
    """Check both fields without short-circuiting, so timing doesn't reveal which one was wrong."""
    username_ok = hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8"))
    password_ok = verify_password(password, password_hash)
    return username_ok and password_ok


if __name__ == "__main__":
    # Generate a value for ADMIN_PASSWORD_HASH:
    #   python backend/security.py <password>
    if len(sys.argv) != 2:
        print("usage: python security.py <password>")
        sys.exit(1)
    print(hash_password(sys.argv[1]))
