"""Random tokens and secret hashing."""

import base64
import hashlib
import hmac
import secrets

_PBKDF2_ITERATIONS = 390_000


def generate_secure_token(length: int = 32) -> str:
    """Generate a URL-safe token from ``length`` random bytes."""
    return base64.urlsafe_b64encode(secrets.token_bytes(length)).decode("utf-8").rstrip("=")


def generate_state() -> str:
    """Generate a state parameter for CSRF protection."""
    return generate_secure_token(32)


def generate_nonce() -> str:
    """Generate a nonce binding the ID token to one authorization request."""
    return generate_secure_token(32)


def generate_code_verifier() -> str:
    """Generate a PKCE code verifier (64 characters)."""
    return generate_secure_token(48)


def generate_account_secret() -> str:
    """Generate the password of an account that only logs in through OIDC."""
    return secrets.token_hex(32)


def generate_opaque_user_id(prefix: str = "oidc-user-") -> str:
    return prefix + secrets.token_hex(16)


def hash_secret(secret: str, *, salt: bytes | None = None) -> str:
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", secret.encode("utf-8"), salt, _PBKDF2_ITERATIONS)
    return "pbkdf2_sha256${}${}${}".format(
        _PBKDF2_ITERATIONS, salt.hex(), digest.hex()
    )


def verify_secret(secret: str, hashed: str) -> bool:
    try:
        algorithm, iterations, salt, digest = hashed.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hashlib.pbkdf2_hmac(
        "sha256", secret.encode("utf-8"), bytes.fromhex(salt), int(iterations)
    )
    return hmac.compare_digest(candidate.hex(), digest)
