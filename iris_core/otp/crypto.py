"""
Token Encryption
================
Symmetric encryption for OTP tokens.

Tokens are Fernet messages (AES-128-CBC with an HMAC-SHA256 tag) keyed by
a SHA-256 digest of the server secret, so any non-empty secret string can
be used as a key.
"""

import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from ..exceptions import TokenDecodeError


@lru_cache(maxsize=32)
def _fernet_for(secret_key: str) -> Fernet:
    digest = hashlib.sha256(secret_key.encode()).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt(plaintext: str, secret_key: str) -> str:
    """
    Encrypt a string with the given secret.

    Args:
        plaintext: Data to encrypt
        secret_key: Server-held secret

    Returns:
        URL-safe ciphertext string
    """
    return _fernet_for(secret_key).encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str, secret_key: str) -> str:
    """
    Decrypt a string produced by encrypt().

    Raises:
        TokenDecodeError: If the token is malformed, tampered with, or was
            encrypted with a different secret
    """
    try:
        return _fernet_for(secret_key).decrypt(ciphertext.encode()).decode()
    except (InvalidToken, UnicodeError, ValueError, TypeError) as e:
        raise TokenDecodeError("Token could not be decrypted") from e
