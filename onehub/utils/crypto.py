"""
App-password encryption shared with the email server.

AES-256-GCM with a PBKDF2-SHA256 derived key. Stored format is
`iv:ciphertext:auth_tag`, each part hex encoded, 16-byte IV.
"""

import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from onehub.config import settings

KDF_SALT = b"loster-email-server"
KDF_ITERATIONS = 100_000
IV_LENGTH = 16
TAG_LENGTH = 16


@lru_cache(maxsize=4)
def derive_key(master_key: str) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=KDF_SALT, iterations=KDF_ITERATIONS)
    return kdf.derive(master_key.encode("utf-8"))


def encrypt_secret(plaintext: str, master_key: str | None = None) -> str:
    key = derive_key(master_key or settings.encryption_master_key)
    iv = os.urandom(IV_LENGTH)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return f"{iv.hex()}:{ciphertext.hex()}:{tag.hex()}"


def decrypt_secret(token: str, master_key: str | None = None) -> str:
    """Reverse encrypt_secret. Raises ValueError on a malformed or tampered token."""
    parts = token.split(":")
    if len(parts) != 3:
        raise ValueError("Invalid encrypted data format")

    try:
        iv, ciphertext, tag = (bytes.fromhex(p) for p in parts)
    except ValueError as e:
        raise ValueError("Invalid encrypted data format") from e

    key = derive_key(master_key or settings.encryption_master_key)
    try:
        return AESGCM(key).decrypt(iv, ciphertext + tag, None).decode("utf-8")
    except InvalidTag as e:
        raise ValueError("Failed to decrypt: authentication failed") from e
