from __future__ import annotations

import base64
import hashlib
import os

from cryptography.fernet import Fernet, InvalidToken
from flask import current_app
from passlib.context import CryptContext


pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_passphrase(passphrase: str) -> str:
    return pwd_context.hash(passphrase)


def verify_passphrase(passphrase: str, stored_hash: str | None) -> bool:
    if not stored_hash:
        return False
    return pwd_context.verify(passphrase, stored_hash)


# ---------------------------------------------------------------------------
# Assignment encryption-at-rest
#
# Recipient names are encrypted before they are persisted, so the draw cannot
# be read from the database (or the organizer's participant list) directly.
#
# NOTE: anyone holding ASSIGNMENT_ENC_KEY / SECRET_KEY can still decrypt.
# ---------------------------------------------------------------------------


def _assignment_fernet() -> Fernet:
    """Returns a Fernet instance keyed by ASSIGNMENT_ENC_KEY or derived from SECRET_KEY."""
    explicit = (current_app.config.get("ASSIGNMENT_ENC_KEY") or os.environ.get("ASSIGNMENT_ENC_KEY") or "").strip()
    if explicit:
        # Expect a urlsafe base64-encoded 32-byte key.
        return Fernet(explicit.encode("utf-8"))

    # Derive a stable key from SECRET_KEY so decrypt works across restarts.
    secret = (current_app.config.get("SECRET_KEY") or "").encode("utf-8")
    digest = hashlib.sha256(b"familysanta-assignments|" + secret).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_recipient(name: str) -> str:
    """Encrypt recipient name -> ciphertext token (string)."""
    token = _assignment_fernet().encrypt(name.encode("utf-8"))
    return token.decode("utf-8")


def decrypt_recipient(token: str) -> str:
    """Decrypt ciphertext token -> recipient name. Raises ValueError on failure."""
    try:
        raw = _assignment_fernet().decrypt(token.encode("utf-8"))
        return raw.decode("utf-8")
    except (InvalidToken, ValueError, TypeError) as e:
        raise ValueError("Invalid assignment token") from e
