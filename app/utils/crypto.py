"""Credential cipher, session token signing, and voter identifier minting."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
from datetime import datetime
from typing import Any

from Crypto.Cipher import AES
from Crypto.Util.Padding import pad, unpad
from werkzeug.security import check_password_hash, generate_password_hash

SALTED_PREFIX = b"Salted__"
KEY_SIZE = 32
IV_SIZE = 16
VOTER_ID_PREFIX = "voter_"
MIN_VOTER_ID_BYTES = 16


class CipherError(ValueError):
    """Raised when a ciphertext cannot be decoded or decrypted."""


def evp_bytes_to_key(passphrase: str, salt: bytes, key_len: int, iv_len: int) -> tuple[bytes, bytes]:
    """OpenSSL EVP_BytesToKey with MD5, the derivation CryptoJS uses by default."""
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + passphrase.encode() + salt).digest()
        derived += block
    return derived[:key_len], derived[key_len : key_len + iv_len]


def decrypt_password(encrypted: str, passphrase: str) -> str:
    """Decrypt a CryptoJS ``AES.encrypt(text, passphrase)`` payload."""
    try:
        raw = base64.b64decode(encrypted, validate=True)
    except (ValueError, TypeError) as exc:
        raise CipherError("Ciphertext is not valid base64") from exc

    if len(raw) < 16 or raw[:8] != SALTED_PREFIX:
        raise CipherError("Invalid CryptoJS format")

    salt, ciphertext = raw[8:16], raw[16:]
    if not ciphertext or len(ciphertext) % AES.block_size:
        raise CipherError("Ciphertext is not a multiple of block size")

    key, iv = evp_bytes_to_key(passphrase, salt, KEY_SIZE, IV_SIZE)
    cipher = AES.new(key, AES.MODE_CBC, iv)
    try:
        plaintext = unpad(cipher.decrypt(ciphertext), AES.block_size)
        return plaintext.decode("utf-8")
    except ValueError as exc:
        raise CipherError("Invalid padding") from exc


def encrypt_password(password: str, passphrase: str, salt_front: str, salt_back: str) -> str:
    """Encrypt with a deterministic salt so provisioning matches the frontend output."""
    salt = (salt_front + salt_back).encode()[:8].ljust(8, b"\x00")
    key, iv = evp_bytes_to_key(passphrase, salt, KEY_SIZE, IV_SIZE)
    cipher = AES.new(key, AES.MODE_CBC, iv)
    ciphertext = cipher.encrypt(pad(password.encode("utf-8"), AES.block_size))
    return base64.b64encode(SALTED_PREFIX + salt + ciphertext).decode()


def hash_password(password: str) -> str:
    """Hash a password for storage."""
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    """Return whether ``password`` matches the stored hash."""
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def _b64u(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _b64u_dec(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _sign(raw: bytes, secret: str) -> str:
    return _b64u(hmac.new(secret.encode(), raw, hashlib.sha256).digest())


def make_session_token(admin: dict[str, Any], issued_at: datetime, expires_at: datetime, secret: str) -> str:
    """Return a signed ``payload.signature`` session token for an admin."""
    payload = {
        "admin_id": str(admin["id"]),
        "username": admin["username"],
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode()
    return _b64u(raw) + "." + _sign(raw, secret)


def parse_session_token(token: str, secret: str, now: datetime) -> dict[str, Any] | None:
    """Return token claims when the signature is valid and the token not expired."""
    try:
        raw_b64, signature = token.split(".", 1)
        raw = _b64u_dec(raw_b64)
    except ValueError:
        return None

    # Header values arrive latin-1 decoded and may hold non-ASCII characters.
    presented = signature.encode("utf-8", "surrogateescape")
    if not hmac.compare_digest(presented, _sign(raw, secret).encode()):
        return None

    try:
        claims = json.loads(raw)
    except ValueError:
        return None

    if not isinstance(claims, dict) or int(claims.get("exp", 0)) <= int(now.timestamp()):
        return None
    return claims


def generate_voter_id(entropy_bytes: int = MIN_VOTER_ID_BYTES) -> str:
    """Mint an opaque voter identifier from the OS CSPRNG."""
    return VOTER_ID_PREFIX + secrets.token_hex(max(entropy_bytes, MIN_VOTER_ID_BYTES))
