"""Encryption of OAuth tokens at rest.

FERNET_KEY may hold several comma-separated keys. The first encrypts; all of
them decrypt, so a new key can be prepended before old rows are re-encrypted.
"""

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from growthtrack.core.config import settings


_fernet: MultiFernet | None = None


def _configured_keys() -> list[str]:
    return [k.strip() for k in settings.FERNET_KEY.split(",") if k.strip()]


def get_fernet() -> MultiFernet:
    """Build (once) the cipher from FERNET_KEY."""
    global _fernet
    if _fernet is None:
        keys = _configured_keys()
        if not keys:
            raise RuntimeError(
                "FERNET_KEY not configured. "
                'Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"'
            )
        _fernet = MultiFernet([Fernet(k.encode()) for k in keys])
    return _fernet


def reset_fernet() -> None:
    """Drop the cached cipher (after FERNET_KEY changes)."""
    global _fernet
    _fernet = None


def encrypt_token(token: str) -> str:
    if not token:
        return ""
    return get_fernet().encrypt(token.encode()).decode()


def decrypt_token(encrypted: str) -> str:
    """
    Decrypt a stored token.

    Raises:
        ValueError: ciphertext was not produced by any configured key
    """
    if not encrypted:
        return ""
    try:
        return get_fernet().decrypt(encrypted.encode()).decode()
    except InvalidToken:
        raise ValueError("Invalid or corrupted encrypted token")


def rotate_token(encrypted: str) -> str:
    """Re-encrypt a stored token under the current (first) key."""
    if not encrypted:
        return ""
    try:
        return get_fernet().rotate(encrypted.encode()).decode()
    except InvalidToken:
        raise ValueError("Invalid or corrupted encrypted token")
