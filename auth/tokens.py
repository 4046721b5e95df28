"""
auth/tokens.py -- Session token encryption and cookie helpers.

Security design decisions:
  Cookie: the session cookie "user" carries the session token as a JWE
       compact string (python-jose, "dir" key management + A256GCM content
       encryption). Clients can neither read nor forge the token: decryption
       with a different key, or of a tampered value, fails the GCM tag check.

  Key: SHA-256 of SECRET_KEY, giving the 32 bytes A256GCM requires.
       SECRET_KEY is validated by core.config.Settings at startup.

  Failure mode: decrypt_session_token() returns None on any failure. The
       authentication guard treats None exactly like a missing cookie, so a
       tampered cookie and an absent one are indistinguishable to the caller.

  Lifetime: no max_age and no expiry claim. A token is never mutated; it is
       replaced by a new login or removed by logout.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import hashlib
import logging

from jose import jwe
from jose.constants import ALGORITHMS
from jose.exceptions import JOSEError

from core.config import get_settings

logger = logging.getLogger("personservice.auth")

SESSION_COOKIE = "user"

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ENCRYPTION_KEY: bytes = hashlib.sha256(_settings.secret_key.encode("utf-8")).digest()


# ---------------------------------------------------------------------------
# Encrypt / decrypt
# ---------------------------------------------------------------------------


def encrypt_session_token(token: str) -> str:
    """Return the JWE compact serialization of a session token."""
    sealed = jwe.encrypt(
        token.encode("utf-8"),
        _ENCRYPTION_KEY,
        algorithm=ALGORITHMS.DIR,
        encryption=ALGORITHMS.A256GCM,
    )
    return sealed.decode("ascii") if isinstance(sealed, bytes) else sealed


def decrypt_session_token(value: str) -> str | None:
    """Decrypt a cookie value back to its session token. None on any failure.

    The header is pinned to dir/A256GCM before decrypting so a client cannot
    steer key construction through the alg header.
    """
    try:
        header = jwe.get_unverified_header(value)
        if header.get("alg") != ALGORITHMS.DIR or header.get("enc") != ALGORITHMS.A256GCM:
            return None
        plaintext = jwe.decrypt(value, _ENCRYPTION_KEY)
    except (JOSEError, ValueError) as exc:
        logger.debug("Session cookie rejected: %s", exc)
        return None
    if plaintext is None:
        return None
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError:
        return None


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str) -> None:
    """Write the encrypted session token as the "user" cookie.

    httponly=True: JS cannot read the cookie.
    samesite="lax": not sent on cross-site POST.
    secure: only sent over HTTPS when SECURE_COOKIES=true.
    No max_age: a browser-session cookie, there is no expiry policy.
    """
    response.set_cookie(
        SESSION_COOKIE,
        value=encrypt_session_token(token),
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        path="/",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
