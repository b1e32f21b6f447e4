"""
=============================================================================
AUTHENTICATION GATE
=============================================================================

Decides whether a request may touch a file, based on HTTP Basic credentials
and a ``.password`` file next to the target.

=============================================================================
DECISION TABLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   .password in target's directory?                                  │
    │        │                                                             │
    │        ├── no  ──────────────────────────────► NO_AUTH_REQUIRED     │
    │        │                                                             │
    │        └── yes                                                       │
    │             │                                                        │
    │             ├── no Authorization header ─────► MISSING_CREDENTIALS  │
    │             │                                   (401 + challenge)    │
    │             │                                                        │
    │             ├── not "Basic <base64>" / bad                          │
    │             │   base64 / not UTF-8 ──────────► INVALID_CREDENTIALS  │
    │             │                                   (403)                │
    │             │                                                        │
    │             ├── user:pass not in file ───────► INVALID_CREDENTIALS  │
    │             │                                                        │
    │             └── user:pass in file ───────────► AUTHORIZED           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The mere presence of the file gates every file directly inside that
directory, whichever one is requested. Subdirectories are gated only by
their own ``.password``.

=============================================================================
"""

import base64
import binascii
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from .credentials import CredentialStore


PASSWORD_FILE_NAME = ".password"


class AuthDecision(Enum):
    """Outcome of the authentication check for one request."""
    NO_AUTH_REQUIRED = "no_auth_required"
    MISSING_CREDENTIALS = "missing_credentials"
    INVALID_CREDENTIALS = "invalid_credentials"
    AUTHORIZED = "authorized"

    @property
    def allowed(self) -> bool:
        """True when the request may proceed to method dispatch."""
        return self in (AuthDecision.NO_AUTH_REQUIRED, AuthDecision.AUTHORIZED)


def decode_basic_credentials(header: str) -> Optional[str]:
    """
    Extract ``user:pass`` from an ``Authorization: Basic ...`` value.

    The scheme token is matched case-insensitively. Returns None when the
    scheme is not Basic or the payload is not valid base64-encoded UTF-8.
    Missing ``=`` padding is restored before decoding.

    Examples:
        >>> decode_basic_credentials("Basic YWxpY2U6c2VjcmV0")
        'alice:secret'
        >>> decode_basic_credentials("Bearer abc") is None
        True
    """
    if not header.lower().startswith("basic "):
        return None

    payload = header[len("Basic "):].strip()
    # Clients may leave the padding off
    payload += "=" * (-len(payload) % 4)
    try:
        return base64.b64decode(payload, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        # UnicodeDecodeError is a ValueError
        return None


class AuthGate:
    """
    Per-directory Basic authentication check.

    Stateless apart from its settings, so one instance is shared by every
    worker thread.
    """

    def __init__(
        self,
        password_file_name: str = PASSWORD_FILE_NAME,
        realm: str = "667 Server",
    ):
        self.password_file_name = password_file_name
        self.realm = realm

    def store_for(self, resolved_path: Path) -> CredentialStore:
        """The credential store that guards ``resolved_path``."""
        return CredentialStore(Path(resolved_path).parent / self.password_file_name)

    def check(self, resolved_path: Path, headers: Mapping[str, str]) -> AuthDecision:
        """
        Decide whether the request may proceed.

        Args:
            resolved_path: Filesystem path the request targets.
            headers: Request headers with lower-cased names.

        Returns:
            The AuthDecision for this request.
        """
        store = self.store_for(resolved_path)
        if not store.exists():
            return AuthDecision.NO_AUTH_REQUIRED

        header = headers.get("authorization")
        if header is None:
            return AuthDecision.MISSING_CREDENTIALS

        credentials = decode_basic_credentials(header)
        if credentials is None:
            return AuthDecision.INVALID_CREDENTIALS

        if store.contains(credentials):
            return AuthDecision.AUTHORIZED
        return AuthDecision.INVALID_CREDENTIALS
