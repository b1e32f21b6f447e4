"""
Credential store backed by a plain-text ``.password`` file.

File format, one pair per line, no quoting or escaping:

    alice:secret
    bob:hunter2

The file is opened and scanned on every call to ``contains()``. There is no
cache, so edits made while the server runs take effect on the next request.
"""

import logging
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Membership queries against one ``.password`` file.

    Usage:
        store = CredentialStore("/var/www/private/.password")
        if store.contains("alice:secret"):
            ...
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        """Check whether the credentials file is present."""
        return self.path.exists()

    def contains(self, credentials: str) -> bool:
        """
        Check for a line that exactly matches ``user:pass``.

        Both the line and the credentials are trimmed before comparing.
        A file that cannot be read matches nothing.
        """
        wanted = credentials.strip()
        try:
            with self.path.open("r", encoding="utf-8", errors="replace") as f:
                for line in f:
                    if line.strip() == wanted:
                        return True
        except OSError as e:
            logger.warning(f"Could not read credentials file {self.path}: {e}")
        return False

    def __repr__(self) -> str:
        return f"CredentialStore({str(self.path)!r})"
