"""
=============================================================================
MIME TYPE REGISTRY
=============================================================================

Maps file extensions to the Content-Type sent with GET and HEAD responses.

=============================================================================
LOOKUP RULES
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   /docs/Report.TXT   ──► extension_of() ──► "txt"                  │
    │                                                │                   │
    │                                                ▼                   │
    │                                            lookup()                │
    │                                                │                   │
    │                                                ▼                   │
    │                                           "text/plain"             │
    │                                                                     │
    │   /docs/Makefile     ──► ""       ──► application/octet-stream     │
    │   /docs/archive.xyz  ──► "xyz"    ──► application/octet-stream     │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

Extensions are stored WITHOUT the leading dot and looked up lower-cased.
No charset parameter is appended: the registry value is sent as-is.

=============================================================================
"""

from pathlib import PurePath
from typing import Dict, Union


# application/octet-stream = "I don't know what this is, treat as binary"
DEFAULT_MIME_TYPE = "application/octet-stream"


# =============================================================================
# DEFAULT MAPPINGS
# =============================================================================

DEFAULT_MIME_TYPES = {
    # Images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",

    # Text
    "txt": "text/plain",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",

    # Scripts and data
    "js": "application/javascript",
    "json": "application/json",
}


class MimeRegistry:
    """
    Extension → content-type table with a binary fallback.

    Built once at startup and shared by every worker. Nothing mutates it
    after the server starts, so no locking is needed.

    Usage:
        registry = MimeRegistry.default()
        registry.add("svg", "image/svg+xml")

        registry.lookup("png")              # 'image/png'
        registry.lookup("")                 # 'application/octet-stream'
        registry.content_type_for("a.HTM")  # 'text/html'
    """

    def __init__(self, default_type: str = DEFAULT_MIME_TYPE):
        self._types: Dict[str, str] = {}
        self.default_type = default_type

    @classmethod
    def default(cls) -> "MimeRegistry":
        """Create a registry preloaded with the common web types."""
        registry = cls()
        for extension, mime_type in DEFAULT_MIME_TYPES.items():
            registry.add(extension, mime_type)
        return registry

    def add(self, extension: str, mime_type: str) -> "MimeRegistry":
        """
        Add or override a mapping.

        Args:
            extension: Extension without the leading dot ("png", not ".png").
            mime_type: Content-Type value to send.

        Returns:
            Self for method chaining.
        """
        self._types[extension.lstrip(".").lower()] = mime_type
        return self

    def lookup(self, extension: str) -> str:
        """
        Get the content type for an extension.

        Unknown and empty extensions resolve to the default type.
        """
        return self._types.get(extension.lower(), self.default_type)

    def content_type_for(self, path: Union[str, PurePath]) -> str:
        """Get the content type for a file path."""
        return self.lookup(extension_of(path))

    def __contains__(self, extension: str) -> bool:
        return extension.lower() in self._types

    def __len__(self) -> int:
        return len(self._types)


def extension_of(path: Union[str, PurePath]) -> str:
    """
    Get the lower-cased text after the last dot of the file name.

    Examples:
        >>> extension_of("/www/index.HTML")
        'html'
        >>> extension_of("/www/README")
        ''
        >>> extension_of("/www/.password")
        'password'
    """
    name = PurePath(path).name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()
