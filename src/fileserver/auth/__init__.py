"""
Per-directory HTTP Basic authentication.

    credentials.py  CredentialStore: reads a .password file on every check
    gate.py         AuthGate: turns path + headers into an AuthDecision
"""

from .credentials import CredentialStore
from .gate import AuthGate, AuthDecision, decode_basic_credentials, PASSWORD_FILE_NAME

__all__ = [
    "CredentialStore",
    "AuthGate",
    "AuthDecision",
    "decode_basic_credentials",
    "PASSWORD_FILE_NAME",
]
