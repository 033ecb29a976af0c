"""Credential-related exceptions.

This module re-exports credential exceptions from mvn_settings.exceptions
so credential code can import them from one place.
"""

from mvn_settings.exceptions import (
    BackendNotAvailableError,
    CredentialError,
    CredentialFormatError,
    CredentialNotFoundError,
    UnsupportedCredentialError,
)

__all__ = [
    "CredentialError",
    "CredentialNotFoundError",
    "CredentialFormatError",
    "BackendNotAvailableError",
    "UnsupportedCredentialError",
]
