"""Credential lookup for settings injection.

This package provides:
- Credential handles (username/password, SSH private key, certificate)
- Read-only secret backends (environment, OS keyring, files)
- Secret reference resolution (${VAR}, @keyring:service/key, file://path)
- A configuration-backed, context-scoped credential store

Example usage:

    from mvn_settings.credentials import ConfiguredCredentialStore

    store = ConfiguredCredentialStore(settings.credentials)
    handle = store.lookup(context, "nexus-deployer")
"""

from .backend import SecretBackend
from .environment_backend import EnvironmentBackend
from .exceptions import (
    BackendNotAvailableError,
    CredentialError,
    CredentialFormatError,
    CredentialNotFoundError,
    UnsupportedCredentialError,
)
from .file_backend import FileBackend
from .keyring_backend import KeyringBackend
from .references import SecretReferenceResolver
from .store import ConfiguredCredentialStore, CredentialStore
from .types import (
    CertificateCredential,
    CredentialHandle,
    SSHUserPrivateKeyCredential,
    UsernamePasswordCredential,
)

__all__ = [
    # Backends
    "SecretBackend",
    "EnvironmentBackend",
    "KeyringBackend",
    "FileBackend",
    # Resolution
    "SecretReferenceResolver",
    # Store
    "CredentialStore",
    "ConfiguredCredentialStore",
    # Handles
    "CredentialHandle",
    "UsernamePasswordCredential",
    "SSHUserPrivateKeyCredential",
    "CertificateCredential",
    # Exceptions
    "CredentialError",
    "CredentialNotFoundError",
    "CredentialFormatError",
    "BackendNotAvailableError",
    "UnsupportedCredentialError",
]
