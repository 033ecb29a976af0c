"""Enumerations for credential kinds and temporary artifact states."""

from enum import Enum


class CredentialKind(str, Enum):
    """Kinds of credentials that can be declared in configuration.

    - username_password: plain username and password pair
    - ssh_private_key: username with a PEM private key (and optional passphrase)
    - certificate: base64 encoded PKCS#12 keystore with an optional password
    """

    USERNAME_PASSWORD = "username_password"
    SSH_PRIVATE_KEY = "ssh_private_key"
    CERTIFICATE = "certificate"

    def __str__(self) -> str:
        return self.value


class ArtifactState(str, Enum):
    """Lifecycle of a temporary artifact.

    allocated -> written -> tracked -> released. ``released`` is terminal.
    """

    ALLOCATED = "allocated"
    WRITTEN = "written"
    TRACKED = "tracked"
    RELEASED = "released"

    def __str__(self) -> str:
        return self.value
