"""OS-level keyring backend using system credential stores.

Platform Support:
- Linux: Secret Service API (GNOME Keyring, KWallet)
- macOS: Keychain
- Windows: Windows Credential Locker
"""

from typing import cast

import keyring
import structlog
from keyring.backends import fail
from keyring.errors import KeyringError

from .exceptions import BackendNotAvailableError, CredentialError

log = structlog.get_logger(__name__)


class KeyringBackend:
    """Read secrets from the OS keyring.

    Secrets are namespaced under ``mvn-settings/<service>`` so they do not
    collide with entries of other applications.

    Example:
        >>> backend = KeyringBackend()
        >>> password = backend.get('nexus', 'deployer')
    """

    NAMESPACE = "mvn-settings"

    @property
    def name(self) -> str:
        return "keyring"

    @property
    def available(self) -> bool:
        """Check if a functional keyring backend is configured.

        Returns False on headless systems where keyring falls back to its
        ``fail`` backend, or when the backend fails to initialize.
        """
        try:
            return not isinstance(keyring.get_keyring(), fail.Keyring)
        except Exception as e:
            log.debug("keyring_unavailable", error=str(e))
            return False

    def get(self, service: str, key: str) -> str | None:
        """Retrieve a secret from the OS keyring.

        Args:
            service: Service identifier (e.g., 'nexus')
            key: Key within service (e.g., 'deployer')

        Returns:
            Secret value or None if not found

        Raises:
            BackendNotAvailableError: If keyring is not available
            CredentialError: If the keyring operation fails
        """
        if not self.available:
            raise BackendNotAvailableError(
                "Keyring backend is not available",
                suggestion="Configure a keyring backend or use environment variables: ${VAR_NAME}",
            )

        try:
            secret = cast(str | None, keyring.get_password(f"{self.NAMESPACE}/{service}", key))
        except KeyringError as e:
            raise CredentialError(f"Keyring operation failed: {e}", reference=f"@keyring:{service}/{key}") from e

        if secret is not None:
            log.debug("secret_read_from_keyring", service=service, key=key)

        return secret
