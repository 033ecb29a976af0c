"""Secret reference resolution with automatic backend selection."""

import re
from collections.abc import Sequence
from pathlib import Path

import structlog

from .backend import SecretBackend
from .environment_backend import EnvironmentBackend
from .exceptions import (
    BackendNotAvailableError,
    CredentialError,
    CredentialNotFoundError,
)
from .file_backend import FileBackend
from .keyring_backend import KeyringBackend

log = structlog.get_logger(__name__)


class SecretReferenceResolver:
    """Resolve secret references to actual values.

    Supports four reference formats:
    1. ${VAR_NAME} - Environment variable
    2. @keyring:service/key - OS keyring
    3. file://path/to/secret - Local file (relative to the base directory)
    4. Direct value - Returned as-is (not recommended)

    Resolved values are never cached: every settings operation reads the
    current secret and nothing outlives the call.

    Example:
        >>> resolver = SecretReferenceResolver()
        >>> password = resolver.resolve("${NEXUS_PASSWORD}")
        >>> key = resolver.resolve("@keyring:nexus/deploy-key")
        >>> pem = resolver.resolve("file:///run/secrets/deploy_key")
    """

    ENV_PATTERN = re.compile(r"^\$\{([A-Z_][A-Z0-9_]*)\}$")
    KEYRING_PATTERN = re.compile(r"^@keyring:([^/]+)/(.+)$")
    FILE_PATTERN = re.compile(r"^file://(.+)$")

    _SUGGESTIONS = {
        "keyring": "Configure a keyring backend or use environment variables: ${VAR_NAME}",
        "environment": None,
        "file": None,
    }

    _NOT_FOUND = {
        "environment": "Environment variable not set: {0}",
        "keyring": "Secret not found in keyring: {0}/{1}",
        "file": "Secret file not found: {0}",
    }

    def __init__(
        self,
        base_dir: Path | None = None,
        backends: Sequence[SecretBackend] | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            base_dir: Directory relative ``file://`` references resolve against
            backends: Optional sequence of custom backends to use instead of
                the default backends. Backends are matched by their ``name``.
        """
        self.environment_backend = EnvironmentBackend()
        self.keyring_backend = KeyringBackend()
        self.file_backend = FileBackend(base_dir)

        self._custom_backends: tuple[SecretBackend, ...] | None = tuple(backends) if backends else None

    @property
    def backends(self) -> tuple[SecretBackend, ...]:
        """Return active backends in resolution order."""
        if self._custom_backends is not None:
            return self._custom_backends
        return (self.environment_backend, self.keyring_backend, self.file_backend)

    def resolve(self, value: str) -> str:
        """Resolve a secret reference to its value.

        Args:
            value: Secret reference or direct value

        Returns:
            Resolved secret value

        Raises:
            CredentialNotFoundError: If the secret doesn't exist
            BackendNotAvailableError: If the required backend is unavailable
            CredentialError: If the backend fails
        """
        env_match = self.ENV_PATTERN.match(value)
        if env_match:
            return self._resolve_via_backends("environment", (env_match.group(1),), value)

        keyring_match = self.KEYRING_PATTERN.match(value)
        if keyring_match:
            return self._resolve_via_backends("keyring", (keyring_match.group(1), keyring_match.group(2)), value)

        file_match = self.FILE_PATTERN.match(value)
        if file_match:
            return self._resolve_via_backends("file", (file_match.group(1),), value)

        # Direct value; warn without echoing it
        if self._looks_like_token(value):
            log.warning(
                "direct_secret_value",
                hint="Consider using ${ENV_VAR}, @keyring: or file:// references instead.",
            )

        return value

    def is_reference(self, value: str) -> bool:
        """Check whether ``value`` uses one of the reference formats."""
        return any(p.match(value) for p in (self.ENV_PATTERN, self.KEYRING_PATTERN, self.FILE_PATTERN))

    def _resolve_via_backends(self, backend_name: str, args: tuple[str, ...], reference: str) -> str:
        """Resolve a reference through the first backend with a matching name.

        Args:
            backend_name: Target backend name ('environment', 'keyring', 'file')
            args: Positional arguments for the backend's ``get``
            reference: Original reference string for error messages

        Returns:
            Resolved secret value

        Raises:
            CredentialNotFoundError: If the secret doesn't exist
            BackendNotAvailableError: If the required backend is unavailable
        """
        for backend in self.backends:
            if getattr(backend, "name", None) != backend_name:
                continue

            if not backend.available:
                raise BackendNotAvailableError(
                    f"{backend_name.capitalize()} backend is not available on this system",
                    reference=reference,
                    suggestion=self._SUGGESTIONS.get(backend_name),
                )

            try:
                secret = backend.get(*args)  # type: ignore[attr-defined]
            except CredentialError:
                raise
            except Exception as e:
                raise CredentialError(
                    f"Failed to resolve {backend_name} secret: {type(e).__name__}",
                    reference=reference,
                ) from e

            if secret is None:
                raise CredentialNotFoundError(
                    self._NOT_FOUND[backend_name].format(*args),
                    reference=reference,
                )

            log.debug("secret_reference_resolved", backend=backend_name, reference=reference)
            return secret

        raise BackendNotAvailableError(
            f"No {backend_name} backend configured",
            reference=reference,
            suggestion=f"Ensure a {backend_name} backend is available in the resolver.",
        )

    @staticmethod
    def _looks_like_token(value: str) -> bool:
        """Heuristic check if value looks like an API token or password hash.

        Detects common patterns:
        - GitHub tokens (ghp_, gho_, etc.)
        - Long alphanumeric strings (>20 chars)
        """
        if not value:
            return False

        if value.startswith(("ghp_", "gho_", "ghu_", "ghs_", "ghr_")):
            return True

        return len(value) > 20 and value.replace("-", "").replace("_", "").isalnum()
