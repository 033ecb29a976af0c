"""Abstract backend protocol for reading secret values."""

from typing import Protocol


class SecretBackend(Protocol):
    """Protocol defining the interface for secret backends.

    Backends are read-only: the settings provider consumes secrets that
    were stored elsewhere (CI secret injection, OS keyring, mounted files).
    """

    @property
    def name(self) -> str:
        """Backend identifier (e.g., 'keyring', 'environment', 'file')."""
        ...

    @property
    def available(self) -> bool:
        """Check if this backend is available on the current system."""
        ...
