"""Environment variable backend for CI/CD and containerized environments."""

import os

import structlog

log = structlog.get_logger(__name__)


class EnvironmentBackend:
    """Read secrets from environment variables.

    This backend is ideal for:
    - CI/CD pipelines where secrets are injected as env vars
    - Docker containers
    - Any ephemeral build agent

    Example:
        >>> import os
        >>> os.environ['NEXUS_PASSWORD'] = 's3cret'
        >>> backend = EnvironmentBackend()
        >>> password = backend.get('NEXUS_PASSWORD')
    """

    @property
    def name(self) -> str:
        return "environment"

    @property
    def available(self) -> bool:
        """Environment backend is always available."""
        return True

    def get(self, var_name: str) -> str | None:
        """Retrieve a secret from an environment variable.

        Args:
            var_name: Environment variable name (e.g., 'NEXUS_PASSWORD')

        Returns:
            Secret value or None if not set
        """
        value = os.getenv(var_name)

        if value is not None:
            log.debug("secret_read_from_environment", variable=var_name)

        return value
