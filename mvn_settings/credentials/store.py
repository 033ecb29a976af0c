"""Credential store interface and its configuration-backed implementation."""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase
from typing import TYPE_CHECKING, Protocol

import structlog
from pydantic import SecretStr

from mvn_settings.config.settings import CredentialConfig
from mvn_settings.enums import CredentialKind

from .references import SecretReferenceResolver
from .types import (
    CertificateCredential,
    CredentialHandle,
    SSHUserPrivateKeyCredential,
    UsernamePasswordCredential,
)

if TYPE_CHECKING:
    from mvn_settings.engine.context import ExecutionContext

log = structlog.get_logger(__name__)


class CredentialStore(Protocol):
    """Context-scoped lookup of credentials by id.

    Implementations return None when the id is unknown or not visible to the
    context, and may raise :class:`~mvn_settings.exceptions.CredentialError`
    when a known credential cannot be read.
    """

    def lookup(self, context: ExecutionContext, credentials_id: str) -> object | None: ...


class ConfiguredCredentialStore:
    """Credentials declared in configuration, resolved on demand.

    Secret references are resolved at lookup time through a
    :class:`SecretReferenceResolver`, so every execution sees the current
    secret and nothing is kept in memory between lookups. A credential is
    visible to a context when one of its ``jobs`` patterns matches the
    context's job name.

    Example:
        >>> store = ConfiguredCredentialStore(settings.credentials)
        >>> handle = store.lookup(context, "nexus-deployer")
    """

    def __init__(
        self,
        credentials: Iterable[CredentialConfig],
        resolver: SecretReferenceResolver | None = None,
    ) -> None:
        self._credentials: dict[str, CredentialConfig] = {c.id: c for c in credentials}
        self.resolver = resolver or SecretReferenceResolver()

    def __contains__(self, credentials_id: object) -> bool:
        return credentials_id in self._credentials

    def lookup(self, context: ExecutionContext, credentials_id: str) -> CredentialHandle | None:
        """Look up and resolve a credential for ``context``.

        Returns:
            Credential handle, or None if unknown or out of the context's scope

        Raises:
            CredentialError: If one of the credential's secrets cannot be resolved
        """
        config = self._credentials.get(credentials_id)
        if config is None:
            return None

        if not any(fnmatchcase(context.job_name, pattern) for pattern in config.jobs):
            log.debug("credential_out_of_scope", credentials_id=credentials_id, job_name=context.job_name)
            return None

        if config.kind == CredentialKind.USERNAME_PASSWORD:
            return UsernamePasswordCredential(
                id=config.id,
                username=config.username or "",
                password=self._secret(config.password),
                description=config.description,
            )
        if config.kind == CredentialKind.SSH_PRIVATE_KEY:
            return SSHUserPrivateKeyCredential(
                id=config.id,
                username=config.username or "",
                private_key=self._secret(config.private_key),
                passphrase=self._optional_secret(config.passphrase),
                description=config.description,
            )
        return CertificateCredential(
            id=config.id,
            keystore=self._secret(config.keystore),
            password=self._optional_secret(config.password),
            description=config.description,
        )

    def _secret(self, reference: SecretStr | None) -> SecretStr:
        if reference is None:
            return SecretStr("")
        return SecretStr(self.resolver.resolve(reference.get_secret_value()))

    def _optional_secret(self, reference: SecretStr | None) -> SecretStr | None:
        if reference is None:
            return None
        return self._secret(reference)
