"""Resolve declared server/credential mappings into materialized credentials."""

from collections.abc import Sequence
from pathlib import Path

import structlog
from structlog.typing import FilteringBoundLogger

from mvn_settings.credentials.store import CredentialStore
from mvn_settings.engine.context import ExecutionContext
from mvn_settings.engine.materializer import CredentialMaterializer
from mvn_settings.exceptions import CredentialError
from mvn_settings.models.domain import ResolvedCredentialMap, ServerCredentialMapping


class CredentialResolver:
    """Resolve server credential mappings for one settings operation.

    Mappings are processed in declaration order. A mapping whose credential
    is unknown, out of scope, unreadable or of an unsupported kind is skipped
    with a warning naming the credential id; resolution continues with the
    remaining mappings. When two mappings target the same server id, the
    later successful one wins.

    Failures writing key material (:class:`SecretFileWriteError`) and
    interruptions propagate to the caller.
    """

    def __init__(self, materializer: CredentialMaterializer, log: FilteringBoundLogger | None = None) -> None:
        self.materializer = materializer
        self._log = log or structlog.get_logger(__name__)

    def resolve(
        self,
        mappings: Sequence[ServerCredentialMapping],
        store: CredentialStore,
        context: ExecutionContext,
        scratch_dir: Path,
    ) -> ResolvedCredentialMap:
        """Resolve ``mappings`` against ``store`` within ``context``.

        Returns:
            Server id -> resolved credential; empty when nothing resolved
        """
        resolved: ResolvedCredentialMap = {}

        for mapping in mappings:
            if not mapping.server_id or not mapping.credentials_id:
                self._log.warning(
                    "server_credential_mapping_incomplete",
                    server_id=mapping.server_id,
                    credentials_id=mapping.credentials_id,
                )
                continue

            try:
                handle = store.lookup(context, mapping.credentials_id)
            except CredentialError as e:
                self._log.warning(
                    "credential_lookup_failed",
                    server_id=mapping.server_id,
                    credentials_id=mapping.credentials_id,
                    error=e.message,
                )
                continue

            if handle is None:
                self._log.warning(
                    "credential_not_found",
                    server_id=mapping.server_id,
                    credentials_id=mapping.credentials_id,
                )
                continue

            try:
                credential = self.materializer.materialize(handle, scratch_dir)
            except CredentialError as e:
                self._log.warning(
                    "credential_materialization_failed",
                    server_id=mapping.server_id,
                    credentials_id=mapping.credentials_id,
                    error=e.message,
                )
                continue

            if mapping.server_id in resolved:
                self._log.debug(
                    "server_credential_overridden",
                    server_id=mapping.server_id,
                    credentials_id=mapping.credentials_id,
                )
            resolved[mapping.server_id] = credential

        return resolved
