"""
Temporary artifact tracking with guaranteed cleanup.

Every file the provider writes for an execution (private keys, keystores,
the final settings.xml) is allocated through :class:`TempArtifactTracker`
and registered under the execution's operation id. ``release_all`` deletes
everything registered for one operation and leaves other operations alone.

Artifact lifecycle::

    allocated -> written -> tracked -> released

Allocation with an ``operation_id`` registers the file immediately, so an
operation interrupted between allocation and tracking still leaves a
complete list for cleanup.

Example:
    >>> tracker = TempArtifactTracker()
    >>> path = tracker.allocate(scratch, "maven-", "-settings.xml", operation_id="build-1")
    >>> tracker.write(path, content)
    >>> tracker.track(path, "build-1")
    >>> tracker.release_all("build-1")
"""

import os
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

import structlog
from structlog.typing import FilteringBoundLogger

from mvn_settings.enums import ArtifactState

log = structlog.get_logger(__name__)


@dataclass
class TempArtifact:
    """A temporary file and the operation responsible for deleting it."""

    path: Path
    operation_id: str | None
    state: ArtifactState = ArtifactState.ALLOCATED


class TempArtifactTracker:
    """Allocate uniquely named temporary files and delete them per operation.

    Thread Safety:
        All registry access is guarded by a lock. File names come from
        :func:`tempfile.mkstemp`, which never hands out the same name twice
        in one directory, even across threads and processes.
    """

    def __init__(self, log: FilteringBoundLogger | None = None) -> None:
        self._log = log or structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._by_path: dict[Path, TempArtifact] = {}
        self._by_operation: dict[str, list[TempArtifact]] = {}

    def allocate(
        self,
        scratch_dir: Path,
        prefix: str,
        suffix: str,
        operation_id: str | None = None,
    ) -> Path:
        """Create an empty, uniquely named file readable only by the owner.

        Args:
            scratch_dir: Existing directory to create the file in
            prefix: File name prefix
            suffix: File name suffix
            operation_id: Register the file for cleanup under this operation

        Returns:
            Path of the new file
        """
        fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix, dir=scratch_dir)
        os.close(fd)
        path = Path(name)

        artifact = TempArtifact(path=path, operation_id=operation_id)
        with self._lock:
            self._by_path[path] = artifact
            if operation_id is not None:
                self._by_operation.setdefault(operation_id, []).append(artifact)

        self._log.debug("temp_artifact_allocated", path=str(path), operation_id=operation_id)
        return path

    def write(self, path: Path, data: str | bytes) -> None:
        """Write ``data`` to an allocated artifact.

        Raises:
            OSError: If the file cannot be written
        """
        if isinstance(data, bytes):
            path.write_bytes(data)
        else:
            path.write_text(data, encoding="utf-8")

        with self._lock:
            artifact = self._by_path.get(path)
            if artifact is not None and artifact.state == ArtifactState.ALLOCATED:
                artifact.state = ArtifactState.WRITTEN

    def track(self, path: Path, operation_id: str) -> TempArtifact:
        """Register ``path`` for deletion when ``operation_id`` is released.

        Paths not created by :meth:`allocate` can be tracked as well.
        Tracking an already tracked path is a no-op.
        """
        with self._lock:
            artifact = self._by_path.get(path)
            if artifact is None:
                artifact = TempArtifact(path=path, operation_id=operation_id, state=ArtifactState.WRITTEN)
                self._by_path[path] = artifact

            if artifact.state == ArtifactState.RELEASED:
                return artifact

            if artifact.operation_id is None:
                artifact.operation_id = operation_id
            operation = self._by_operation.setdefault(operation_id, [])
            if artifact not in operation:
                operation.append(artifact)
            artifact.state = ArtifactState.TRACKED
            return artifact

    def artifacts(self, operation_id: str) -> list[Path]:
        """Paths registered for ``operation_id`` that are not yet released."""
        with self._lock:
            return [
                a.path for a in self._by_operation.get(operation_id, []) if a.state != ArtifactState.RELEASED
            ]

    def state(self, path: Path) -> ArtifactState | None:
        with self._lock:
            artifact = self._by_path.get(path)
            return artifact.state if artifact else None

    def release_all(self, operation_id: str) -> list[Path]:
        """Delete every artifact registered for ``operation_id``.

        Missing files count as released. Deletion failures are logged as
        warnings and the artifact stays registered so a later call can
        retry; nothing is raised.

        Returns:
            Paths that could not be deleted
        """
        with self._lock:
            pending = [a for a in self._by_operation.get(operation_id, []) if a.state != ArtifactState.RELEASED]

        failed: list[Path] = []
        for artifact in pending:
            try:
                artifact.path.unlink(missing_ok=True)
            except OSError as e:
                self._log.warning(
                    "temp_artifact_cleanup_failed",
                    path=str(artifact.path),
                    operation_id=operation_id,
                    error=str(e),
                )
                failed.append(artifact.path)
                continue

            with self._lock:
                artifact.state = ArtifactState.RELEASED
                self._by_path.pop(artifact.path, None)
            self._log.debug("temp_artifact_released", path=str(artifact.path), operation_id=operation_id)

        with self._lock:
            remaining = [a for a in self._by_operation.get(operation_id, []) if a.state != ArtifactState.RELEASED]
            if remaining:
                self._by_operation[operation_id] = remaining
            else:
                self._by_operation.pop(operation_id, None)

        return failed
