"""Scratch directory provisioning for execution contexts."""

from pathlib import Path
from typing import Protocol

from mvn_settings.engine.context import ExecutionContext
from mvn_settings.exceptions import ConfigurationError


class ScratchDirProvider(Protocol):
    """Supplies an existing, writable directory private to one execution."""

    def for_execution_context(self, context: ExecutionContext) -> Path: ...


class WorkspaceScratchDirProvider:
    """Use a sibling of the build workspace as scratch directory.

    For a workspace ``/builds/app`` the scratch directory is
    ``/builds/app@tmp``. Keeping secrets next to, not inside, the workspace
    means build steps that archive or publish the workspace never pick
    them up.
    """

    def __init__(self, suffix: str = "@tmp") -> None:
        self.suffix = suffix

    def for_execution_context(self, context: ExecutionContext) -> Path:
        """Return (and create) the scratch directory for ``context``.

        Raises:
            ConfigurationError: If the context has no workspace
        """
        if context.workspace_path is None:
            raise ConfigurationError(f"Execution '{context.id}' has no workspace")

        workspace = Path(context.workspace_path)
        scratch = workspace.with_name(workspace.name + self.suffix)
        scratch.mkdir(mode=0o700, parents=True, exist_ok=True)
        return scratch
