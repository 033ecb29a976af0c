"""Execution context for one build run.

The context owns the list of cleanup obligations registered while settings
are supplied for the run, and optionally exposes output variables (such as
``MVN_SETTINGS``) to the steps that follow. The context owner tears it down
when the run ends, which releases every temporary artifact created for it.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

log = structlog.get_logger(__name__)

CleanupObligation = Callable[[], Any]


@dataclass
class ExecutionContext:
    """Context of a single build execution.

    Attributes:
        id: Unique execution id; temporary artifacts are tracked under it
        job_name: Name of the job, used for credential scoping
        workspace_path: Build workspace directory
        outputs: Named output variables for downstream steps, or None when
            the execution does not support exporting variables
    """

    id: str
    job_name: str = ""
    workspace_path: Path | None = None
    outputs: dict[str, str] | None = field(default_factory=dict)

    _obligations: list[CleanupObligation] = field(default_factory=list, init=False, repr=False)
    _released: bool = field(default=False, init=False, repr=False)

    @classmethod
    def create(cls, job_name: str = "", workspace_path: Path | None = None, **kwargs: Any) -> "ExecutionContext":
        """Create a context with a fresh random id."""
        execution_id = f"{job_name or 'build'}-{uuid.uuid4().hex[:12]}"
        return cls(id=execution_id, job_name=job_name, workspace_path=workspace_path, **kwargs)

    def add_cleanup(self, obligation: CleanupObligation) -> None:
        """Register work to run when the execution ends."""
        self._obligations.append(obligation)

    @property
    def pending_cleanups(self) -> int:
        return len(self._obligations)

    def release_all(self) -> None:
        """Run every cleanup obligation once, most recent first.

        Failures are logged and never raised: cleanup runs after the build
        result has been consumed and must not change it.
        """
        while self._obligations:
            obligation = self._obligations.pop()
            try:
                obligation()
            except Exception as e:
                log.warning("cleanup_obligation_failed", execution_id=self.id, error=str(e))
        self._released = True

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "ExecutionContext":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release_all()
