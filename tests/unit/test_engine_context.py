"""Unit tests for engine/context.py and engine/workspace.py."""

import stat
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from mvn_settings.engine.context import ExecutionContext
from mvn_settings.engine.workspace import WorkspaceScratchDirProvider
from mvn_settings.exceptions import ConfigurationError


class TestExecutionContextCreation:
    """Tests for ExecutionContext creation."""

    def test_create_with_id_only(self):
        ctx = ExecutionContext(id="build-1")

        assert ctx.job_name == ""
        assert ctx.workspace_path is None
        assert ctx.outputs == {}
        assert ctx.pending_cleanups == 0
        assert ctx.released is False

    def test_create_generates_unique_ids(self, tmp_path: Path):
        first = ExecutionContext.create(job_name="release", workspace_path=tmp_path)
        second = ExecutionContext.create(job_name="release", workspace_path=tmp_path)

        assert first.id.startswith("release-")
        assert first.id != second.id
        assert first.workspace_path == tmp_path

    def test_create_without_job_name(self):
        assert ExecutionContext.create().id.startswith("build-")

    def test_create_without_outputs(self):
        assert ExecutionContext.create(outputs=None).outputs is None


class TestCleanupObligations:
    """Tests for cleanup registration and release."""

    def test_release_runs_obligations_most_recent_first(self):
        ctx = ExecutionContext(id="build-1")
        calls: list[str] = []
        ctx.add_cleanup(lambda: calls.append("first"))
        ctx.add_cleanup(lambda: calls.append("second"))

        ctx.release_all()

        assert calls == ["second", "first"]
        assert ctx.pending_cleanups == 0
        assert ctx.released is True

    def test_release_runs_each_obligation_once(self):
        ctx = ExecutionContext(id="build-1")
        obligation = Mock()
        ctx.add_cleanup(obligation)

        ctx.release_all()
        ctx.release_all()

        obligation.assert_called_once_with()

    def test_failing_obligation_does_not_stop_others(self):
        ctx = ExecutionContext(id="build-1")
        survivor = Mock()
        ctx.add_cleanup(survivor)
        ctx.add_cleanup(Mock(side_effect=OSError("busy")))

        with patch("mvn_settings.engine.context.log") as mock_log:
            ctx.release_all()

        survivor.assert_called_once_with()
        mock_log.warning.assert_called_once_with("cleanup_obligation_failed", execution_id="build-1", error="busy")

    def test_context_manager_releases_on_error(self):
        obligation = Mock()

        with pytest.raises(RuntimeError):
            with ExecutionContext(id="build-1") as ctx:
                ctx.add_cleanup(obligation)
                raise RuntimeError("build failed")

        obligation.assert_called_once_with()
        assert ctx.released is True


class TestWorkspaceScratchDirProvider:
    """Tests for the workspace sibling scratch directory."""

    def test_sibling_directory(self, workspace: Path):
        ctx = ExecutionContext(id="build-1", workspace_path=workspace)

        scratch = WorkspaceScratchDirProvider().for_execution_context(ctx)

        assert scratch == workspace.parent / "workspace@tmp"
        assert scratch.is_dir()
        assert stat.S_IMODE(scratch.stat().st_mode) == 0o700

    def test_custom_suffix(self, workspace: Path):
        ctx = ExecutionContext(id="build-1", workspace_path=workspace)

        assert WorkspaceScratchDirProvider("@secrets").for_execution_context(ctx).name == "workspace@secrets"

    def test_existing_directory_is_reused(self, workspace: Path, scratch_dir: Path):
        ctx = ExecutionContext(id="build-1", workspace_path=workspace)

        assert WorkspaceScratchDirProvider().for_execution_context(ctx) == scratch_dir

    def test_no_workspace(self):
        with pytest.raises(ConfigurationError, match="build-1"):
            WorkspaceScratchDirProvider().for_execution_context(ExecutionContext(id="build-1"))
