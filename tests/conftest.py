"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest
from pydantic import SecretStr

from mvn_settings.credentials.types import UsernamePasswordCredential
from mvn_settings.engine.artifacts import TempArtifactTracker
from mvn_settings.engine.context import ExecutionContext
from mvn_settings.engine.workspace import WorkspaceScratchDirProvider
from mvn_settings.models.domain import ServerCredentialMapping, SettingsTemplate

SETTINGS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<settings xmlns="http://maven.apache.org/SETTINGS/1.0.0">
  <!-- corporate settings -->
  <servers>
    <server>
      <id>releases</id>
      <username>old-user</username>
      <password>old-pass</password>
      <filePermissions>664</filePermissions>
    </server>
    <server>
      <id>snapshots</id>
      <configuration>
        <timeout>120</timeout>
      </configuration>
    </server>
  </servers>
  <mirrors>
    <mirror>
      <id>central-proxy</id>
      <mirrorOf>central</mirrorOf>
    </mirror>
  </mirrors>
</settings>
"""


class FakeCredentialStore:
    """In-memory credential store recording lookups."""

    def __init__(self, credentials=None, failing=None):
        self.credentials = dict(credentials or {})
        self.failing = dict(failing or {})
        self.lookups: list[str] = []

    def lookup(self, context, credentials_id):
        self.lookups.append(credentials_id)
        if credentials_id in self.failing:
            raise self.failing[credentials_id]
        return self.credentials.get(credentials_id)


class FakeTemplateStore:
    """In-memory template store."""

    def __init__(self, *templates: SettingsTemplate):
        self.templates = {t.id: t for t in templates}

    def get_by_id(self, context, template_id):
        return self.templates.get(template_id)


@pytest.fixture
def settings_xml() -> str:
    """Sample settings.xml template."""
    return SETTINGS_XML


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Build workspace directory."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """Scratch directory for temporary artifacts."""
    path = tmp_path / "workspace@tmp"
    path.mkdir()
    return path


@pytest.fixture
def context(workspace: Path) -> ExecutionContext:
    """Execution context for a release job."""
    return ExecutionContext(id="release-1", job_name="release", workspace_path=workspace)


@pytest.fixture
def scratch_dirs() -> WorkspaceScratchDirProvider:
    """Workspace sibling scratch directory provider."""
    return WorkspaceScratchDirProvider()


@pytest.fixture
def tracker() -> TempArtifactTracker:
    """Fresh artifact tracker."""
    return TempArtifactTracker()


@pytest.fixture
def deployer() -> UsernamePasswordCredential:
    """Username/password credential."""
    return UsernamePasswordCredential(id="nexus-deployer", username="deployer", password=SecretStr("s3cret"))


@pytest.fixture
def credential_store(deployer: UsernamePasswordCredential) -> FakeCredentialStore:
    """Credential store holding the deployer credential."""
    return FakeCredentialStore({"nexus-deployer": deployer})


@pytest.fixture
def template(settings_xml: str) -> SettingsTemplate:
    """Template mapping the releases server to the deployer credential."""
    return SettingsTemplate(
        id="corp",
        name="Corporate settings",
        content=settings_xml,
        replace_all=False,
        server_credential_mappings=(ServerCredentialMapping("releases", "nexus-deployer"),),
    )


@pytest.fixture
def template_store(template: SettingsTemplate) -> FakeTemplateStore:
    """Template store holding the corporate template."""
    return FakeTemplateStore(template)


@pytest.fixture
def make_credential_store():
    """Factory for in-memory credential stores."""
    return FakeCredentialStore


@pytest.fixture
def make_template_store():
    """Factory for in-memory template stores."""
    return FakeTemplateStore
