"""Settings materialization engine.

This package turns a settings.xml template and its declared server
credentials into a settings file for one build execution.

Key Components:
    - MavenSettingsProvider: orchestrates lookup, resolution, merge and write
    - CredentialResolver: resolves server/credential mappings
    - CredentialMaterializer: turns credential handles into writable values
    - SettingsMerger: injects credentials into <server> entries
    - TempArtifactTracker: allocates temp files and deletes them per execution
    - ExecutionContext: owns cleanup obligations and output variables

Example:
    >>> from mvn_settings.engine import ExecutionContext, MavenSettingsProvider
    >>> provider = MavenSettingsProvider("corp-settings")
    >>> with ExecutionContext.create(job_name="release", workspace_path=ws) as context:
    ...     path = provider.supply_settings(context, scratch_dirs, credentials, templates)
"""

from mvn_settings.engine.artifacts import TempArtifact, TempArtifactTracker
from mvn_settings.engine.context import ExecutionContext
from mvn_settings.engine.materializer import CredentialMaterializer
from mvn_settings.engine.merger import SettingsMerger
from mvn_settings.engine.provider import (
    DEFAULT_SETTINGS_PROVIDER,
    DefaultSettingsProvider,
    GlobalMavenSettingsProvider,
    MavenSettingsProvider,
    SettingsProvider,
)
from mvn_settings.engine.resolver import CredentialResolver
from mvn_settings.engine.workspace import ScratchDirProvider, WorkspaceScratchDirProvider

__all__ = [
    "DEFAULT_SETTINGS_PROVIDER",
    "CredentialMaterializer",
    "CredentialResolver",
    "DefaultSettingsProvider",
    "ExecutionContext",
    "GlobalMavenSettingsProvider",
    "MavenSettingsProvider",
    "ScratchDirProvider",
    "SettingsMerger",
    "SettingsProvider",
    "TempArtifact",
    "TempArtifactTracker",
    "WorkspaceScratchDirProvider",
]
