"""
Settings providers: supply a Maven settings.xml to one build execution.

A provider looks up its settings template, resolves the credentials the
template declares for its servers, injects them and writes the result to a
temporary file in the execution's scratch directory. Every file it creates
is deleted when the execution context is torn down.

Example:
    >>> provider = MavenSettingsProvider("corp-settings")
    >>> with ExecutionContext.create(job_name="release", workspace_path=ws) as context:
    ...     path = provider.supply_settings(context, scratch_dirs, credential_store, template_store)
    ...     run_maven("-s", path)
"""

from abc import ABC, abstractmethod
from functools import partial
from pathlib import Path

import structlog
from structlog.typing import FilteringBoundLogger

from mvn_settings.config.templates import TemplateStore
from mvn_settings.credentials.store import CredentialStore
from mvn_settings.engine.artifacts import TempArtifactTracker
from mvn_settings.engine.context import ExecutionContext
from mvn_settings.engine.materializer import CredentialMaterializer
from mvn_settings.engine.merger import SettingsMerger
from mvn_settings.engine.resolver import CredentialResolver
from mvn_settings.engine.workspace import ScratchDirProvider
from mvn_settings.exceptions import MalformedTemplateError, MvnSettingsError, SettingsInjectionError
from mvn_settings.models.domain import MergePolicy


class SettingsProvider(ABC):
    """Supplies a settings file for an execution, or None to use the build tool's default."""

    @abstractmethod
    def supply_settings(
        self,
        context: ExecutionContext,
        scratch_dirs: ScratchDirProvider,
        credential_store: CredentialStore,
        template_store: TemplateStore,
    ) -> Path | None:
        """Return the path of the settings file to use, or None."""


class DefaultSettingsProvider(SettingsProvider):
    """Let the build tool use its own default settings."""

    def supply_settings(
        self,
        context: ExecutionContext,
        scratch_dirs: ScratchDirProvider,
        credential_store: CredentialStore,
        template_store: TemplateStore,
    ) -> Path | None:
        return None


DEFAULT_SETTINGS_PROVIDER = DefaultSettingsProvider()


class MavenSettingsProvider(SettingsProvider):
    """Provide a settings.xml built from a configured template.

    Args:
        settings_config_id: Id of the settings template; blank means "nothing to do"
        tracker: Artifact tracker (a private one by default)
        merger: Settings merger
        log: Structured logger diagnostics are written to
        output_variable: Name of the output variable the settings path is
            exported under when the execution supports output variables
    """

    FILE_PREFIX = "maven-"
    FILE_SUFFIX = "-settings.xml"
    OUTPUT_VARIABLE = "MVN_SETTINGS"

    def __init__(
        self,
        settings_config_id: str | None,
        *,
        tracker: TempArtifactTracker | None = None,
        merger: SettingsMerger | None = None,
        log: FilteringBoundLogger | None = None,
        output_variable: str | None = None,
    ) -> None:
        self.settings_config_id = settings_config_id
        self.tracker = tracker or TempArtifactTracker(log)
        self.merger = merger or SettingsMerger()
        self.output_variable = output_variable or self.OUTPUT_VARIABLE
        self._log = log or structlog.get_logger(__name__)

    def supply_settings(
        self,
        context: ExecutionContext,
        scratch_dirs: ScratchDirProvider,
        credential_store: CredentialStore,
        template_store: TemplateStore,
    ) -> Path | None:
        """Build the settings file for ``context``.

        Returns:
            Path of the settings file, or None when no template is configured,
            the template does not exist, or its content is blank

        Raises:
            MalformedTemplateError: If credentials must be injected and the
                template is not well-formed XML
            SecretFileWriteError: If key material cannot be written
            SettingsInjectionError: On any other failure while injecting credentials
        """
        if not self.settings_config_id or not self.settings_config_id.strip():
            return None

        template_id = self.settings_config_id
        log = self._log.bind(execution_id=context.id, settings_config_id=template_id)

        template = template_store.get_by_id(context, template_id)
        if template is None:
            log.error("settings_template_not_found", message=f"Maven settings.xml with id '{template_id}' not found")
            return None

        if not template.content.strip():
            log.info("settings_template_empty", message=f"Ignore empty maven settings.xml with id {template_id}")
            return None

        scratch_dir = scratch_dirs.for_execution_context(context)

        # Registered before anything is written so partial work is still cleaned up
        context.add_cleanup(partial(self.tracker.release_all, context.id))

        content = template.content
        if template.server_credential_mappings:
            resolver = CredentialResolver(CredentialMaterializer(self.tracker, context.id, log), log)
            resolved = resolver.resolve(template.server_credential_mappings, credential_store, context, scratch_dir)

            if resolved:
                log.info(
                    "injecting_server_credentials",
                    replace_all=template.replace_all,
                    server_ids=list(resolved),
                )
                try:
                    content = self.merger.merge(
                        content, resolved, MergePolicy(replace_all=template.replace_all), log=log
                    )
                except MalformedTemplateError as e:
                    e.template_id = template.id
                    raise
                except MvnSettingsError:
                    raise
                except Exception as e:
                    raise SettingsInjectionError(
                        f"Exception injecting credentials: {type(e).__name__}",
                        template_id=template.id,
                        execution_id=context.id,
                    ) from e

        settings_file = self.tracker.allocate(scratch_dir, self.FILE_PREFIX, self.FILE_SUFFIX, operation_id=context.id)
        self.tracker.write(settings_file, content)
        self.tracker.track(settings_file, context.id)
        log.debug("settings_file_created", path=str(settings_file), template_id=template.id)

        if context.outputs is not None:
            context.outputs[self.output_variable] = str(settings_file)

        return settings_file


class GlobalMavenSettingsProvider(MavenSettingsProvider):
    """Provide a global settings.xml (``mvn -gs``) built from a configured template."""

    FILE_PREFIX = "maven-global-"
    FILE_SUFFIX = "-settings.xml"
    OUTPUT_VARIABLE = "MVN_GLOBAL_SETTINGS"
