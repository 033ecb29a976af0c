"""CLI entry point for the Maven settings provider."""

import os
import subprocess
import sys
from pathlib import Path

import click
import structlog

from mvn_settings.config.settings import ProviderSettings
from mvn_settings.config.templates import ConfiguredTemplateStore
from mvn_settings.credentials import ConfiguredCredentialStore, CredentialError, SecretReferenceResolver
from mvn_settings.engine import (
    ExecutionContext,
    GlobalMavenSettingsProvider,
    MavenSettingsProvider,
    WorkspaceScratchDirProvider,
)
from mvn_settings.exceptions import ConfigurationError, MvnSettingsError
from mvn_settings.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    default="mvn-settings.yaml",
    envvar="MVN_SETTINGS_CONFIG",
    help="Path to configuration file",
)
@click.option("--log-level", default="INFO", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config: str, log_level: str) -> None:
    """mvn-settings: supply Maven settings.xml files with injected credentials."""
    configure_logging(log_level)

    try:
        settings = ProviderSettings.from_yaml(config)
        template_store = ConfiguredTemplateStore(settings.settings_templates, settings.base_dir)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    credential_store = ConfiguredCredentialStore(
        settings.credentials, SecretReferenceResolver(base_dir=settings.base_dir)
    )
    ctx.obj = {
        "settings": settings,
        "template_store": template_store,
        "credential_store": credential_store,
    }


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--settings-id", help="Id of the settings.xml template (mvn -s)")
@click.option("--global-settings-id", help="Id of the global settings.xml template (mvn -gs)")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Build workspace; temporary files go to its sibling scratch directory",
)
@click.option("--job-name", default="", help="Job name used to scope credentials")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx: click.Context,
    settings_id: str | None,
    global_settings_id: str | None,
    workspace: Path,
    job_name: str,
    command: tuple[str, ...],
) -> None:
    """Run COMMAND with generated settings files.

    The settings paths are appended as ``-s``/``-gs`` right after the
    executable and exported as MVN_SETTINGS/MVN_GLOBAL_SETTINGS. All
    generated files are deleted when COMMAND exits.

    Example:

        mvn-settings run --settings-id corp -- mvn -B deploy
    """
    settings: ProviderSettings = ctx.obj["settings"]
    providers = [
        ("-s", MavenSettingsProvider(settings_id, output_variable=settings.settings_variable)),
        ("-gs", GlobalMavenSettingsProvider(global_settings_id, output_variable=settings.global_settings_variable)),
    ]
    scratch_dirs = WorkspaceScratchDirProvider(settings.scratch_suffix)

    try:
        with ExecutionContext.create(job_name=job_name, workspace_path=workspace.resolve()) as context:
            arguments: list[str] = []
            for flag, provider in providers:
                path = provider.supply_settings(
                    context, scratch_dirs, ctx.obj["credential_store"], ctx.obj["template_store"]
                )
                if path is not None:
                    arguments += [flag, str(path)]

            environment = {**os.environ, **(context.outputs or {})}
            log.info("build_command_started", execution_id=context.id, executable=command[0])
            result = subprocess.run([command[0], *arguments, *command[1:]], env=environment, check=False)
    except MvnSettingsError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("run_error", exc_info=True)
        sys.exit(1)
    except FileNotFoundError:
        click.echo(f"Error: Command not found: {command[0]}", err=True)
        sys.exit(127)
    except OSError as e:
        click.echo(f"Error: {e.filename or 'scratch directory'}: {e.strerror or type(e).__name__}", err=True)
        log.debug("run_io_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    sys.exit(result.returncode)


@cli.command()
@click.option("--job-name", default="", help="Job name used to scope credentials")
@click.pass_context
def check(ctx: click.Context, job_name: str) -> None:
    """Check that every declared server credential resolves.

    Secret values are never printed.
    """
    template_store: ConfiguredTemplateStore = ctx.obj["template_store"]
    credential_store: ConfiguredCredentialStore = ctx.obj["credential_store"]
    context = ExecutionContext.create(job_name=job_name, outputs=None)

    if not len(template_store):
        click.echo(click.style("No settings templates configured", fg="yellow"))
        return

    unresolved = 0
    for template in template_store:
        mode = "replace all" if template.replace_all else "merge"
        click.echo(click.style(f"{template.id}", bold=True) + f" ({template.name}, {mode})")
        if not template.content.strip():
            click.echo(click.style("  empty template, will be ignored", fg="yellow"))

        for mapping in template.server_credential_mappings:
            label = f"  {mapping.server_id} <- {mapping.credentials_id}: "
            try:
                handle = credential_store.lookup(context, mapping.credentials_id)
            except CredentialError as e:
                click.echo(label + click.style(f"error: {e.message}", fg="red"))
                unresolved += 1
                continue

            if handle is None:
                click.echo(label + click.style("not found", fg="red"))
                unresolved += 1
            else:
                click.echo(label + click.style(f"ok ({type(handle).__name__})", fg="green"))

    if unresolved:
        click.echo(click.style(f"{unresolved} credential mapping(s) unresolved", fg="red"), err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
