"""
Configuration system using Pydantic for type-safe settings management.

This module declares the settings templates, the credentials they reference
and the provider options, and loads them from a YAML file.

Secret fields hold secret *references* (``${ENV_VAR}``, ``@keyring:service/key``,
``file://path``) or direct values. References are resolved lazily by the
credential store at lookup time, never while loading the file, so a missing
secret only affects the servers that need it.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mvn_settings.enums import CredentialKind
from mvn_settings.exceptions import ConfigurationError
from mvn_settings.models.domain import ServerCredentialMapping, SettingsTemplate


class ServerCredentialMappingConfig(BaseModel):
    """Inject credential ``credentials_id`` into ``<server>`` ``server_id``."""

    server_id: str = Field(..., description="Id of the <server> entry in settings.xml")
    credentials_id: str = Field(..., description="Id of a declared credential")

    def to_domain(self) -> ServerCredentialMapping:
        return ServerCredentialMapping(server_id=self.server_id, credentials_id=self.credentials_id)


class SettingsTemplateConfig(BaseModel):
    """A settings.xml template declaration.

    Content is given inline with ``content`` or read from ``content_file``
    (relative paths are resolved against the configuration file directory).
    A template with neither is valid and empty.
    """

    id: str = Field(..., min_length=1, description="Unique template id")
    name: str = Field(default="", description="Display name")
    comment: str = Field(default="", description="Free form description")
    content: str | None = Field(default=None, description="Inline settings.xml content")
    content_file: Path | None = Field(default=None, description="Path to a settings.xml file")
    replace_all: bool = Field(
        default=True,
        description="Replace matching <server> entries entirely instead of merging authentication fields",
    )
    server_credential_mappings: list[ServerCredentialMappingConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_content_source(self) -> SettingsTemplateConfig:
        """Content comes from at most one source."""
        if self.content is not None and self.content_file is not None:
            raise ValueError(f"Template '{self.id}': set either content or content_file, not both")
        return self

    def load_content(self, base_dir: Path | None = None) -> str:
        """Return the template text, reading ``content_file`` if needed.

        Raises:
            ConfigurationError: If the content file cannot be read
        """
        if self.content_file is None:
            return self.content or ""

        path = self.content_file
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path

        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read content file for template '{self.id}': {path}") from e

    def to_domain(self, base_dir: Path | None = None) -> SettingsTemplate:
        return SettingsTemplate(
            id=self.id,
            name=self.name or self.id,
            content=self.load_content(base_dir),
            comment=self.comment,
            replace_all=self.replace_all,
            server_credential_mappings=tuple(m.to_domain() for m in self.server_credential_mappings),
        )


class CredentialConfig(BaseModel):
    """A credential declaration.

    Required fields per kind:
    - username_password: username, password
    - ssh_private_key: username, private_key (passphrase optional)
    - certificate: keystore (base64 PKCS#12, password optional)

    ``jobs`` restricts which execution contexts may use the credential;
    patterns are shell-style globs matched against the job name.
    """

    id: str = Field(..., min_length=1, description="Unique credential id")
    kind: CredentialKind = Field(..., description="Credential kind")
    description: str = Field(default="")
    username: str | None = Field(default=None)
    password: SecretStr | None = Field(default=None, description="Password or keystore password reference")
    private_key: SecretStr | None = Field(default=None, description="PEM private key reference")
    passphrase: SecretStr | None = Field(default=None, description="Private key passphrase reference")
    keystore: SecretStr | None = Field(default=None, description="Base64 PKCS#12 keystore reference")
    jobs: list[str] = Field(default_factory=lambda: ["*"], description="Job name glob patterns")

    @model_validator(mode="after")
    def validate_kind_fields(self) -> CredentialConfig:
        """Ensure the fields required by ``kind`` are present."""
        required = {
            CredentialKind.USERNAME_PASSWORD: ("username", "password"),
            CredentialKind.SSH_PRIVATE_KEY: ("username", "private_key"),
            CredentialKind.CERTIFICATE: ("keystore",),
        }[self.kind]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"Credential '{self.id}' of kind '{self.kind}' requires: {', '.join(missing)}")
        return self


class ProviderSettings(BaseSettings):
    """Main settings provider configuration.

    Combines the template and credential declarations with provider options
    and provides loading from YAML files. Scalar options can be overridden
    from the environment (``MVN_SETTINGS_SETTINGS_VARIABLE`` etc.).
    """

    model_config = SettingsConfigDict(
        env_prefix="MVN_SETTINGS_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    settings_templates: list[SettingsTemplateConfig] = Field(default_factory=list)
    credentials: list[CredentialConfig] = Field(default_factory=list)
    scratch_suffix: str = Field(default="@tmp", description="Suffix of the per-workspace scratch directory")
    settings_variable: str = Field(default="MVN_SETTINGS", description="Output variable for settings.xml")
    global_settings_variable: str = Field(
        default="MVN_GLOBAL_SETTINGS", description="Output variable for the global settings.xml"
    )
    base_dir: Path | None = Field(
        default=None, description="Directory relative content files and file:// secrets resolve against"
    )

    @field_validator("settings_templates")
    @classmethod
    def unique_template_ids(cls, value: list[SettingsTemplateConfig]) -> list[SettingsTemplateConfig]:
        _reject_duplicates([t.id for t in value], "template")
        return value

    @field_validator("credentials")
    @classmethod
    def unique_credential_ids(cls, value: list[CredentialConfig]) -> list[CredentialConfig]:
        _reject_duplicates([c.id for c in value], "credential")
        return value

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> ProviderSettings:
        """Load settings from a YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            ProviderSettings instance; ``base_dir`` defaults to the file's directory

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, encoding="utf-8") as f:
                yaml_content = f.read()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            # The YAML error text quotes the offending source line, which may hold a secret
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {format_yaml_error(e)}") from None

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        config_dict.setdefault("base_dir", str(config_file.parent.resolve()))

        try:
            return cls(**config_dict)
        except ValidationError as e:
            # Validation errors echo raw input values, which may be secrets
            raise ConfigurationError(f"Failed to validate configuration: {format_validation_error(e)}") from None


def format_validation_error(error: ValidationError) -> str:
    """Render a validation error without the offending input values."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors(include_input=False, include_url=False)
    )


def format_yaml_error(error: yaml.YAMLError) -> str:
    """Render a YAML error as problem and position, without the source snippet."""
    if isinstance(error, yaml.MarkedYAMLError):
        problem = error.problem or error.context or "syntax error"
        mark = error.problem_mark or error.context_mark
        if mark is not None:
            return f"{problem} (line {mark.line + 1}, column {mark.column + 1})"
        return problem
    return type(error).__name__


def _reject_duplicates(ids: list[str], what: str) -> None:
    seen: set[str] = set()
    for item in ids:
        if item in seen:
            raise ValueError(f"Duplicate {what} id: {item}")
        seen.add(item)
