"""Configuration system for the settings provider.

Key Components:
    - ProviderSettings: Main configuration container with YAML loading support
    - SettingsTemplateConfig: settings.xml template declaration
    - CredentialConfig: credential declaration with secret references
    - ConfiguredTemplateStore: read-only template lookup built from the settings

Example:
    >>> from mvn_settings.config import ProviderSettings
    >>> settings = ProviderSettings.from_yaml("mvn-settings.yaml")
    >>> template_ids = [t.id for t in settings.settings_templates]
"""

from mvn_settings.config.settings import (
    CredentialConfig,
    ProviderSettings,
    ServerCredentialMappingConfig,
    SettingsTemplateConfig,
)
from mvn_settings.config.templates import ConfiguredTemplateStore, TemplateStore

__all__ = [
    "ConfiguredTemplateStore",
    "CredentialConfig",
    "ProviderSettings",
    "ServerCredentialMappingConfig",
    "SettingsTemplateConfig",
    "TemplateStore",
]
