"""Core domain models for the settings provider.

Key Models:
    - SettingsTemplate: settings.xml template with its credential mappings
    - ServerCredentialMapping: server id -> credential id declaration
    - MergePolicy: replace-all or merge behaviour for existing servers
    - UsernamePassword, SecretFile, Certificate: resolved credential variants

Example:
    >>> from mvn_settings.models import MergePolicy, SettingsTemplate
    >>> policy = MergePolicy(replace_all=False)
"""

from mvn_settings.models.domain import (
    Certificate,
    MergePolicy,
    ResolvedCredential,
    ResolvedCredentialMap,
    SecretFile,
    ServerCredentialMapping,
    SettingsTemplate,
    UsernamePassword,
)

__all__ = [
    "Certificate",
    "MergePolicy",
    "ResolvedCredential",
    "ResolvedCredentialMap",
    "SecretFile",
    "ServerCredentialMapping",
    "SettingsTemplate",
    "UsernamePassword",
]
