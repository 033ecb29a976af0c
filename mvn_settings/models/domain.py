"""
Domain models for the settings provider.

This module contains the data classes passed between the engine components:
settings templates and their declared server/credential mappings, the merge
policy, and the resolved credential variants the merger writes into
``<server>`` entries.

Secret fields are held as :class:`pydantic.SecretStr` so that an accidental
``repr()`` or log call never shows their values.

Example:
    Declaring a template with one mapping::

        template = SettingsTemplate(
            id="corp-settings",
            name="Corporate settings",
            content="<settings/>",
            server_credential_mappings=(
                ServerCredentialMapping(server_id="releases", credentials_id="nexus-deployer"),
            ),
        )
"""

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import SecretStr


@dataclass(frozen=True)
class ServerCredentialMapping:
    """Declared intent to authenticate a settings ``<server>`` with a credential.

    Attributes:
        server_id: Value of the ``<id>`` element of the target server entry
        credentials_id: Id of the credential to look up in the credential store
    """

    server_id: str
    credentials_id: str


@dataclass(frozen=True)
class SettingsTemplate:
    """A settings.xml template as stored in the template store.

    Templates are read-only; the provider never writes back into them.

    Attributes:
        id: Unique template identifier
        name: Display name
        content: Raw settings.xml text
        comment: Free form description
        replace_all: Whether matching server entries are replaced as a whole
        server_credential_mappings: Credentials to inject, in declaration order
    """

    id: str
    name: str
    content: str
    comment: str = ""
    replace_all: bool = True
    server_credential_mappings: tuple[ServerCredentialMapping, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MergePolicy:
    """How resolved credentials are merged into existing server entries.

    Attributes:
        replace_all: True drops every child of a matching server entry before
            writing the authentication block; False only overwrites the
            authentication children and keeps everything else.
    """

    replace_all: bool = True


@dataclass(frozen=True)
class UsernamePassword:
    """Username and password authentication."""

    username: str
    password: SecretStr


@dataclass(frozen=True)
class SecretFile:
    """Username plus a private key file written to the scratch directory."""

    username: str
    file_path: Path
    passphrase: SecretStr | None = None


@dataclass(frozen=True)
class Certificate:
    """Client certificate keystore written to the scratch directory."""

    file_path: Path
    password: SecretStr | None = None


ResolvedCredential = UsernamePassword | SecretFile | Certificate

# Server id -> materialized credential, built once per settings operation.
ResolvedCredentialMap = dict[str, ResolvedCredential]
