"""Credential handles returned by a credential store.

Handles are opaque to the resolver; only the materializer looks inside them.
Secret values are wrapped in :class:`pydantic.SecretStr`.
"""

from dataclasses import dataclass

from pydantic import SecretStr


@dataclass(frozen=True)
class UsernamePasswordCredential:
    """Username/password credential."""

    id: str
    username: str
    password: SecretStr
    description: str = ""


@dataclass(frozen=True)
class SSHUserPrivateKeyCredential:
    """SSH username with a PEM encoded private key."""

    id: str
    username: str
    private_key: SecretStr
    passphrase: SecretStr | None = None
    description: str = ""


@dataclass(frozen=True)
class CertificateCredential:
    """Client certificate as a base64 encoded PKCS#12 keystore."""

    id: str
    keystore: SecretStr
    password: SecretStr | None = None
    description: str = ""


CredentialHandle = UsernamePasswordCredential | SSHUserPrivateKeyCredential | CertificateCredential
