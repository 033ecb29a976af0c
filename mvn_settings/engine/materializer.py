"""Turn credential handles into values the settings merger can write.

Username/password credentials map directly. Key material (SSH private keys,
certificate keystores) is written to a new file in the scratch directory and
referenced by path; the file is registered with the artifact tracker under
the operation id before anything is written to it.
"""

import base64
import binascii
from pathlib import Path

import structlog
from structlog.typing import FilteringBoundLogger

from mvn_settings.credentials.types import (
    CertificateCredential,
    SSHUserPrivateKeyCredential,
    UsernamePasswordCredential,
)
from mvn_settings.engine.artifacts import TempArtifactTracker
from mvn_settings.exceptions import CredentialFormatError, SecretFileWriteError, UnsupportedCredentialError
from mvn_settings.models.domain import Certificate, ResolvedCredential, SecretFile, UsernamePassword

class CredentialMaterializer:
    """Materialize credentials for one operation.

    Args:
        tracker: Tracker used to allocate and register secret files
        operation_id: Operation (execution) id the files are registered under
        log: Structured logger diagnostics are written to
    """

    PRIVATE_KEY_PREFIX = "private-key-"
    PRIVATE_KEY_SUFFIX = ".pem"
    KEYSTORE_PREFIX = "keystore-"
    KEYSTORE_SUFFIX = ".p12"

    def __init__(
        self, tracker: TempArtifactTracker, operation_id: str, log: FilteringBoundLogger | None = None
    ) -> None:
        self.tracker = tracker
        self.operation_id = operation_id
        self._log = log or structlog.get_logger(__name__)

    def materialize(self, credential: object, scratch_dir: Path) -> ResolvedCredential:
        """Materialize ``credential``, writing key material under ``scratch_dir``.

        Returns:
            UsernamePassword, SecretFile or Certificate

        Raises:
            UnsupportedCredentialError: If the credential type is not supported
            CredentialFormatError: If certificate data is not valid base64
            SecretFileWriteError: If key material cannot be written
        """
        if isinstance(credential, UsernamePasswordCredential):
            return UsernamePassword(username=credential.username, password=credential.password)

        if isinstance(credential, SSHUserPrivateKeyCredential):
            path = self._write_secret_file(
                credential.id,
                credential.private_key.get_secret_value(),
                self.PRIVATE_KEY_PREFIX,
                self.PRIVATE_KEY_SUFFIX,
                scratch_dir,
            )
            return SecretFile(username=credential.username, file_path=path, passphrase=credential.passphrase)

        if isinstance(credential, CertificateCredential):
            try:
                keystore = base64.b64decode(credential.keystore.get_secret_value(), validate=True)
            except (binascii.Error, ValueError):
                raise CredentialFormatError(
                    "Certificate keystore is not valid base64", reference=credential.id
                ) from None
            path = self._write_secret_file(
                credential.id, keystore, self.KEYSTORE_PREFIX, self.KEYSTORE_SUFFIX, scratch_dir
            )
            return Certificate(file_path=path, password=credential.password)

        credential_id = getattr(credential, "id", None)
        raise UnsupportedCredentialError(
            f"Unsupported credential type: {type(credential).__name__}",
            reference=credential_id if isinstance(credential_id, str) else None,
        )

    def _write_secret_file(
        self, credential_id: str, data: str | bytes, prefix: str, suffix: str, scratch_dir: Path
    ) -> Path:
        try:
            path = self.tracker.allocate(scratch_dir, prefix, suffix, operation_id=self.operation_id)
            self.tracker.write(path, data)
            path.chmod(0o600)
        except OSError as e:
            raise SecretFileWriteError(
                f"Failed to write key material: {type(e).__name__}: {e.strerror or 'unknown error'}",
                credentials_id=credential_id,
            ) from e

        self.tracker.track(path, self.operation_id)
        self._log.debug("secret_file_materialized", credentials_id=credential_id, path=str(path))
        return path
