"""Tests for mvn_settings/engine/resolver.py."""

from dataclasses import dataclass
from unittest.mock import Mock, patch

import pytest
from pydantic import SecretStr

from mvn_settings.credentials.types import SSHUserPrivateKeyCredential, UsernamePasswordCredential
from mvn_settings.engine.materializer import CredentialMaterializer
from mvn_settings.engine.resolver import CredentialResolver
from mvn_settings.exceptions import BackendNotAvailableError, CredentialNotFoundError, SecretFileWriteError
from mvn_settings.models.domain import SecretFile, ServerCredentialMapping, UsernamePassword


@dataclass(frozen=True)
class TokenCredential:
    id: str


@pytest.fixture
def log():
    return Mock()


@pytest.fixture
def resolver(tracker, log) -> CredentialResolver:
    return CredentialResolver(CredentialMaterializer(tracker, "release-1"), log)


def warnings(log: Mock) -> list[str]:
    return [call.args[0] for call in log.warning.call_args_list]


class TestResolve:
    """Tests for CredentialResolver.resolve."""

    def test_resolves_mapped_credentials(self, resolver, credential_store, context, scratch_dir):
        """Should return one entry per resolved server id."""
        mappings = [ServerCredentialMapping("releases", "nexus-deployer")]

        resolved = resolver.resolve(mappings, credential_store, context, scratch_dir)

        assert resolved == {"releases": UsernamePassword("deployer", SecretStr("s3cret"))}

    def test_no_mappings(self, resolver, credential_store, context, scratch_dir):
        """No mappings should resolve to an empty map without lookups."""
        assert resolver.resolve([], credential_store, context, scratch_dir) == {}
        assert credential_store.lookups == []

    def test_same_credential_for_several_servers(self, resolver, credential_store, context, scratch_dir):
        """One credential may authenticate several servers."""
        mappings = [
            ServerCredentialMapping("releases", "nexus-deployer"),
            ServerCredentialMapping("snapshots", "nexus-deployer"),
        ]

        resolved = resolver.resolve(mappings, credential_store, context, scratch_dir)

        assert list(resolved) == ["releases", "snapshots"]

    def test_later_mapping_wins(self, resolver, make_credential_store, deployer, context, scratch_dir, log):
        """When two mappings target one server, the later one wins."""
        admin = UsernamePasswordCredential(id="nexus-admin", username="admin", password=SecretStr("root"))
        store = make_credential_store({"nexus-deployer": deployer, "nexus-admin": admin})
        mappings = [
            ServerCredentialMapping("releases", "nexus-deployer"),
            ServerCredentialMapping("releases", "nexus-admin"),
        ]

        resolved = resolver.resolve(mappings, store, context, scratch_dir)

        assert resolved["releases"].username == "admin"
        log.debug.assert_any_call("server_credential_overridden", server_id="releases", credentials_id="nexus-admin")

    def test_failed_later_mapping_keeps_earlier(self, resolver, credential_store, context, scratch_dir):
        """A later mapping that does not resolve should not erase the earlier one."""
        mappings = [
            ServerCredentialMapping("releases", "nexus-deployer"),
            ServerCredentialMapping("releases", "missing"),
        ]

        resolved = resolver.resolve(mappings, credential_store, context, scratch_dir)

        assert resolved["releases"].username == "deployer"


class TestSkippedMappings:
    """Mappings that cannot be resolved are skipped with a warning."""

    def test_unknown_credential(self, resolver, credential_store, context, scratch_dir, log):
        """A missing credential should be skipped and others still resolved."""
        mappings = [
            ServerCredentialMapping("releases", "missing"),
            ServerCredentialMapping("snapshots", "nexus-deployer"),
        ]

        resolved = resolver.resolve(mappings, credential_store, context, scratch_dir)

        assert list(resolved) == ["snapshots"]
        log.warning.assert_called_once_with("credential_not_found", server_id="releases", credentials_id="missing")

    def test_incomplete_mapping(self, resolver, credential_store, context, scratch_dir, log):
        """Mappings with a blank id should be skipped without a lookup."""
        mappings = [ServerCredentialMapping("", "nexus-deployer"), ServerCredentialMapping("releases", "")]

        assert resolver.resolve(mappings, credential_store, context, scratch_dir) == {}
        assert credential_store.lookups == []
        assert warnings(log) == ["server_credential_mapping_incomplete"] * 2

    def test_lookup_failure(self, resolver, make_credential_store, deployer, context, scratch_dir, log):
        """A failing lookup should be logged without secret values."""
        store = make_credential_store(
            {"nexus-deployer": deployer},
            failing={"vault": CredentialNotFoundError("Environment variable not set: VAULT", reference="${VAULT}")},
        )
        mappings = [
            ServerCredentialMapping("vault-server", "vault"),
            ServerCredentialMapping("releases", "nexus-deployer"),
        ]

        resolved = resolver.resolve(mappings, store, context, scratch_dir)

        assert list(resolved) == ["releases"]
        assert warnings(log) == ["credential_lookup_failed"]
        assert log.warning.call_args.kwargs["credentials_id"] == "vault"

    def test_backend_unavailable(self, resolver, make_credential_store, context, scratch_dir, log):
        """Unavailable secret backends only affect their mapping."""
        store = make_credential_store(failing={"kr": BackendNotAvailableError("Keyring backend is not available")})

        assert resolver.resolve([ServerCredentialMapping("releases", "kr")], store, context, scratch_dir) == {}
        assert warnings(log) == ["credential_lookup_failed"]

    def test_unsupported_kind(self, resolver, make_credential_store, context, scratch_dir, log):
        """Credentials the materializer cannot handle are skipped."""
        store = make_credential_store({"token": TokenCredential(id="token")})

        assert resolver.resolve([ServerCredentialMapping("releases", "token")], store, context, scratch_dir) == {}
        assert warnings(log) == ["credential_materialization_failed"]

    def test_secrets_never_logged(self, resolver, make_credential_store, context, scratch_dir, log):
        """No log call should carry a secret value."""
        key = SSHUserPrivateKeyCredential(
            id="git-key", username="git", private_key=SecretStr("PRIVATE-KEY-BYTES"), passphrase=SecretStr("pp")
        )
        store = make_credential_store({"git-key": key, "token": TokenCredential(id="token")})
        mappings = [
            ServerCredentialMapping("git", "git-key"),
            ServerCredentialMapping("api", "token"),
            ServerCredentialMapping("nope", "missing"),
        ]

        resolver.resolve(mappings, store, context, scratch_dir)

        for call in log.mock_calls:
            rendered = repr(call)
            assert "PRIVATE-KEY-BYTES" not in rendered
            assert "'pp'" not in rendered


class TestPropagation:
    """Failures that abort the operation."""

    def test_secret_file_write_error_propagates(self, resolver, make_credential_store, context, scratch_dir):
        """Write failures should not be swallowed."""
        key = SSHUserPrivateKeyCredential(id="git-key", username="git", private_key=SecretStr("KEY"))
        store = make_credential_store({"git-key": key})

        with patch.object(resolver.materializer.tracker, "write", side_effect=OSError(28, "No space left on device")):
            with pytest.raises(SecretFileWriteError):
                resolver.resolve([ServerCredentialMapping("git", "git-key")], store, context, scratch_dir)

    def test_interruption_propagates(self, resolver, make_credential_store, context, scratch_dir):
        """Interrupting a lookup should propagate to the caller."""
        store = make_credential_store(failing={"slow": KeyboardInterrupt()})

        with pytest.raises(KeyboardInterrupt):
            resolver.resolve([ServerCredentialMapping("releases", "slow")], store, context, scratch_dir)

    def test_ssh_key_resolves_to_file(self, resolver, make_credential_store, context, scratch_dir, tracker):
        """SSH keys should resolve to a tracked secret file."""
        key = SSHUserPrivateKeyCredential(id="git-key", username="git", private_key=SecretStr("KEY"))
        store = make_credential_store({"git-key": key})

        resolved = resolver.resolve([ServerCredentialMapping("git", "git-key")], store, context, scratch_dir)

        assert isinstance(resolved["git"], SecretFile)
        assert tracker.artifacts("release-1") == [resolved["git"].file_path]
