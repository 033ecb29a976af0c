"""File backend for secrets mounted into the build environment.

Typical sources are Docker/Kubernetes secret mounts (``/run/secrets/...``)
or key files provisioned by the build agent.
"""

from pathlib import Path

import structlog

from .exceptions import CredentialError

log = structlog.get_logger(__name__)


class FileBackend:
    """Read secrets from local files.

    Relative paths are resolved against ``base_dir`` (the current working
    directory by default). Content is returned verbatim, so PEM keys keep
    their trailing newline.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir

    @property
    def name(self) -> str:
        return "file"

    @property
    def available(self) -> bool:
        return True

    def get(self, path: str) -> str | None:
        """Read a secret file.

        Args:
            path: Absolute path, or path relative to ``base_dir``

        Returns:
            File content or None if the file does not exist

        Raises:
            CredentialError: If the path is not a regular file or cannot be read
        """
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = (self.base_dir or Path.cwd()) / file_path

        if not file_path.exists():
            return None

        if not file_path.is_file():
            raise CredentialError(f"Path is not a file: {file_path}", reference=f"file://{path}")

        try:
            content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            # UnicodeDecodeError text quotes the offending bytes
            raise CredentialError(
                f"Cannot read secret file {file_path}: {type(e).__name__}", reference=f"file://{path}"
            ) from e

        if not content:
            log.warning("secret_file_empty", path=str(file_path))

        log.debug("secret_read_from_file", path=str(file_path))
        return content
