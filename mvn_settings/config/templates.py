"""Template store interface and its configuration-backed implementation."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from mvn_settings.config.settings import SettingsTemplateConfig
from mvn_settings.exceptions import TemplateNotFoundError
from mvn_settings.models.domain import SettingsTemplate

if TYPE_CHECKING:
    from mvn_settings.engine.context import ExecutionContext


class TemplateStore(Protocol):
    """Lookup of settings templates by id."""

    def get_by_id(self, context: ExecutionContext, template_id: str) -> SettingsTemplate | None:
        """Return the template or None if no template has that id."""
        ...


class ConfiguredTemplateStore:
    """Templates declared in :class:`~mvn_settings.config.settings.ProviderSettings`.

    Content files are read once at construction; afterwards the store is
    read-only and safe to share between concurrent execution contexts.
    """

    def __init__(self, templates: Iterable[SettingsTemplateConfig], base_dir: Path | None = None) -> None:
        self._templates: dict[str, SettingsTemplate] = {t.id: t.to_domain(base_dir) for t in templates}

    def get_by_id(self, context: ExecutionContext, template_id: str) -> SettingsTemplate | None:
        return self._templates.get(template_id)

    def require(self, context: ExecutionContext, template_id: str) -> SettingsTemplate:
        """Like :meth:`get_by_id` but raises when the id is unknown.

        Raises:
            TemplateNotFoundError: If no template has that id
        """
        template = self.get_by_id(context, template_id)
        if template is None:
            raise TemplateNotFoundError(
                f"Maven settings.xml with id '{template_id}' not found", template_id=template_id
            )
        return template

    def __iter__(self):
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)
