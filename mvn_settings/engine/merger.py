"""
Credential injection into Maven settings.xml documents.

The merger rewrites only the ``<server>`` entries targeted by resolved
credentials. Instead of re-serializing a parsed tree, it locates elements by
their byte offsets (reported by the expat parser) and splices new markup into
the original text, so comments, whitespace, attribute quoting and namespace
prefixes outside the rewritten elements are kept exactly as written.

Document shape::

    <settings>
      <servers>
        <server>
          <id>releases</id>
          <username>deployer</username>
          <password>...</password>
          <configuration>...</configuration>
        </server>
      </servers>
    </settings>

Example:
    >>> merger = SettingsMerger()
    >>> text = merger.merge(template, {"releases": UsernamePassword("deployer", SecretStr("pw"))},
    ...                     MergePolicy(replace_all=False))
"""

import re
from dataclasses import dataclass, field
from xml.parsers import expat
from xml.sax.saxutils import escape

import structlog
from structlog.typing import FilteringBoundLogger

from mvn_settings.exceptions import MalformedTemplateError
from mvn_settings.models.domain import (
    Certificate,
    MergePolicy,
    ResolvedCredential,
    ResolvedCredentialMap,
    SecretFile,
    UsernamePassword,
)

_log = structlog.get_logger(__name__)

# Children of <server> owned by the authentication block
AUTH_ELEMENTS = frozenset({"username", "password", "privateKey", "passphrase"})

DEFAULT_INDENT = b"  "

# Rest of a tag after its '<': anything up to the first '>' outside quotes
_TAG_REST = re.compile(rb"""(?:[^"'>]|"[^"]*"|'[^']*')*>""")

# A node to render: (element name, text or child nodes), or raw markup
_Node = tuple[str, "str | list[_Node]"] | bytes


@dataclass(eq=False)
class _Element:
    """Byte span of one element in the source document."""

    qname: str
    start: int
    start_tag_end: int
    parent: "_Element | None" = None
    children: list["_Element"] = field(default_factory=list)
    end_tag_start: int | None = None
    end: int = -1
    text: list[str] = field(default_factory=list)

    @property
    def local_name(self) -> str:
        return self.qname.rpartition(":")[2]

    @property
    def prefix(self) -> str:
        prefix, sep, _ = self.qname.rpartition(":")
        return prefix + sep

    @property
    def empty(self) -> bool:
        """True for empty-element tags (``<servers/>``)."""
        return self.end_tag_start is None

    def find(self, local_name: str) -> "_Element | None":
        return next((c for c in self.children if c.local_name == local_name), None)

    def find_all(self, local_name: str) -> list["_Element"]:
        return [c for c in self.children if c.local_name == local_name]


class _Scanner:
    """Parse a document with expat, recording element spans."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.root: _Element | None = None
        self._stack: list[_Element] = []
        self._parser = expat.ParserCreate("UTF-8")
        self._parser.StartElementHandler = self._start
        self._parser.EndElementHandler = self._end
        self._parser.CharacterDataHandler = self._characters
        self._parser.EntityDeclHandler = self._entity_declaration

    def scan(self) -> _Element:
        try:
            self._parser.Parse(self.data, True)
        except expat.ExpatError as e:
            raise MalformedTemplateError(
                f"Settings template is not well-formed XML: {expat.ErrorString(e.code)}",
                line=e.lineno,
                column=e.offset,
            ) from e
        if self.root is None:
            raise MalformedTemplateError("Settings template has no root element")
        return self.root

    def _tag_end(self, pos: int) -> int:
        match = _TAG_REST.match(self.data, pos + 1)
        if match is None:
            raise MalformedTemplateError("Unterminated tag in settings template")
        return match.end()

    def _start(self, name: str, attributes: dict[str, str]) -> None:
        start = self._parser.CurrentByteIndex
        parent = self._stack[-1] if self._stack else None
        element = _Element(qname=name, start=start, start_tag_end=self._tag_end(start), parent=parent)
        if parent is None:
            self.root = element
        else:
            parent.children.append(element)
        self._stack.append(element)

    def _end(self, name: str) -> None:
        element = self._stack.pop()
        if self.data[element.start_tag_end - 2 : element.start_tag_end] == b"/>":
            element.end = element.start_tag_end
        else:
            element.end_tag_start = self._parser.CurrentByteIndex
            element.end = self._tag_end(element.end_tag_start)

    def _characters(self, text: str) -> None:
        if self._stack and self._stack[-1].local_name == "id":
            self._stack[-1].text.append(text)

    def _entity_declaration(self, name: str, *args: object) -> None:
        raise MalformedTemplateError(f"Entity declarations are not supported in settings templates: {name}")


class _Splicer:
    """Collects byte-range replacements and renders inserted markup."""

    def __init__(self, data: bytes, root: _Element) -> None:
        self.data = data
        self.newline = b"\r\n" if b"\r\n" in data else b"\n"
        self.unit = self._detect_indent_unit(root)
        self._edits: list[tuple[int, int, bytes]] = []

    def apply(self) -> bytes:
        result = self.data
        for start, end, replacement in sorted(self._edits, key=lambda e: (e[0], e[1]), reverse=True):
            result = result[:start] + replacement + result[end:]
        return result

    def line_indent(self, pos: int) -> bytes | None:
        """Whitespace before ``pos`` on its line, or None if other text precedes it."""
        line_start = self.data.rfind(b"\n", 0, pos) + 1
        prefix = self.data[line_start:pos]
        return prefix if not prefix.strip() else None

    def remove(self, element: _Element) -> None:
        """Remove ``element``, including its line when it stands alone on one."""
        start = element.start
        if self.line_indent(start) is not None and self._rest_of_line_blank(element.end):
            newline = self.data.rfind(b"\n", 0, start)
            if newline >= 0:
                start = newline - 1 if newline > 0 and self.data[newline - 1 : newline] == b"\r" else newline
        self._edits.append((start, element.end, b""))

    def replace_content(self, element: _Element, nodes: list[_Node]) -> None:
        """Replace everything between the start and end tag of ``element``."""
        assert element.end_tag_start is not None
        indent = self.line_indent(element.end_tag_start)
        self._edits.append((element.start_tag_end, element.end_tag_start, self._block(nodes, indent)))

    def append(self, element: _Element, nodes: list[_Node]) -> None:
        """Append ``nodes`` as the last children of ``element``."""
        if element.empty:
            open_tag = self.data[element.start : element.end - 2].rstrip() + b">"
            close_tag = b"</" + element.qname.encode() + b">"
            inner = self._block(nodes, self.line_indent(element.start))
            self._edits.append((element.start, element.end, open_tag + inner + close_tag))
            return

        assert element.end_tag_start is not None
        indent = self.line_indent(element.end_tag_start)
        if indent is None:
            text = b"".join(self.render(node, None) for node in nodes)
        else:
            # The closing tag's indentation already precedes the insertion point
            text = b"".join(
                self.unit + self.render(node, indent + self.unit) + self.newline + indent for node in nodes
            )
        self._edits.append((element.end_tag_start, element.end_tag_start, text))

    def render(self, node: _Node, indent: bytes | None) -> bytes:
        if isinstance(node, bytes):
            return node
        name, value = node
        tag = name.encode()
        if isinstance(value, str):
            body = escape(value).encode()
        else:
            body = self._block(value, indent)
        return b"<" + tag + b">" + body + b"</" + tag + b">"

    def _block(self, nodes: list[_Node], indent: bytes | None) -> bytes:
        if indent is None:
            return b"".join(self.render(node, None) for node in nodes)
        child_indent = indent + self.unit
        return (
            b"".join(self.newline + child_indent + self.render(node, child_indent) for node in nodes)
            + self.newline
            + indent
        )

    def _rest_of_line_blank(self, pos: int) -> bool:
        line_end = self.data.find(b"\n", pos)
        rest = self.data[pos:] if line_end < 0 else self.data[pos:line_end]
        return not rest.strip()

    def _detect_indent_unit(self, root: _Element) -> bytes:
        queue = [root]
        while queue:
            parent = queue.pop(0)
            parent_indent = self.line_indent(parent.start)
            for child in parent.children:
                child_indent = self.line_indent(child.start)
                if (
                    parent_indent is not None
                    and child_indent is not None
                    and len(child_indent) > len(parent_indent)
                    and child_indent.startswith(parent_indent)
                ):
                    return child_indent[len(parent_indent) :]
                queue.append(child)
        return DEFAULT_INDENT


class SettingsMerger:
    """Inject resolved credentials into ``<server>`` entries of a settings.xml.

    For every server id in the resolved map:

    - matching entries with ``replace_all`` lose all children except ``<id>``
      and receive the authentication block;
    - matching entries without ``replace_all`` lose only their
      ``username``/``password``/``privateKey``/``passphrase`` children and
      receive the authentication block after their remaining children;
    - when no entry matches, a new ``<server>`` is appended to ``<servers>``
      (which is created when missing).

    Entries for other ids are not touched. Secret values only ever appear in
    the returned text.
    """

    def merge(
        self,
        template_content: str,
        resolved: ResolvedCredentialMap,
        policy: MergePolicy,
        log: FilteringBoundLogger | None = None,
    ) -> str:
        """Return ``template_content`` with ``resolved`` credentials injected.

        An empty ``resolved`` map returns the template unchanged. Diagnostics
        go to ``log`` when given.

        Raises:
            MalformedTemplateError: If the template is not well-formed XML
        """
        if not resolved:
            return template_content

        log = log or _log

        data = template_content.encode("utf-8")
        root = _Scanner(data).scan()
        splicer = _Splicer(data, root)

        servers = root.find("servers")
        prefix = (servers or root).prefix
        new_servers: list[_Node] = []

        for server_id, credential in resolved.items():
            entries = self._entries(servers, server_id)
            if not entries:
                log.debug("server_entry_created", server_id=server_id)
                new_servers.append(
                    (f"{prefix}server", [(f"{prefix}id", server_id), *self._auth_nodes(credential, prefix)])
                )
                continue

            for entry in entries:
                entry_prefix = entry.prefix
                if policy.replace_all:
                    log.debug("server_entry_replaced", server_id=server_id)
                    id_element = entry.find("id")
                    assert id_element is not None
                    splicer.replace_content(
                        entry,
                        [self._source(data, id_element), *self._auth_nodes(credential, entry_prefix)],
                    )
                else:
                    log.debug("server_entry_merged", server_id=server_id)
                    for child in entry.children:
                        if child.local_name in AUTH_ELEMENTS:
                            splicer.remove(child)
                    splicer.append(entry, self._auth_nodes(credential, entry_prefix))

        if new_servers:
            if servers is None:
                splicer.append(root, [(f"{prefix}servers", new_servers)])
            else:
                splicer.append(servers, new_servers)

        return splicer.apply().decode("utf-8")

    @staticmethod
    def _entries(servers: _Element | None, server_id: str) -> list[_Element]:
        if servers is None:
            return []
        matches = []
        for server in servers.find_all("server"):
            id_element = server.find("id")
            if id_element is not None and "".join(id_element.text).strip() == server_id:
                matches.append(server)
        return matches

    @staticmethod
    def _source(data: bytes, element: _Element) -> bytes:
        return data[element.start : element.end]

    @staticmethod
    def _auth_nodes(credential: ResolvedCredential, prefix: str) -> list[_Node]:
        nodes: list[_Node] = []
        if isinstance(credential, UsernamePassword):
            nodes.append((f"{prefix}username", credential.username))
            nodes.append((f"{prefix}password", credential.password.get_secret_value()))
        elif isinstance(credential, SecretFile):
            nodes.append((f"{prefix}username", credential.username))
            nodes.append((f"{prefix}privateKey", str(credential.file_path)))
            if credential.passphrase is not None:
                nodes.append((f"{prefix}passphrase", credential.passphrase.get_secret_value()))
        elif isinstance(credential, Certificate):
            nodes.append((f"{prefix}privateKey", str(credential.file_path)))
            if credential.password is not None:
                nodes.append((f"{prefix}passphrase", credential.password.get_secret_value()))
        return nodes
