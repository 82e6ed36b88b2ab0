"""In-memory filesystem tree for SimSSH.

Every session owns one tree of FileSystemNode objects. The tree is built
from SEED_TEMPLATE, a nested tuple structure that is never mutated, so two
sessions can never observe each other's uploads.

Display attributes (permissions, owner, size, modified) are cosmetic strings.
Nothing here enforces them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class NodeKind(str, Enum):
    """Kind of a filesystem node."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class FileSystemNode:
    """A file or directory in the mock tree.

    Files carry ``content`` and never ``children``; directories carry
    ``children`` (in display order) and never ``content``.
    """

    name: str
    kind: NodeKind = NodeKind.FILE
    permissions: str = "-rw-r--r--"
    owner: str = "root"
    size: str = "0"
    modified: str = ""
    content: Optional[str] = None
    children: Optional[List["FileSystemNode"]] = None

    def __post_init__(self) -> None:
        self.kind = NodeKind(self.kind)
        if self.kind is NodeKind.FILE:
            if self.children is not None:
                raise ValueError(f"file node '{self.name}' cannot have children")
        else:
            if self.content is not None:
                raise ValueError(f"directory node '{self.name}' cannot have content")
            if self.children is None:
                self.children = []

    @property
    def is_dir(self) -> bool:
        return self.kind is NodeKind.DIRECTORY

    def child(self, name: str) -> Optional["FileSystemNode"]:
        """Return the child with an exact name match, or None."""
        if not self.children:
            return None
        for node in self.children:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dict."""
        data: Dict[str, Any] = {
            "name": self.name,
            "type": self.kind.value,
            "permissions": self.permissions,
            "owner": self.owner,
            "size": self.size,
            "date": self.modified,
        }
        if self.is_dir:
            data["children"] = [c.to_dict() for c in self.children or []]
        else:
            data["content"] = self.content
        return data


def clone_tree(node: FileSystemNode) -> FileSystemNode:
    """Recursively copy a node and its children.

    The copy shares no lists or nodes with the original.
    """
    children = None
    if node.is_dir:
        children = [clone_tree(c) for c in node.children or []]
    return FileSystemNode(
        name=node.name,
        kind=node.kind,
        permissions=node.permissions,
        owner=node.owner,
        size=node.size,
        modified=node.modified,
        content=node.content,
        children=children,
    )


# ---------- Seed template ----------

# (name, permissions, owner, size, modified, children)
SeedDir = Tuple[str, str, str, str, str, Tuple[Any, ...]]
# (name, permissions, owner, size, modified, content)
SeedFile = Tuple[str, str, str, str, str, str]

SEED_TEMPLATE: SeedDir = (
    "root", "drwxr-xr-x", "root", "4096", "Oct 25 10:00", (
        ("home", "drwxr-xr-x", "root", "4096", "Oct 25 10:00", (
            ("user", "drwxr-xr-x", "user", "4096", "Oct 25 10:01", (
                ("documents", "drwxr-xr-x", "user", "4096", "Oct 26 14:30", (
                    (
                        "project_notes.txt", "-rw-r--r--", "user", "1.2k", "Oct 26 14:32",
                        "These are the notes for the secret project.\n"
                        "Status: Ongoing\n"
                        "Priority: High",
                    ),
                    (
                        "todo.md", "-rw-r--r--", "user", "340", "Oct 27 09:15",
                        "- [ ] Refactor backend\n"
                        "- [ ] Fix CSS bugs\n"
                        "- [x] Deploy to production",
                    ),
                )),
                (
                    "config.json", "-rw-r--r--", "user", "512", "Oct 25 11:20",
                    '{\n  "theme": "dark",\n  "notifications": true,\n  "version": "1.0.4"\n}',
                ),
            )),
        )),
        ("var", "drwxr-xr-x", "root", "4096", "Oct 24 08:00", (
            ("log", "drwxr-xr-x", "root", "4096", "Oct 24 08:00", (
                (
                    "syslog", "-rw-r-----", "syslog", "24M", "Oct 27 15:45",
                    "Oct 27 15:45:01 server CRON[1234]: (root) CMD "
                    "(cd / && run-parts --report /etc/cron.hourly)",
                ),
            )),
        )),
        ("etc", "drwxr-xr-x", "root", "4096", "Oct 20 12:00", (
            (
                "passwd", "-rw-r--r--", "root", "1024", "Oct 20 12:00",
                "root:x:0:0:root:/root:/bin/bash\n"
                "user:x:1000:1000:user,,,:/home/user:/bin/bash",
            ),
        )),
    ),
)


def _node_from_seed(entry: Tuple[Any, ...]) -> FileSystemNode:
    name, permissions, owner, size, modified, payload = entry
    if isinstance(payload, tuple):
        return FileSystemNode(
            name=name,
            kind=NodeKind.DIRECTORY,
            permissions=permissions,
            owner=owner,
            size=size,
            modified=modified,
            children=[_node_from_seed(c) for c in payload],
        )
    return FileSystemNode(
        name=name,
        kind=NodeKind.FILE,
        permissions=permissions,
        owner=owner,
        size=size,
        modified=modified,
        content=payload,
    )


def build_seed_tree() -> FileSystemNode:
    """Build a fresh root node from the seed template."""
    return _node_from_seed(SEED_TEMPLATE)


# ---------- Upload helpers ----------

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]


def format_bytes(num_bytes: int, decimals: int = 1) -> str:
    """Human readable size, e.g. 1536 -> '1.5KB'. Zero and negative sizes give '0 B'."""
    if num_bytes <= 0:
        return "0 B"
    k = 1024
    decimals = max(decimals, 0)
    i = min(int(math.floor(math.log(num_bytes, k))), len(SIZE_UNITS) - 1)
    value = round(num_bytes / (k ** i), decimals)
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".") if decimals else str(int(value))
    return f"{text}{SIZE_UNITS[i]}"


def format_modified(when: datetime) -> str:
    """Format a timestamp the way listings show it ('Oct 7 15:45')."""
    return f"{when:%b} {when.day} {when:%H:%M}"


def make_upload_node(
    filename: str,
    size_bytes: int,
    owner: str,
    content: Optional[str] = None,
    now: Optional[datetime] = None,
) -> FileSystemNode:
    """Build the file node inserted by the upload flow."""
    return FileSystemNode(
        name=filename,
        kind=NodeKind.FILE,
        permissions="-rw-r--r--",
        owner=owner or "user",
        size=format_bytes(size_bytes),
        modified=format_modified(now or datetime.now()),
        content=content if content is not None else f"[Binary Content of {filename}]",
    )
