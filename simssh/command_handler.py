"""Command handling logic for SimSSH.

MockSystem is the shell a simulated session talks to:
- an in-memory file tree cloned from the seed template,
- a current working directory kept as a list of path segments,
- a fixed table of built-in commands.

Every command returns text. Failures (missing paths, wrong node kind,
missing operands, unknown commands) come back as shell-style error
messages, never as exceptions.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import get_session_config
from .filesystem import FileSystemNode, NodeKind, build_seed_tree, clone_tree
from .metrics import get_metrics_collector

LOGGER = logging.getLogger(__name__)

HELP_TEXT = (
    "Available commands: ls, cd, pwd, cat, echo, whoami, help.\n"
    "This is a simulated environment."
)


class Builtin(str, Enum):
    """The closed set of commands the mock shell understands."""

    LS = "ls"
    CD = "cd"
    PWD = "pwd"
    CAT = "cat"
    ECHO = "echo"
    WHOAMI = "whoami"
    HELP = "help"

    @classmethod
    def lookup(cls, name: str) -> Optional["Builtin"]:
        """Case-sensitive lookup; None for anything not built in."""
        try:
            return cls(name)
        except ValueError:
            return None


def find_node(root: FileSystemNode, segments: Sequence[str]) -> Optional[FileSystemNode]:
    """Walk from root following segments by exact name."""
    current = root
    for segment in segments:
        if not current.children:
            return None
        nxt = current.child(segment)
        if nxt is None:
            return None
        current = nxt
    return current


def normalize_segments(path_str: str, current_path: Sequence[str]) -> List[str]:
    """Turn a path string into absolute segments.

    '/'-prefixed paths start at the root, others at current_path. Empty
    segments and '.' are dropped; '..' never climbs above the root.
    """
    target: List[str] = [] if path_str.startswith("/") else list(current_path)
    for part in path_str.split("/"):
        if not part or part == ".":
            continue
        if part == "..":
            if target:
                target.pop()
        else:
            target.append(part)
    return target


def resolve(
    path_str: str, current_path: Sequence[str], root: FileSystemNode
) -> Tuple[Optional[FileSystemNode], List[str]]:
    """Resolve a path to (node or None, absolute segments).

    The segments are returned even when no node exists at that location.
    """
    segments = normalize_segments(path_str, current_path)
    return find_node(root, segments), segments


class MockSystem:
    """Simulated remote host: file tree, cwd and a tiny shell."""

    def __init__(
        self,
        username: Optional[str] = None,
        home: Optional[Sequence[str]] = None,
    ) -> None:
        session_config = get_session_config()
        self.username = username or session_config.username
        self.home: List[str] = list(
            home if home is not None else session_config.home_segments
        )
        self.root = build_seed_tree()
        self.current_path: List[str] = list(self.home)
        self._handlers: Dict[Builtin, Callable[[List[str]], str]] = {
            Builtin.LS: self._handle_ls,
            Builtin.CD: self._handle_cd,
            Builtin.PWD: self._handle_pwd,
            Builtin.CAT: self._handle_cat,
            Builtin.ECHO: self._handle_echo,
            Builtin.WHOAMI: self._handle_whoami,
            Builtin.HELP: self._handle_help,
        }

    # ---------- Paths ----------

    def get_current_path_string(self) -> str:
        return "/" + "/".join(self.current_path)

    def find_node(self, segments: Sequence[str]) -> Optional[FileSystemNode]:
        return find_node(self.root, segments)

    def resolve_path(self, path_str: str) -> Tuple[Optional[FileSystemNode], List[str]]:
        """Resolve relative to the current directory."""
        return resolve(path_str, self.current_path, self.root)

    # ---------- Shell ----------

    def execute_command(self, line: str) -> str:
        """Run one command line and return its output text."""
        args = line.split()
        if not args:
            return ""

        name, rest = args[0], args[1:]
        builtin = Builtin.lookup(name)
        get_metrics_collector().record_command(builtin.value if builtin else None)

        if builtin is None:
            LOGGER.debug("Unknown command: %s", name)
            return f"{name}: command not found"

        output = self._handlers[builtin](rest)
        LOGGER.debug("Executed %r in %s", line.strip(), self.get_current_path_string())
        return output

    # Alias matching the UI-facing name.
    execute = execute_command

    def _handle_ls(self, args: List[str]) -> str:
        if args:
            target, _ = self.resolve_path(args[0])
        else:
            target = self.find_node(self.current_path)
        if target is None:
            shown = args[0] if args else ""
            return f"ls: cannot access '{shown}': No such file or directory"
        if target.kind is NodeKind.FILE:
            return target.name
        return "  ".join(child.name for child in target.children or [])

    def _handle_cd(self, args: List[str]) -> str:
        if not args:
            self.current_path = list(self.home)
            return ""
        node, segments = self.resolve_path(args[0])
        if node is None or node.kind is not NodeKind.DIRECTORY:
            return f"cd: {args[0]}: No such file or directory"
        self.current_path = segments
        return ""

    def _handle_pwd(self, args: List[str]) -> str:
        return self.get_current_path_string()

    def _handle_cat(self, args: List[str]) -> str:
        if not args:
            return "cat: missing operand"
        node, _ = self.resolve_path(args[0])
        if node is None:
            return f"cat: {args[0]}: No such file or directory"
        if node.kind is NodeKind.DIRECTORY:
            return f"cat: {args[0]}: Is a directory"
        return node.content or ""

    def _handle_echo(self, args: List[str]) -> str:
        return " ".join(args)

    def _handle_whoami(self, args: List[str]) -> str:
        return self.username

    def _handle_help(self, args: List[str]) -> str:
        return HELP_TEXT

    # ---------- File browser ----------

    def list_files(self, path_str: str) -> List[FileSystemNode]:
        """Children of the directory at an absolute path, or [] if none."""
        parts = [] if path_str == "/" else [p for p in path_str.split("/") if p]
        node = self.find_node(parts)
        if node is not None and node.is_dir and node.children:
            return list(node.children)
        return []

    def add_file(self, dir_path: str, file_node: FileSystemNode) -> bool:
        """Insert or overwrite a child of an existing directory.

        Returns False without touching the tree when dir_path is not a
        directory. Missing parents are never created.
        """
        node, _ = self.resolve_path(dir_path)
        if node is None or not node.is_dir:
            LOGGER.info("Upload target is not a directory: %s", dir_path)
            return False

        new_node = clone_tree(file_node)
        children = node.children if node.children is not None else []
        for index, existing in enumerate(children):
            if existing.name == new_node.name:
                children[index] = new_node
                break
        else:
            children.append(new_node)
        node.children = children
        LOGGER.info("Stored %s in %s", new_node.name, dir_path)
        return True
