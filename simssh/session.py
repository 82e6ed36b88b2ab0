"""Simulated SSH session: connection, transcript and file browser state.

A ShellSession is what a UI drives. It owns exactly one MockSystem and
records every command and upload in a terminal transcript.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Optional

from .command_handler import MockSystem
from .config import get_session_config
from .filesystem import FileSystemNode, make_upload_node
from .metrics import get_metrics_collector
from .terminal import LineType, TerminalLine, display_cwd

LOGGER = logging.getLogger(__name__)


@dataclass
class SSHConnection:
    """Parameters of a (simulated) connection."""

    host: str
    username: str
    port: int = 22
    auth_type: str = "password"  # password | key
    is_connected: bool = False

    @property
    def label(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"


def welcome_lines(host: str) -> List[TerminalLine]:
    """System lines shown right after authentication."""
    banner = get_session_config().os_banner
    return [
        TerminalLine(LineType.SYSTEM, f"Authenticated to {host}."),
        TerminalLine(LineType.SYSTEM, f"Welcome to {banner}"),
        TerminalLine(
            LineType.SYSTEM,
            "\nDocumentation:  https://help.ubuntu.com\n"
            "Management:     https://landscape.canonical.com\n"
            "Support:        https://ubuntu.com/advantage\n",
        ),
    ]


class ShellSession:
    """One connected session: mock host, transcript, browser path."""

    def __init__(self, connection: SSHConnection, system: Optional[MockSystem] = None):
        self.connection = connection
        self.system = system or MockSystem()
        self.home = self.system.get_current_path_string()
        self.lines: List[TerminalLine] = welcome_lines(connection.host)
        self.cwd = display_cwd(self.system.get_current_path_string(), self.home)
        self.fs_path = self.home
        self.file_list: List[FileSystemNode] = self.system.list_files(self.fs_path)

    @property
    def is_connected(self) -> bool:
        return self.connection.is_connected

    def run_command(self, command: str) -> str:
        """Execute a line and append input/output lines to the transcript."""
        self.lines.append(TerminalLine(LineType.INPUT, command, cwd=self.cwd))

        output = self.system.execute_command(command)
        new_cwd_raw = self.system.get_current_path_string()
        self.cwd = display_cwd(new_cwd_raw, self.home)
        self.lines.append(TerminalLine(LineType.OUTPUT, output, cwd=self.cwd))

        # Keep the file browser in step with the shell after a cd.
        if command.startswith("cd"):
            self.navigate_files(new_cwd_raw)
        return output

    def run_ai_command(self, command: str) -> str:
        """Run a command the user confirmed from the chat assistant."""
        LOGGER.info("Running assistant command: %s", command)
        return self.run_command(command)

    def refresh_files(self) -> List[FileSystemNode]:
        self.file_list = self.system.list_files(self.fs_path)
        return self.file_list

    def navigate_files(self, path: str) -> List[FileSystemNode]:
        """Point the browser at path, relative paths taken from the shell cwd."""
        _, segments = self.system.resolve_path(path)
        self.fs_path = "/" + "/".join(segments)
        return self.refresh_files()

    def upload_file(
        self, filename: str, size_bytes: int, content: Optional[str] = None
    ) -> bool:
        """Store an uploaded file in the directory the browser shows."""
        node = make_upload_node(
            filename, size_bytes, owner=self.connection.username, content=content
        )
        stored = self.system.add_file(self.fs_path, node)
        get_metrics_collector().record_upload(stored)
        if stored:
            self.refresh_files()
            self.lines.append(
                TerminalLine(
                    LineType.SYSTEM, f"Uploaded {filename} to {self.fs_path}", cwd=self.cwd
                )
            )
        return stored

    def disconnect(self) -> None:
        if self.connection.is_connected:
            get_metrics_collector().record_session_end()
        self.connection.is_connected = False
        self.lines = []
        LOGGER.info("Disconnected from %s", self.connection.label)


def connect(
    connection: SSHConnection,
    password: Optional[str] = None,
    delay: Optional[float] = None,
) -> ShellSession:
    """Open a simulated session after an artificial network delay.

    The password is accepted for the sake of the form and never checked.

    Raises:
        ConnectionError: if the credentials are rejected
    """
    if delay is None:
        delay = get_session_config().connect_delay
    if delay > 0:
        time.sleep(delay)

    # Only an empty username is refused.
    if connection.auth_type == "password" and not connection.username:
        LOGGER.warning("Rejected connection to %s: empty username", connection.host)
        raise ConnectionError("Invalid credentials.")

    connection.is_connected = True
    session = ShellSession(connection)
    get_metrics_collector().record_session_start()
    LOGGER.info("Connected to %s", connection.label)
    return session
