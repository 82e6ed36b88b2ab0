#!/usr/bin/env python
"""SimSSH CLI entry point.

Run the simulator with: python -m simssh
Or after installation: simssh

Usage:
    simssh [OPTIONS]                       Open a simulated session in this terminal
    simssh ui                              Start the Streamlit web UI
    simssh profiles list                   List saved connection profiles
    simssh profiles add <label> <host>     Save a connection profile
    simssh profiles delete <id>            Delete a saved profile

Options:
    --host HOST         Remote host to pretend to connect to
    --user USER         Username for the connection
    --port PORT         SSH port (default: 22)
    --profile ID        Use a saved connection profile
    --log-level LEVEL   Logging level (default: INFO)
    --version           Show version and exit
    --help              Show this message and exit

Inside a session, lines starting with ':' are client commands:
    :ask <question>     Ask the AI assistant
    :run <n>            Run the n-th command the assistant suggested (asks first)
    :files [path]       List a directory like the file browser does
    :search <text>      Search the transcript
"""

from __future__ import annotations

import argparse
import logging
import signal
import subprocess
import sys
from typing import Callable, List, Optional

from colorama import Fore, Style, init as colorama_init

from .config import (
    get_config,
    get_logging_config,
    get_metrics_config,
    get_session_config,
    get_ui_config,
)

__version__ = "0.1.0"

LOGGER = logging.getLogger("simssh")


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    log_config = get_logging_config()
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_config.file is not None:
        log_config.file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_config.file, encoding="utf-8"))
    logging.basicConfig(level=numeric_level, format=log_config.format, handlers=handlers)


def print_banner() -> None:
    """Print the SimSSH startup banner."""
    banner = r"""
  ____  _           ____ ____  _   _
 / ___|(_)_ __ ___ / ___/ ___|| | | |
 \___ \| | '_ ` _ \\___ \___ \| |_| |
  ___) | | | | | | |___) |__) |  _  |
 |____/|_|_| |_| |_|____/____/|_| |_|
    Simulated SSH client v{}
    """.format(__version__)
    print(Fore.CYAN + banner + Style.RESET_ALL)


def start_ui(port: int) -> int:
    """Run the Streamlit UI in a subprocess and wait for it."""
    app_path = get_config().project_root / "dashboard" / "app.py"

    if not app_path.exists():
        logging.error("Web UI not found at %s", app_path)
        return 1

    cmd = [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(app_path),
        "--server.port",
        str(port),
        "--server.headless",
        "true",
    ]

    try:
        proc = subprocess.Popen(cmd)
    except FileNotFoundError:
        logging.error("Streamlit not installed, web UI is not available")
        return 1

    logging.info("Web UI started on http://%s:%d", get_ui_config().host, port)

    def signal_handler(sig, frame):
        logging.info("Shutting down web UI...")
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    return proc.wait()


def check_llm() -> bool:
    """Log whether the assistant model is reachable and pulled."""
    from .ai_interface import verify_ollama_setup

    ollama_ok, ollama_msg = verify_ollama_setup()
    if ollama_ok:
        logging.info("LLM: %s", ollama_msg)
    else:
        logging.warning("LLM: %s (assistant replies will be error messages)", ollama_msg)
    return ollama_ok


# =============================================================================
# Interactive session
# =============================================================================


def run_repl(
    session,
    chat=None,
    input_fn: Callable[[str], str] = input,
    output_fn: Callable[[str], None] = print,
) -> None:
    """Read-eval-print loop over a ShellSession until exit or EOF."""
    from .ai_interface import ChatSession, extract_commands
    from .terminal import TerminalSearch, format_prompt, highlight_segments

    chat = chat or ChatSession()
    user = session.connection.username
    host = session.connection.host

    for line in session.lines:
        output_fn(line.content)

    while True:
        prompt = format_prompt(user, host, session.cwd)
        try:
            line = input_fn(Fore.GREEN + prompt + Style.RESET_ALL + " ")
        except (EOFError, KeyboardInterrupt):
            output_fn("")
            break

        stripped = line.strip()
        if stripped in ("exit", "logout"):
            break

        if stripped.startswith(":ask"):
            reply = chat.send(stripped[4:].strip())
            if reply is not None:
                output_fn(Fore.MAGENTA + reply.text + Style.RESET_ALL)
                for index, cmd in enumerate(extract_commands(reply.text), 1):
                    output_fn(f"  [{index}] {cmd}")
            continue

        if stripped.startswith(":run"):
            last = chat.messages[-1]
            try:
                index = int(stripped[4:].strip() or "1") - 1
            except ValueError:
                output_fn("usage: :run <n>")
                continue
            command = chat.confirm(last.id, index)
            if command is None:
                output_fn("No such suggested command.")
                continue
            answer = input_fn(f"Execute '{command}'? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                chat.cancel()
                continue
            output = chat.run_confirmed(session.run_ai_command)
            if output:
                output_fn(output)
            continue

        if stripped.startswith(":files"):
            # Relative paths resolve against the shell cwd.
            path = stripped[6:].strip() or session.fs_path
            for node in session.navigate_files(path):
                output_fn(
                    f"{node.permissions} {node.owner:<8} {node.size:>6} "
                    f"{node.modified:<13} {node.name}"
                )
            continue

        if stripped.startswith(":search"):
            search = TerminalSearch(session.lines, stripped[7:].strip())
            seen = set()
            for line_index, _ in search.matches:
                if line_index in seen:
                    continue
                seen.add(line_index)
                parts = highlight_segments(session.lines[line_index].content, search.query)
                output_fn(
                    "".join(
                        (Fore.YELLOW + text + Style.RESET_ALL) if hit else text
                        for text, hit in parts
                    )
                )
            output_fn(f"{len(search.matches)} match(es)")
            continue

        output = session.run_command(line)
        if output:
            output_fn(output)

    session.disconnect()


def cmd_connect(args: argparse.Namespace) -> int:
    """Open a simulated session in the current terminal."""
    from .profiles import ProfileStore
    from .session import SSHConnection, connect

    host, user, port, auth_type = args.host, args.user, args.port, "password"
    if args.profile:
        profile = ProfileStore().get(args.profile)
        if profile is None:
            print(f"Profile not found: {args.profile}")
            return 1
        host, user, port, auth_type = (
            profile.host,
            profile.username,
            profile.port,
            profile.auth_type,
        )

    session_config = get_session_config()
    connection = SSHConnection(
        host=host or session_config.hostname,
        username=session_config.username if user is None else user,
        port=port or 22,
        auth_type=auth_type,
    )

    print(f"Connecting to {connection.label}...")
    try:
        session = connect(connection)
    except ConnectionError as exc:
        print(Fore.RED + str(exc) + Style.RESET_ALL)
        return 1

    run_repl(session)
    return 0


# =============================================================================
# Profiles CLI Commands
# =============================================================================


def cmd_profiles_list(args: argparse.Namespace) -> int:
    from .profiles import ProfileStore

    profiles = ProfileStore().load()
    if not profiles:
        print("No saved profiles.")
        return 0

    print()
    print(f"{'ID':<14} {'LABEL':<20} {'TARGET':<40} {'AUTH':<8}")
    print("-" * 84)
    for p in profiles:
        target = f"{p.username}@{p.host}:{p.port}"
        print(f"{p.id:<14} {p.label[:20]:<20} {target[:40]:<40} {p.auth_type:<8}")
    print()
    return 0


def cmd_profiles_add(args: argparse.Namespace) -> int:
    from .profiles import ProfileStore

    try:
        profile = ProfileStore().save_profile(
            label=args.label,
            host=args.host,
            username=args.user,
            port=args.port,
            auth_type=args.auth,
            profile_id=args.id,
        )
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1
    print(f"Saved profile {profile.id} ({profile.label})")
    return 0


def cmd_profiles_delete(args: argparse.Namespace) -> int:
    from .profiles import ProfileStore

    if not ProfileStore().delete_profile(args.profile_id):
        print(f"Profile not found: {args.profile_id}")
        return 1
    print(f"Deleted profile {args.profile_id}")
    return 0


# =============================================================================
# Main CLI
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="simssh",
        description="SimSSH - simulated SSH client with a mock filesystem",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    simssh                             Open a session to the default host
    simssh --host 10.0.0.5 --user ops  Open a session as 'ops'
    simssh ui                          Start the web UI
    simssh profiles list               List saved profiles

Environment variables:
    SIMSSH_USERNAME          Username the mock shell reports
    SIMSSH_HOSTNAME          Default host for --host
    SIMSSH_CONNECT_DELAY     Simulated connection delay in seconds
    SIMSSH_LLM_MODEL         Ollama model for the assistant
    SIMSSH_LOG_LEVEL         Logging level
        """,
    )

    parser.add_argument(
        "--host", default=None, help="Host to connect to (default: SIMSSH_HOSTNAME)"
    )
    parser.add_argument("--user", "-u", default=None, help="Username")
    parser.add_argument("--port", "-p", type=int, default=None, help="Port (default: 22)")
    parser.add_argument("--profile", default=None, help="Saved profile ID")
    parser.add_argument(
        "--log-level",
        "-l",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, or SIMSSH_LOG_LEVEL)",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"SimSSH {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ui_parser = subparsers.add_parser("ui", help="Start the Streamlit web UI")
    ui_parser.add_argument("--port", dest="ui_port", type=int, default=None)

    profiles_parser = subparsers.add_parser("profiles", help="Manage saved profiles")
    profiles_subparsers = profiles_parser.add_subparsers(
        dest="profiles_command", help="Profile commands"
    )

    list_parser = profiles_subparsers.add_parser("list", help="List saved profiles")
    list_parser.set_defaults(func=cmd_profiles_list)

    add_parser = profiles_subparsers.add_parser("add", help="Save a profile")
    add_parser.add_argument("label")
    add_parser.add_argument("host")
    add_parser.add_argument("--user", default="user")
    add_parser.add_argument("--port", type=int, default=22)
    add_parser.add_argument("--auth", choices=["password", "key"], default="password")
    add_parser.add_argument("--id", default=None, help="Update the profile with this ID")
    add_parser.set_defaults(func=cmd_profiles_add)

    delete_parser = profiles_subparsers.add_parser("delete", help="Delete a profile")
    delete_parser.add_argument("profile_id")
    delete_parser.set_defaults(func=cmd_profiles_delete)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    colorama_init()
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or get_logging_config().level)

    metrics_config = get_metrics_config()
    if metrics_config.enabled:
        from .metrics import start_metrics_server

        start_metrics_server(metrics_config.port, metrics_config.host)

    if args.command == "profiles":
        if args.profiles_command is None:
            parser.parse_args(["profiles", "--help"])
            return 0
        return args.func(args)

    if args.command == "ui":
        check_llm()
        return start_ui(args.ui_port or get_ui_config().port)

    print_banner()
    check_llm()
    return cmd_connect(args)


if __name__ == "__main__":
    sys.exit(main())
