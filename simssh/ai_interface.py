"""AI chat assistant for SimSSH.

This module talks to a locally hosted language model through Ollama.
The assistant answers Linux questions; when it suggests a command it puts
it in a fenced ```bash block. The chat panel extracts those blocks and, once
the user confirms, passes the literal command string to the session shell.

Nothing here raises on model failures. Errors come back as chat text
starting with "Error:" so the panel can simply show them.
"""

from __future__ import annotations

import itertools
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import ollama

from .config import get_config, get_llm_config
from .metrics import get_metrics_collector

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert Linux System Administrator and DevOps engineer assistant. "
    "You are embedded in a web-based SSH client. You can help the user with shell "
    "commands, explaining file systems, debugging scripts, and general Linux "
    "knowledge. If the user asks you to perform an action or run a command, "
    "strictly provide the command within a markdown code block "
    "(e.g., ```bash\ncommand\n```) so the user can execute it directly."
)

GREETING = (
    "Hello! I am your AI Linux Assistant. I can help you with shell commands, "
    "scripts, or analyzing your system."
)

COMMAND_BLOCK_RE = re.compile(r"```(?:bash|sh|zsh)?\n([\s\S]*?)```")

# Connection state
_client: Optional[ollama.Client] = None
_ollama_verified = False
_ollama_last_check = 0.0

_message_ids = itertools.count(1)


@dataclass
class ChatMessage:
    role: str  # user | model
    text: str
    is_thinking: bool = False
    id: str = field(default_factory=lambda: f"msg-{next(_message_ids)}")


def _get_client() -> ollama.Client:
    global _client
    if _client is None:
        llm = get_llm_config()
        _client = ollama.Client(host=llm.host, timeout=llm.timeout)
    return _client


def reset_connection_state() -> None:
    """Forget the cached client and reachability (used by tests)."""
    global _client, _ollama_verified, _ollama_last_check
    _client = None
    _ollama_verified = False
    _ollama_last_check = 0.0


def _load_system_prompt() -> str:
    """Load the system prompt from disk, falling back to the built-in one."""
    path = get_config().system_prompt_path
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        LOGGER.debug("No system prompt at %s (%s), using default", path, exc)
        return DEFAULT_SYSTEM_PROMPT
    if not text.strip():
        LOGGER.warning("System prompt %s is empty, using default", path)
        return DEFAULT_SYSTEM_PROMPT
    return text


def _model_names(models: Any) -> List[str]:
    """Model names from an ollama list() response (typed or dict style)."""
    models_list = getattr(models, "models", None) or models.get("models", [])
    names = []
    for m in models_list:
        name = getattr(m, "model", None) or (m.get("name", "") if hasattr(m, "get") else "")
        if name:
            names.append(name)
    return names


def check_ollama_connection() -> bool:
    """Check if the Ollama server is reachable.

    The result is cached for the configured check interval, both on
    success and on failure.
    """
    global _ollama_verified, _ollama_last_check

    now = time.time()
    interval = get_llm_config().check_interval
    if _ollama_last_check and (now - _ollama_last_check) < interval:
        return _ollama_verified

    _ollama_last_check = now
    try:
        _get_client().list()
    except Exception as exc:
        LOGGER.error("Failed to connect to Ollama: %s", exc)
        _ollama_verified = False
        return False

    _ollama_verified = True
    return True


def build_messages(
    history: Sequence[ChatMessage], message: str
) -> List[Dict[str, str]]:
    """System prompt, prior turns, then the latest user message."""
    messages = [{"role": "system", "content": _load_system_prompt()}]
    for turn in history:
        role = "assistant" if turn.role == "model" else "user"
        messages.append({"role": role, "content": turn.text})
    messages.append({"role": "user", "content": message})
    return messages


def send_chat_message(history: Sequence[ChatMessage], message: str) -> str:
    """Ask the model and return its reply text (or an 'Error: ...' string)."""
    global _ollama_verified

    llm = get_llm_config()
    metrics = get_metrics_collector()

    if not check_ollama_connection():
        metrics.record_chat_request(llm.model, "error")
        return f"Error: Cannot connect to Ollama at {llm.host}. Run: ollama serve"

    start_time = time.time()
    try:
        response = _get_client().chat(
            model=llm.model,
            messages=build_messages(history, message),
            options={"temperature": llm.temperature},
        )
    except Exception as exc:
        latency = time.time() - start_time
        LOGGER.error("Chat request failed: %s", exc)
        metrics.record_chat_request(llm.model, "error", latency)

        # Mark connection as failed so we don't keep retrying
        _ollama_verified = False
        return f"Error: {str(exc) or 'Unknown error occurred'}"

    latency = time.time() - start_time
    content = (response.get("message", {}) or {}).get("content", "") or ""
    if not content.strip():
        metrics.record_chat_request(llm.model, "empty", latency)
        return "No response generated."

    metrics.record_chat_request(llm.model, "success", latency)
    return content


def split_message(text: str) -> List[Tuple[str, bool]]:
    """Split a reply into (part, is_command) pairs in display order.

    Command parts are stripped; empty prose parts are dropped.
    """
    parts = COMMAND_BLOCK_RE.split(text)
    result: List[Tuple[str, bool]] = []
    for index, part in enumerate(parts):
        if index % 2 == 1:
            result.append((part.strip(), True))
        elif part:
            result.append((part, False))
    return result


def extract_commands(text: str) -> List[str]:
    """Commands inside ```bash / ```sh / ```zsh / bare ``` fences."""
    return [m.strip() for m in COMMAND_BLOCK_RE.findall(text)]


class ChatSession:
    """Chat transcript with confirm-then-run for suggested commands."""

    def __init__(self, greeting: str = GREETING):
        self.messages: List[ChatMessage] = [ChatMessage("model", greeting)]
        self.pending: Optional[Tuple[str, int]] = None

    def send(self, text: str) -> Optional[ChatMessage]:
        """Send a user message; returns the model reply, or None if blank."""
        if not text.strip():
            return None
        history = list(self.messages)
        self.messages.append(ChatMessage("user", text))

        reply = ChatMessage("model", send_chat_message(history, text), is_thinking=True)
        self.messages.append(reply)
        return reply

    def _message(self, message_id: str) -> Optional[ChatMessage]:
        for msg in self.messages:
            if msg.id == message_id:
                return msg
        return None

    def commands_for(self, message_id: str) -> List[str]:
        msg = self._message(message_id)
        if msg is None or msg.role != "model":
            return []
        return extract_commands(msg.text)

    def confirm(self, message_id: str, index: int) -> Optional[str]:
        """Mark a suggested command as awaiting confirmation."""
        commands = self.commands_for(message_id)
        if not 0 <= index < len(commands):
            return None
        self.pending = (message_id, index)
        return commands[index]

    def cancel(self) -> None:
        self.pending = None

    def run_confirmed(self, executor: Callable[[str], str]) -> Optional[str]:
        """Pass the pending command to executor and clear the confirmation."""
        if self.pending is None:
            return None
        message_id, index = self.pending
        self.pending = None
        command = self.commands_for(message_id)[index]
        return executor(command)


def verify_ollama_setup() -> Tuple[bool, str]:
    """Verify Ollama is running and the configured model is pulled.

    Returns:
        Tuple of (success: bool, message: str)
    """
    model = get_llm_config().model
    try:
        names = _model_names(_get_client().list())
    except Exception as exc:
        return False, f"Cannot connect to Ollama: {exc}. Run: ollama serve"

    if not any(name == model or name.startswith(f"{model}:") for name in names):
        return False, (
            f"Model '{model}' not found. "
            f"Available models: {names}. "
            f"Run: ollama pull {model}"
        )
    return True, f"Ollama ready with model '{model}'"
