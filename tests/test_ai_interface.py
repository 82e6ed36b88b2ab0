"""Tests for the AI chat assistant (Ollama client is faked)."""

import pytest

from simssh import ai_interface
from simssh.ai_interface import (
    DEFAULT_SYSTEM_PROMPT,
    ChatMessage,
    ChatSession,
    build_messages,
    check_ollama_connection,
    extract_commands,
    send_chat_message,
    split_message,
    verify_ollama_setup,
)

REPLY = "List it:\n```bash\nls /var/log\n```\nThen read:\n```\ncat /var/log/syslog\n```\n"


class FakeClient:
    """Stands in for ollama.Client."""

    def __init__(self, reply=REPLY, fail_list=False, fail_chat=False, models=None):
        self.reply = reply
        self.fail_list = fail_list
        self.fail_chat = fail_chat
        self.models = models if models is not None else [{"name": "llama3.2:latest"}]
        self.calls = []
        self.list_calls = 0

    def list(self):
        self.list_calls += 1
        if self.fail_list:
            raise ConnectionError("connection refused")
        return {"models": self.models}

    def chat(self, model, messages, options=None):
        self.calls.append({"model": model, "messages": messages, "options": options})
        if self.fail_chat:
            raise RuntimeError("model crashed")
        return {"message": {"role": "assistant", "content": self.reply}}


@pytest.fixture
def fake_client(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
    return client


class TestCommandExtraction:
    def test_extract_commands(self):
        assert extract_commands(REPLY) == ["ls /var/log", "cat /var/log/syslog"]

    def test_sh_and_zsh_fences(self):
        text = "```sh\npwd\n```\n```zsh\nwhoami\n```"
        assert extract_commands(text) == ["pwd", "whoami"]

    def test_other_languages_ignored(self):
        assert extract_commands("```python\nprint(1)\n```") == []

    def test_split_message(self):
        parts = split_message(REPLY)
        assert parts[0] == ("List it:\n", False)
        assert parts[1] == ("ls /var/log", True)
        assert parts[3] == ("cat /var/log/syslog", True)
        assert [is_cmd for _, is_cmd in parts] == [False, True, False, True, False]

    def test_split_plain_text(self):
        assert split_message("no code") == [("no code", False)]


class TestBuildMessages:
    def test_roles_mapped(self):
        history = [ChatMessage("model", "hi"), ChatMessage("user", "q1")]
        messages = build_messages(history, "q2")
        assert messages[0]["role"] == "system"
        assert [m["role"] for m in messages[1:]] == ["assistant", "user", "user"]
        assert messages[-1]["content"] == "q2"

    def test_system_prompt_fallback(self, monkeypatch, tmp_path):
        from simssh.config import get_config

        monkeypatch.setattr(get_config(), "system_prompt_path", tmp_path / "missing.txt")
        assert build_messages([], "x")[0]["content"] == DEFAULT_SYSTEM_PROMPT

    def test_system_prompt_from_file(self, monkeypatch, tmp_path):
        from simssh.config import get_config

        prompt = tmp_path / "prompt.txt"
        prompt.write_text("Be terse.", encoding="utf-8")
        monkeypatch.setattr(get_config(), "system_prompt_path", prompt)
        assert build_messages([], "x")[0]["content"] == "Be terse."


class TestSendChatMessage:
    def test_success(self, fake_client):
        assert send_chat_message([], "how do I list logs?") == REPLY
        call = fake_client.calls[0]
        assert call["messages"][-1] == {"role": "user", "content": "how do I list logs?"}
        assert "temperature" in call["options"]

    def test_unreachable(self, monkeypatch):
        client = FakeClient(fail_list=True)
        monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
        reply = send_chat_message([], "hi")
        assert reply.startswith("Error: Cannot connect to Ollama")
        assert client.calls == []

    def test_chat_failure_returns_error_text(self, monkeypatch):
        client = FakeClient(fail_chat=True)
        monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
        assert send_chat_message([], "hi") == "Error: model crashed"

    def test_empty_reply(self, monkeypatch):
        client = FakeClient(reply="  ")
        monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
        assert send_chat_message([], "hi") == "No response generated."

    def test_connection_check_is_cached(self, fake_client):
        assert check_ollama_connection() is True
        assert check_ollama_connection() is True
        assert fake_client.list_calls == 1


class TestVerifySetup:
    def test_model_present(self, fake_client):
        ok, message = verify_ollama_setup()
        assert ok is True
        assert "llama3.2" in message

    def test_model_missing(self, monkeypatch):
        client = FakeClient(models=[{"name": "phi3:latest"}])
        monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
        ok, message = verify_ollama_setup()
        assert ok is False
        assert "ollama pull llama3.2" in message

    def test_server_down(self, monkeypatch):
        client = FakeClient(fail_list=True)
        monkeypatch.setattr(ai_interface, "_get_client", lambda: client)
        ok, message = verify_ollama_setup()
        assert ok is False
        assert "ollama serve" in message


class TestChatSession:
    def test_starts_with_greeting(self):
        chat = ChatSession()
        assert len(chat.messages) == 1
        assert chat.messages[0].role == "model"

    def test_blank_input_ignored(self, fake_client):
        chat = ChatSession()
        assert chat.send("   ") is None
        assert len(chat.messages) == 1
        assert fake_client.calls == []

    def test_send_appends_turns(self, fake_client):
        chat = ChatSession()
        reply = chat.send("show logs")
        assert [m.role for m in chat.messages] == ["model", "user", "model"]
        assert reply.is_thinking is True
        # history excludes the message being sent
        sent = fake_client.calls[0]["messages"]
        assert [m["content"] for m in sent[1:]] == [chat.messages[0].text, "show logs"]

    def test_confirm_then_run(self, fake_client, system):
        chat = ChatSession()
        reply = chat.send("show logs")
        assert chat.confirm(reply.id, 0) == "ls /var/log"
        assert chat.pending == (reply.id, 0)
        assert chat.run_confirmed(system.execute) == "syslog"
        assert chat.pending is None

    def test_cancel(self, fake_client):
        chat = ChatSession()
        reply = chat.send("show logs")
        chat.confirm(reply.id, 1)
        chat.cancel()
        assert chat.run_confirmed(lambda cmd: pytest.fail("should not run")) is None

    def test_confirm_out_of_range(self, fake_client):
        chat = ChatSession()
        reply = chat.send("show logs")
        assert chat.confirm(reply.id, 5) is None
        assert chat.confirm("no-such-id", 0) is None
        assert chat.pending is None

    def test_run_forwards_literal_command(self, fake_client, session):
        chat = ChatSession()
        reply = chat.send("show logs")
        chat.confirm(reply.id, 1)
        output = chat.run_confirmed(session.run_ai_command)
        assert output.startswith("Oct 27 15:45:01 server CRON")
        assert session.lines[-2].content == "cat /var/log/syslog"
