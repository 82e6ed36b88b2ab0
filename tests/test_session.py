"""Tests for simulated connections and shell sessions."""

import pytest

from simssh.session import ShellSession, SSHConnection, connect, welcome_lines
from simssh.terminal import LineType


class TestConnect:
    def test_connect_marks_connected(self):
        conn = SSHConnection(host="example.org", username="user")
        session = connect(conn, delay=0)
        assert session.is_connected
        assert conn.is_connected

    def test_welcome_lines(self, session):
        assert [line.type for line in session.lines] == [LineType.SYSTEM] * 3
        assert session.lines[0].content == "Authenticated to 10.0.0.5."
        assert session.lines[1].content.startswith("Welcome to Ubuntu")

    def test_empty_username_rejected(self):
        with pytest.raises(ConnectionError, match="Invalid credentials."):
            connect(SSHConnection(host="h", username=""), delay=0)

    def test_key_auth_without_username_allowed(self):
        session = connect(SSHConnection(host="h", username="", auth_type="key"), delay=0)
        assert session.is_connected

    def test_delay_is_applied(self, monkeypatch):
        slept = []
        monkeypatch.setattr("simssh.session.time.sleep", slept.append)
        connect(SSHConnection(host="h", username="u"), delay=1.5)
        assert slept == [1.5]

    def test_default_delay_from_config(self, monkeypatch):
        slept = []
        monkeypatch.setattr("simssh.session.time.sleep", slept.append)
        connect(SSHConnection(host="h", username="u"))
        assert slept == []  # SIMSSH_CONNECT_DELAY=0 in tests

    def test_password_accepted_and_ignored(self):
        session = connect(SSHConnection(host="h", username="u"), password="anything", delay=0)
        assert session.is_connected

    def test_connection_label(self):
        assert SSHConnection("h", "u", 2222).label == "u@h:2222"


class TestRunCommand:
    def test_transcript_records_input_and_output(self, session):
        output = session.run_command("pwd")
        assert output == "/home/user"
        inp, out = session.lines[-2:]
        assert (inp.type, inp.content, inp.cwd) == (LineType.INPUT, "pwd", "~")
        assert (out.type, out.content) == (LineType.OUTPUT, "/home/user")

    def test_prompt_cwd_follows_cd(self, session):
        session.run_command("cd /var/log")
        assert session.cwd == "/var/log"
        assert session.lines[-2].cwd == "~"
        assert session.lines[-1].cwd == "/var/log"
        session.run_command("cd")
        assert session.cwd == "~"

    def test_cd_syncs_file_browser(self, session):
        session.run_command("cd documents")
        assert session.fs_path == "/home/user/documents"
        assert [n.name for n in session.file_list] == ["project_notes.txt", "todo.md"]

    def test_other_commands_leave_browser_alone(self, session):
        session.navigate_files("/etc")
        session.run_command("ls /var")
        assert session.fs_path == "/etc"

    def test_ai_command_goes_through_shell(self, session):
        assert session.run_ai_command("cat /etc/passwd").startswith("root:x:0:0")
        assert session.lines[-2].content == "cat /etc/passwd"


class TestFileBrowser:
    def test_initial_listing(self, session):
        assert session.fs_path == "/home/user"
        assert [n.name for n in session.file_list] == ["documents", "config.json"]

    def test_navigate(self, session):
        assert [n.name for n in session.navigate_files("/")] == ["home", "var", "etc"]

    def test_navigate_relative_to_shell_cwd(self, session):
        assert [n.name for n in session.navigate_files("documents")] == [
            "project_notes.txt",
            "todo.md",
        ]
        assert session.fs_path == "/home/user/documents"
        session.run_command("cd /var")
        session.navigate_files("..")
        assert session.fs_path == "/"

    def test_navigate_missing(self, session):
        assert session.navigate_files("/nope") == []

    def test_upload(self, session):
        assert session.upload_file("photo.png", 2048) is True
        names = [n.name for n in session.file_list]
        assert names[-1] == "photo.png"
        node = session.file_list[-1]
        assert node.owner == "user"
        assert node.size == "2KB"
        assert session.lines[-1].type is LineType.SYSTEM
        assert session.lines[-1].content == "Uploaded photo.png to /home/user"
        assert session.run_command("cat photo.png") == "[Binary Content of photo.png]"

    def test_upload_text_content(self, session):
        session.upload_file("notes.txt", 5, content="hello")
        assert session.run_command("cat notes.txt") == "hello"

    def test_upload_overwrites(self, session):
        session.navigate_files("/home/user/documents")
        session.upload_file("todo.md", 3, content="new")
        assert len(session.file_list) == 2
        assert session.run_command("cat documents/todo.md") == "new"

    def test_upload_into_missing_directory(self, session):
        session.navigate_files("/gone")
        count = len(session.lines)
        assert session.upload_file("a.txt", 1) is False
        assert len(session.lines) == count


class TestDisconnect:
    def test_disconnect_clears_transcript(self, session):
        session.disconnect()
        assert not session.is_connected
        assert session.lines == []

    def test_standalone_session(self):
        session = ShellSession(SSHConnection("h", "u"))
        assert session.lines[0].content == "Authenticated to h."
        assert len(welcome_lines("x")) == 3
