"""SimSSH web UI.

A Streamlit front end for the simulator featuring:
- Connection form with saved profiles
- Terminal panel with transcript search and highlighting
- File browser (grid or list) with upload
- AI assistant side panel with confirm-then-run commands

Run with: streamlit run dashboard/app.py  (or: simssh ui)
"""

from __future__ import annotations

import html
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from simssh.ai_interface import ChatSession, split_message, verify_ollama_setup
from simssh.config import get_config
from simssh.filesystem import FileSystemNode
from simssh.profiles import ProfileStore
from simssh.session import ShellSession, SSHConnection, connect
from simssh.terminal import LineType, TerminalSearch, format_prompt, highlight_segments

TERMINAL_CSS = """
<style>
.sim-terminal {
    background: #1e1e1e;
    border-radius: 8px;
    padding: 15px;
    font-family: 'Monaco', 'Consolas', monospace;
    font-size: 13px;
    max-height: 480px;
    overflow-y: auto;
    border: 1px solid #333;
    white-space: pre-wrap;
}
.sim-prompt { color: #4ade80; }
.sim-input { color: #e5e7eb; }
.sim-output { color: #d1d5db; }
.sim-error { color: #f87171; }
.sim-system { color: #60a5fa; }
.sim-hit { background: rgba(234, 179, 8, 0.4); color: #fff; }
.sim-hit-current { background: #eab308; color: #111827; font-weight: bold; }
</style>
"""

# ============================================================================
# Helpers
# ============================================================================


def file_rows(nodes: List[FileSystemNode]) -> List[Dict[str, Any]]:
    """Rows for the file browser list view."""
    return [
        {
            "Name": node.name + ("/" if node.is_dir else ""),
            "Permissions": node.permissions,
            "Owner": node.owner,
            "Size": node.size,
            "Modified": node.modified,
        }
        for node in nodes
    ]


def parent_path(path: str) -> str:
    parts = [p for p in path.split("/") if p]
    return "/" + "/".join(parts[:-1])


def child_path(path: str, name: str) -> str:
    return path.rstrip("/") + "/" + name


def render_line(content: str, query: str, current_hit: Optional[int]) -> str:
    """HTML for one transcript line with search hits marked."""
    out = []
    hit_index = 0
    for text, is_hit in highlight_segments(content, query):
        escaped = html.escape(text)
        if is_hit:
            css = "sim-hit-current" if hit_index == current_hit else "sim-hit"
            out.append(f'<span class="{css}">{escaped}</span>')
            hit_index += 1
        else:
            out.append(escaped)
    return "".join(out)


# ============================================================================
# Panels
# ============================================================================


def render_connection_form() -> None:
    """Connection form with the saved profile sidebar."""
    store = ProfileStore()
    profiles = store.load()
    defaults = st.session_state.setdefault(
        "form",
        {"id": None, "label": "", "host": "192.168.1.100", "username": "user",
         "port": 22, "auth_type": "password"},
    )

    st.sidebar.title("Saved Connections")
    if st.sidebar.button("New Connection"):
        st.session_state.pop("form", None)
        st.rerun()
    if not profiles:
        st.sidebar.caption("No saved profiles.")
    for profile in profiles:
        col1, col2 = st.sidebar.columns([4, 1])
        if col1.button(f"{profile.label} ({profile.username}@{profile.host})", key=f"load-{profile.id}"):
            st.session_state["form"] = {
                "id": profile.id, "label": profile.label, "host": profile.host,
                "username": profile.username, "port": profile.port,
                "auth_type": profile.auth_type,
            }
            st.rerun()
        if col2.button("Delete", key=f"del-{profile.id}"):
            store.delete_profile(profile.id)
            if defaults.get("id") == profile.id:
                st.session_state.pop("form", None)
            st.rerun()

    st.markdown("## Connect to a host")
    with st.form("connect"):
        label = st.text_input("Label", defaults["label"])
        host = st.text_input("Host", defaults["host"])
        username = st.text_input("Username", defaults["username"])
        port = st.number_input("Port", min_value=1, max_value=65535, value=int(defaults["port"]))
        auth_type = st.radio(
            "Authentication",
            ["password", "key"],
            index=0 if defaults["auth_type"] == "password" else 1,
            horizontal=True,
        )
        # Never saved or reloaded.
        if auth_type == "password":
            password = st.text_input("Password", type="password")
        else:
            password = None
            st.text_area("Private key")

        col1, col2 = st.columns(2)
        save = col1.form_submit_button("Save Profile")
        submit = col2.form_submit_button("Connect", type="primary")

    if save:
        try:
            profile = store.save_profile(
                label, host, username, int(port), auth_type, profile_id=defaults.get("id")
            )
        except ValueError as exc:
            st.error(str(exc))
        else:
            st.session_state["form"] = {**defaults, "id": profile.id, "label": label,
                                        "host": host, "username": username,
                                        "port": int(port), "auth_type": auth_type}
            st.success(f"Saved '{label}'")

    if submit:
        connection = SSHConnection(host=host, username=username, port=int(port), auth_type=auth_type)
        with st.spinner(f"Connecting to {host}..."):
            try:
                st.session_state["session"] = connect(connection, password=password)
            except ConnectionError as exc:
                st.error(str(exc))
                return
        st.session_state["chat"] = ChatSession()
        st.rerun()


def render_terminal(session: ShellSession) -> None:
    st.markdown(TERMINAL_CSS, unsafe_allow_html=True)
    user, host = session.connection.username, session.connection.host

    query = st.text_input("Search transcript", key="search_query")
    search = TerminalSearch(session.lines, query)
    if search.matches:
        col1, col2, col3 = st.columns([1, 1, 6])
        step = st.session_state.get("search_step", 0) % len(search.matches)
        if col1.button("Previous"):
            step = (step - 1) % len(search.matches)
        if col2.button("Next"):
            step = (step + 1) % len(search.matches)
        st.session_state["search_step"] = step
        search.current = step
        col3.caption(search.status())

    current_line, current_offset = (
        search.matches[search.current] if search.matches else (None, None)
    )

    parts = ['<div class="sim-terminal">']
    for index, line in enumerate(session.lines):
        current_hit = None
        if index == current_line:
            current_hit = [s for i, s in search.matches if i == index].index(current_offset)
        body = render_line(line.content, search.query, current_hit)
        if line.type is LineType.INPUT:
            prompt = html.escape(format_prompt(user, host, line.cwd))
            parts.append(f'<div><span class="sim-prompt">{prompt}</span> <span class="sim-input">{body}</span></div>')
        elif line.content:
            parts.append(f'<div class="sim-{line.type.value}">{body}</div>')
    parts.append("</div>")
    st.markdown("".join(parts), unsafe_allow_html=True)

    with st.form("command", clear_on_submit=True):
        command = st.text_input(format_prompt(user, host, session.cwd))
        if st.form_submit_button("Run") and command:
            session.run_command(command)
            st.rerun()


def render_file_browser(session: ShellSession) -> None:
    st.markdown(f"**SFTP:** `{session.fs_path}`")
    col1, col2, col3 = st.columns([1, 1, 4])
    if col1.button("Up") and session.fs_path != "/":
        session.navigate_files(parent_path(session.fs_path))
        st.rerun()
    if col2.button("Refresh"):
        session.refresh_files()
    view = col3.radio("View", ["Grid", "List"], horizontal=True, label_visibility="collapsed")

    nodes = session.file_list
    if not nodes:
        st.info("This folder is empty.")
    elif view == "List":
        st.dataframe(pd.DataFrame(file_rows(nodes)), use_container_width=True, hide_index=True)
        dirs = [n.name for n in nodes if n.is_dir]
        if dirs:
            target = st.selectbox("Open folder", [""] + dirs)
            if target:
                session.navigate_files(child_path(session.fs_path, target))
                st.rerun()
    else:
        cols = st.columns(4)
        for index, node in enumerate(nodes):
            with cols[index % 4]:
                if node.is_dir:
                    if st.button(f"[dir] {node.name}", key=f"open-{node.name}"):
                        session.navigate_files(child_path(session.fs_path, node.name))
                        st.rerun()
                else:
                    st.markdown(f"`{node.name}`  \n{node.size} - {node.modified}")

    uploaded = st.file_uploader("Upload to this folder", key=f"upload-{session.fs_path}")
    if uploaded is not None and st.button(f"Upload {uploaded.name}"):
        data = uploaded.getvalue()
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            text = None
        if session.upload_file(uploaded.name, uploaded.size, content=text):
            st.success(f"Uploaded {uploaded.name} to {session.fs_path}")
        else:
            st.error(f"{session.fs_path} is not a directory")


def render_chat(session: ShellSession, chat: ChatSession) -> None:
    st.markdown("### AI Assistant")
    st.caption(f"Model: {get_config().llm.model}")
    if "llm_status" not in st.session_state:
        st.session_state["llm_status"] = verify_ollama_setup()
    llm_ok, llm_msg = st.session_state["llm_status"]
    if not llm_ok:
        st.warning(llm_msg)

    for msg in chat.messages:
        with st.chat_message("user" if msg.role == "user" else "assistant"):
            if msg.role == "user":
                st.markdown(msg.text)
                continue
            command_index = 0
            for part, is_command in split_message(msg.text):
                if not is_command:
                    st.markdown(part)
                    continue
                st.code(part, language="bash")
                key = (msg.id, command_index)
                if chat.pending == key:
                    col1, col2 = st.columns(2)
                    if col1.button("Confirm", key=f"ok-{msg.id}-{command_index}", type="primary"):
                        chat.run_confirmed(session.run_ai_command)
                        st.rerun()
                    if col2.button("Cancel", key=f"no-{msg.id}-{command_index}"):
                        chat.cancel()
                        st.rerun()
                elif st.button("Run", key=f"run-{msg.id}-{command_index}"):
                    chat.confirm(msg.id, command_index)
                    st.rerun()
                command_index += 1

    prompt = st.chat_input("Ask about Linux, scripts or this system")
    if prompt:
        with st.spinner("Thinking deeply..."):
            chat.send(prompt)
        st.rerun()


# ============================================================================
# Main
# ============================================================================


def main() -> None:
    """Web UI entry point."""
    st.set_page_config(page_title="SimSSH", page_icon="", layout="wide")

    session: Optional[ShellSession] = st.session_state.get("session")
    if session is None or not session.is_connected:
        render_connection_form()
        return

    chat: ChatSession = st.session_state.setdefault("chat", ChatSession())

    st.sidebar.markdown(f"**{session.connection.label}**")
    show_chat = st.sidebar.toggle("AI Assistant", value=False)
    if st.sidebar.button("Disconnect"):
        session.disconnect()
        st.session_state.pop("session", None)
        st.session_state.pop("chat", None)
        st.rerun()

    if show_chat:
        main_col, chat_col = st.columns([3, 2])
    else:
        main_col, chat_col = st.container(), None

    with main_col:
        terminal_tab, files_tab = st.tabs(["SSH Session", "SFTP Session"])
        with terminal_tab:
            render_terminal(session)
        with files_tab:
            render_file_browser(session)

    if chat_col is not None:
        with chat_col:
            render_chat(session, chat)


if __name__ == "__main__":
    main()
