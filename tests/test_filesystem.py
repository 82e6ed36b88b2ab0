"""Tests for the filesystem tree, seed template and upload helpers."""

from datetime import datetime

import pytest

from simssh.filesystem import (
    SEED_TEMPLATE,
    FileSystemNode,
    NodeKind,
    build_seed_tree,
    clone_tree,
    format_bytes,
    format_modified,
    make_upload_node,
)


class TestFileSystemNode:
    """Tests for the FileSystemNode dataclass."""

    def test_directory_defaults_to_empty_children(self):
        node = FileSystemNode(name="d", kind=NodeKind.DIRECTORY)
        assert node.children == []
        assert node.content is None
        assert node.is_dir

    def test_kind_accepts_string(self):
        node = FileSystemNode(name="f", kind="file", content="hi")
        assert node.kind is NodeKind.FILE

    def test_file_with_children_rejected(self):
        with pytest.raises(ValueError):
            FileSystemNode(name="f", kind=NodeKind.FILE, children=[])

    def test_directory_with_content_rejected(self):
        with pytest.raises(ValueError):
            FileSystemNode(name="d", kind=NodeKind.DIRECTORY, content="oops")

    def test_child_lookup(self):
        root = build_seed_tree()
        assert root.child("etc").name == "etc"
        assert root.child("missing") is None

    def test_to_dict(self):
        root = build_seed_tree()
        data = root.child("etc").to_dict()
        assert data["type"] == "directory"
        assert data["date"] == "Oct 20 12:00"
        assert data["children"][0]["name"] == "passwd"
        assert data["children"][0]["type"] == "file"
        assert "root:x:0:0" in data["children"][0]["content"]


class TestSeedTree:
    """Tests for the seed filesystem."""

    def test_root_layout(self):
        root = build_seed_tree()
        assert root.name == "root"
        assert [c.name for c in root.children] == ["home", "var", "etc"]

    def test_home_user_contents(self):
        user = build_seed_tree().child("home").child("user")
        assert user.owner == "user"
        assert [c.name for c in user.children] == ["documents", "config.json"]

    def test_syslog_metadata(self):
        syslog = build_seed_tree().child("var").child("log").child("syslog")
        assert syslog.permissions == "-rw-r-----"
        assert syslog.owner == "syslog"
        assert syslog.size == "24M"

    def test_template_is_immutable(self):
        assert isinstance(SEED_TEMPLATE, tuple)

    def test_each_build_is_independent(self):
        first, second = build_seed_tree(), build_seed_tree()
        first.child("etc").children.append(
            FileSystemNode(name="hosts", kind=NodeKind.FILE, content="")
        )
        assert second.child("etc").child("hosts") is None
        assert build_seed_tree().child("etc").child("hosts") is None


class TestCloneTree:
    def test_clone_is_equal_but_not_shared(self):
        root = build_seed_tree()
        copy = clone_tree(root)
        assert copy == root
        assert copy is not root
        assert copy.children is not root.children
        assert copy.child("home") is not root.child("home")

    def test_mutating_clone_leaves_original(self):
        root = build_seed_tree()
        copy = clone_tree(root)
        copy.child("etc").child("passwd").content = "changed"
        assert root.child("etc").child("passwd").content != "changed"


class TestFormatBytes:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 B"),
            (-5, "0 B"),
            (500, "500B"),
            (1024, "1KB"),
            (1536, "1.5KB"),
            (1048576, "1MB"),
            (5 * 1024 * 1024 + 300 * 1024, "5.3MB"),
        ],
    )
    def test_format(self, size, expected):
        assert format_bytes(size) == expected


class TestUploadNode:
    def test_defaults(self):
        now = datetime(2024, 10, 27, 15, 45)
        node = make_upload_node("report.pdf", 2048, owner="alice", now=now)
        assert node.kind is NodeKind.FILE
        assert node.permissions == "-rw-r--r--"
        assert node.owner == "alice"
        assert node.size == "2KB"
        assert node.modified == "Oct 27 15:45"
        assert node.content == "[Binary Content of report.pdf]"

    def test_text_content_kept(self):
        node = make_upload_node("a.txt", 5, owner="user", content="hello")
        assert node.content == "hello"

    def test_empty_owner_falls_back(self):
        assert make_upload_node("a", 1, owner="").owner == "user"

    def test_format_modified(self):
        assert format_modified(datetime(2024, 1, 5, 9, 3)) == "Jan 5 09:03"
