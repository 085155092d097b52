"""Tests for utils.py — path helpers, MIME guessing, hashing."""

from __future__ import annotations

import pytest

from stowage.exceptions import InvalidPathError
from stowage.utils import (
    DEFAULT_MIME_TYPE,
    ancestors,
    check_file_path,
    check_path,
    content_hash,
    guess_mime_type,
    is_descendant,
    normalize_path,
    parent_path,
    split_path,
    to_bytes,
    validate_path,
)

# ---------------------------------------------------------------------------
# Path Utilities
# ---------------------------------------------------------------------------


class TestNormalizePath:
    @pytest.mark.parametrize(
        ("input_path", "expected"),
        [
            pytest.param("", "", id="empty"),
            pytest.param("/", "", id="root"),
            pytest.param("foo.txt", "foo.txt", id="plain"),
            pytest.param("/foo.txt", "foo.txt", id="leading-slash"),
            pytest.param("foo//bar.txt", "foo/bar.txt", id="double-slashes"),
            pytest.param("./a/./b", "a/b", id="dot"),
            pytest.param("foo/", "foo", id="trailing-slash"),
            pytest.param("//foo", "foo", id="double-leading-slash"),
            pytest.param("  foo.txt ", "foo.txt", id="whitespace"),
        ],
    )
    def test_normalize(self, input_path: str, expected: str):
        assert normalize_path(input_path) == expected


class TestSplitPath:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            pytest.param("foo/bar.txt", ("foo", "bar.txt"), id="nested-file"),
            pytest.param("foo.txt", ("", "foo.txt"), id="top-level-file"),
            pytest.param("", ("", ""), id="root"),
        ],
    )
    def test_split(self, path: str, expected: tuple[str, str]):
        assert split_path(path) == expected

    def test_parent_path(self):
        assert parent_path("a/b/c.txt") == "a/b"
        assert parent_path("c.txt") == ""


class TestAncestry:
    def test_ancestors(self):
        assert ancestors("a/b/c.txt") == ["", "a", "a/b"]
        assert ancestors("top.txt") == [""]
        assert ancestors("") == []

    @pytest.mark.parametrize(
        ("path", "ancestor", "expected"),
        [
            pytest.param("a/b", "a", True, id="child"),
            pytest.param("a/b/c", "a", True, id="grandchild"),
            pytest.param("a", "", True, id="root-ancestor"),
            pytest.param("a", "a", False, id="self"),
            pytest.param("ab/c", "a", False, id="shared-name-prefix"),
            pytest.param("", "", False, id="root-self"),
        ],
    )
    def test_is_descendant(self, path: str, ancestor: str, expected: bool):
        assert is_descendant(path, ancestor) is expected


class TestValidatePath:
    def test_valid(self):
        ok, msg = validate_path("hello.txt")
        assert ok is True
        assert msg == ""

    @pytest.mark.parametrize(
        ("path", "expected_msg"),
        [
            pytest.param("hello\x00.txt", "null", id="null-byte"),
            pytest.param("hello\n.txt", "control", id="newline"),
            pytest.param("bell\x07", "control", id="bell"),
            pytest.param("del\x7f", "control", id="delete"),
            pytest.param("a/" * 2049, "too long", id="path-too-long"),
            pytest.param("a" * 256, "Filename too long", id="filename-too-long"),
            pytest.param("foo/../bar.txt", "..", id="dotdot"),
            pytest.param("../../etc/passwd", "..", id="dotdot-leading"),
            pytest.param("a/..", "..", id="dotdot-trailing"),
        ],
    )
    def test_invalid(self, path: str, expected_msg: str):
        ok, msg = validate_path(path)
        assert ok is False
        assert expected_msg in msg

    def test_unicode_allowed(self):
        assert validate_path("données/résumé.txt") == (True, "")

    def test_dots_inside_names_allowed(self):
        assert validate_path("..hidden/v1..2/file...txt") == (True, "")

    def test_check_path_normalizes(self):
        assert check_path("/a//b/") == "a/b"
        assert check_path("") == ""

    def test_check_path_raises(self):
        with pytest.raises(InvalidPathError):
            check_path("bad\x01")

    def test_check_file_path_rejects_root(self):
        with pytest.raises(InvalidPathError):
            check_file_path("/")


# ---------------------------------------------------------------------------
# Content Helpers
# ---------------------------------------------------------------------------


class TestContentHelpers:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            pytest.param("notes/todo.txt", "text/plain", id="txt"),
            pytest.param("data.json", "application/json", id="json"),
            pytest.param("page.html", "text/html", id="html"),
            pytest.param("image.png", "image/png", id="png"),
            pytest.param("blob.unknownext", DEFAULT_MIME_TYPE, id="unknown"),
            pytest.param("Makefile", DEFAULT_MIME_TYPE, id="no-extension"),
        ],
    )
    def test_guess_mime_type(self, path: str, expected: str):
        assert guess_mime_type(path) == expected

    def test_to_bytes(self):
        assert to_bytes("é") == b"\xc3\xa9"
        assert to_bytes(b"raw") == b"raw"
        assert to_bytes(bytearray(b"ba")) == b"ba"

    def test_content_hash(self):
        assert (
            content_hash(b"Hello, world!")
            == "315f5bdb76d078c43b8ac0064e4a0164612b1fce77c869345bfc94c75894edd3"
        )
