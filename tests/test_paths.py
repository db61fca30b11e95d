"""Tests for canonical path handling."""

import pytest

from vtfs.paths import leaf_name, normalize, parent_of


class TestNormalize:
    """Test normalize() canonicalization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("", "/"),
            ("/", "/"),
            ("//", "/"),
            (".", "/"),
            ("a", "/a"),
            ("/a/b", "/a/b"),
            ("a/b/", "/a/b"),
            ("//a//b", "/a/b"),
            ("/a/./b/.", "/a/b"),
            ("/a/b/../c", "/a/c"),
            ("/..", "/"),
            ("../../x", "/x"),
            ("a/../../b", "/b"),
        ],
    )
    def test_canonical_forms(self, raw, expected):
        """Paths collapse to one absolute form without trailing separators."""
        assert normalize(raw) == expected

    def test_none_maps_to_root(self):
        """A missing path is treated as root."""
        assert normalize(None) == "/"

    def test_bytes_are_decoded(self):
        """Byte paths normalize like their text form."""
        assert normalize(b"/docs//a.txt") == "/docs/a.txt"

    def test_undecodable_bytes_do_not_raise(self):
        """Invalid UTF-8 is normalized best-effort instead of raising."""
        result = normalize(b"/bad\xff")
        assert result.startswith("/bad")

    def test_idempotent(self):
        """Normalizing a canonical path returns it unchanged."""
        once = normalize("x/./y//z/..")
        assert normalize(once) == once


class TestParentAndLeaf:
    """Test parent_of() and leaf_name()."""

    def test_root_is_its_own_parent(self):
        assert parent_of("/") == "/"

    def test_top_level_parent_is_root(self):
        assert parent_of("/a") == "/"

    def test_nested_parent(self):
        assert parent_of("/a/b/c") == "/a/b"

    def test_leaf_name(self):
        assert leaf_name("/a/b/c.txt") == "c.txt"
        assert leaf_name("/a") == "a"

    def test_root_has_no_leaf_name(self):
        assert leaf_name("/") == ""
