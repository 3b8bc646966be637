"""Tests for the .env reader and writer."""
import os
import stat
from datetime import datetime
from unittest import mock

import pytest

from keychain_secrets.domains import envfile
from keychain_secrets.domains.envfile import (
    FileError,
    parse_env_lines,
    read_env_file,
    render_env_file,
    write_env_file,
)

FIXED = datetime(2024, 5, 1, 12, 30, 0)


class TestParse:
    """Decoding KEY=VALUE lines."""

    def test_basic_pairs_in_order(self):
        assert parse_env_lines(["B=2\n", "A=1\n"]) == [("B", "2"), ("A", "1")]

    def test_comments_and_blanks_skipped(self):
        lines = ["# header\n", "\n", "   \n", "  # indented\n", "A=1\n"]
        assert parse_env_lines(lines) == [("A", "1")]

    def test_split_on_first_equals_only(self):
        assert parse_env_lines(["URL=postgres://u:p@h/db?sslmode=require\n"]) == [
            ("URL", "postgres://u:p@h/db?sslmode=require")
        ]

    def test_key_and_value_trimmed(self):
        assert parse_env_lines(["  KEY  =  value  \n"]) == [("KEY", "value")]

    def test_missing_value_is_empty(self):
        assert parse_env_lines(["EMPTY=\n", "NOEQUALS\n"]) == [("EMPTY", ""), ("NOEQUALS", "")]

    def test_no_quote_handling(self):
        assert parse_env_lines(['Q="quoted"\n']) == [("Q", '"quoted"')]


class TestRender:
    """Encoding pairs with the generated-file header."""

    def test_header_then_blank_then_pairs(self):
        text = render_env_file([("A", "1"), ("B", "x=y")], FIXED)
        lines = text.splitlines()
        assert lines[0].startswith("# Auto-generated by keychain-secrets-manager")
        assert "DO NOT EDIT" in lines[0]
        assert lines[2] == "# Last exported: 2024-05-01 12:30:00"
        assert lines[3] == ""
        assert lines[4:] == ["A=1", "B=x=y"]
        assert text.endswith("\n")

    def test_empty_pairs_still_have_header(self):
        text = render_env_file([], FIXED)
        assert text.startswith("# Auto-generated")
        assert "=" not in text.split("\n\n", 1)[1]

    def test_round_trip(self):
        pairs = [("A", "1"), ("TOKEN", "abc=="), ("DSN", "k=v;x=y"), ("Z", "last")]
        assert parse_env_lines(render_env_file(pairs, FIXED).splitlines()) == pairs


class TestWrite:
    """Atomic, permission-restricted writes."""

    def test_writes_with_owner_only_mode(self, tmp_path):
        path = tmp_path / ".env"
        write_env_file(str(path), [("A", "1")], FIXED)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert read_env_file(str(path)) == [("A", "1")]

    def test_creates_parent_directories(self, tmp_path):
        path = tmp_path / "deep" / "er" / ".env"
        write_env_file(str(path), [("A", "1")], FIXED)
        assert path.is_file()

    def test_replaces_existing_file_and_restricts_mode(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("OLD=1\n")
        os.chmod(path, 0o644)
        write_env_file(str(path), [("NEW", "2")], FIXED)
        assert read_env_file(str(path)) == [("NEW", "2")]
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_no_temp_files_left_behind(self, tmp_path):
        write_env_file(str(tmp_path / ".env"), [("A", "1")], FIXED)
        assert sorted(p.name for p in tmp_path.iterdir()) == [".env"]

    def test_failed_write_leaves_destination_untouched(self, tmp_path):
        path = tmp_path / ".env"
        path.write_text("KEEP=me\n")

        with mock.patch.object(envfile.os, "replace", side_effect=OSError("disk full")):
            with pytest.raises(FileError) as exc_info:
                write_env_file(str(path), [("A", "1")], FIXED)

        assert exc_info.value.path == str(path)
        assert path.read_text() == "KEEP=me\n"
        assert sorted(p.name for p in tmp_path.iterdir()) == [".env"]

    def test_parent_is_a_file(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a dir")
        with pytest.raises(FileError) as exc_info:
            write_env_file(str(blocker / ".env"), [("A", "1")], FIXED)
        assert "cannot create directory" in exc_info.value.reason

    def test_read_missing_file_raises(self, tmp_path):
        with pytest.raises(FileError):
            read_env_file(str(tmp_path / "missing.env"))
