"""Tests for tutorgate.keys: credential lookup and .env loading."""

from __future__ import annotations

import os

from tutorgate.keys import get_key, has_key, load_keys_env


class TestLoadKeysEnv:
    def test_loads_missing_vars(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TUTORGATE_TEST_KEY", "")
        env_file = tmp_path / "keys.env"
        env_file.write_text("# comment\n\nTUTORGATE_TEST_KEY='abc123'\nnot a pair\n")

        load_keys_env([env_file])

        assert os.environ["TUTORGATE_TEST_KEY"] == "abc123"

    def test_existing_vars_not_overwritten(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TUTORGATE_TEST_KEY", "from-shell")
        env_file = tmp_path / "keys.env"
        env_file.write_text("TUTORGATE_TEST_KEY=from-file\n")

        load_keys_env([env_file])

        assert os.environ["TUTORGATE_TEST_KEY"] == "from-shell"

    def test_earlier_files_win(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TUTORGATE_TEST_KEY", "")
        first = tmp_path / "keys.env"
        second = tmp_path / ".env"
        first.write_text("TUTORGATE_TEST_KEY=first\n")
        second.write_text("TUTORGATE_TEST_KEY=second\n")

        load_keys_env([first, second])

        assert os.environ["TUTORGATE_TEST_KEY"] == "first"

    def test_missing_files_ignored(self, tmp_path):
        load_keys_env([tmp_path / "absent.env"])


class TestGetKey:
    def test_value_stripped(self, monkeypatch):
        monkeypatch.setenv("TUTORGATE_TEST_KEY", "  sk-123  ")
        assert get_key("TUTORGATE_TEST_KEY") == "sk-123"
        assert has_key("TUTORGATE_TEST_KEY")

    def test_blank_is_missing(self, monkeypatch):
        monkeypatch.setenv("TUTORGATE_TEST_KEY", "   ")
        assert get_key("TUTORGATE_TEST_KEY") == ""
        assert not has_key("TUTORGATE_TEST_KEY")

    def test_unset_is_missing(self, monkeypatch):
        monkeypatch.delenv("TUTORGATE_TEST_KEY", raising=False)
        assert not has_key("TUTORGATE_TEST_KEY")
