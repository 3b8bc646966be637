"""Shared fixtures for keychain-secrets-manager tests."""
from pathlib import Path
from typing import Dict, Optional

import pytest

from keychain_secrets.domains import preferences
from keychain_secrets.domains.store import StoreError


class FakeStore:
    """In-memory SecretStore with switches for simulating backend failures."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(values or {})
        self.fail_get = set()
        self.fail_set = set()
        self.set_calls = []

    def get(self, account_name):
        if account_name in self.fail_get:
            return None
        return self.values.get(account_name) or None

    def set(self, account_name, value):
        if account_name in self.fail_set:
            raise StoreError(f"Failed to store '{account_name}'")
        self.set_calls.append(account_name)
        self.values[account_name] = value

    def delete(self, account_name):
        self.values.pop(account_name, None)


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)

    fake_config_dir = fake_home / ".config" / "keychain-secrets-manager"
    monkeypatch.setattr(preferences, "PREFERENCES_DIR", fake_config_dir)
    monkeypatch.setattr(preferences, "PREFERENCES_FILE", fake_config_dir / "preferences.json")

    return fake_home


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def workspace(tmp_path):
    """Directory layout with two existing projects and one missing one."""
    root = tmp_path / "work"
    (root / "app").mkdir(parents=True)
    (root / "api").mkdir(parents=True)
    return root


@pytest.fixture
def config_text(workspace, tmp_path):
    """Config text wired to the workspace fixture."""
    return f"""
[settings]
service  = test-service
env_file = {tmp_path / "global" / ".env"}
log_file = {tmp_path / "logs" / "export.log"}

[secrets]
openai-api-key | OPENAI_API_KEY | OpenAI API key
github-token   | GITHUB_TOKEN   | GitHub token
database-url   | DATABASE_URL

[projects]
{workspace / "app"}     | DATABASE_URL, OPENAI_API_KEY
{workspace / "api"}     | GITHUB_TOKEN, NOT_A_SECRET
{workspace / "missing"} | OPENAI_API_KEY
"""


@pytest.fixture
def config_file(tmp_path, config_text):
    path = tmp_path / "secrets.conf"
    path.write_text(config_text)
    return path
