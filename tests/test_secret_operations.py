"""Tests for single-secret store/remove and value masking."""
import pytest

from keychain_secrets.domains.config_loader import parse_config
from keychain_secrets.domains.store import StoreError
from keychain_secrets.workflows.secret_operations import (
    mask_value,
    remove_secret,
    resolve_account,
    store_secret,
)

from .conftest import FakeStore


@pytest.fixture
def config(temp_home):
    return parse_config("""
[secrets]
openai-api-key | OPENAI_API_KEY | OpenAI
github-token   | GITHUB_TOKEN
""")


class TestMaskValue:

    def test_short_values_fully_masked(self):
        assert mask_value("12345678") == "****"
        assert mask_value("a") == "****"
        assert mask_value("") == "****"
        assert mask_value(None) == "****"

    def test_long_values_show_ends_and_length(self):
        assert mask_value("x12345678") == "x123...5678 (9 chars)"


class TestResolveAccount:

    def test_account_name(self, config):
        assert resolve_account(config, "github-token") == "github-token"

    def test_env_var(self, config):
        assert resolve_account(config, "OPENAI_API_KEY") == "openai-api-key"

    def test_custom_name_passes_through(self, config):
        assert resolve_account(config, "my-custom") == "my-custom"


class TestStoreSecret:

    def test_store_new(self, config):
        store = FakeStore()
        assert store_secret(config, store, "OPENAI_API_KEY", "sk-1") is False
        assert store.values == {"openai-api-key": "sk-1"}

    def test_replace_existing(self, config):
        store = FakeStore({"github-token": "old"})
        assert store_secret(config, store, "github-token", "new") is True
        assert store.values["github-token"] == "new"

    def test_empty_value_refused(self, config):
        store = FakeStore()
        with pytest.raises(ValueError):
            store_secret(config, store, "github-token", "   ")
        assert store.values == {}

    def test_store_failure_propagates(self, config):
        store = FakeStore()
        store.fail_set.add("github-token")
        with pytest.raises(StoreError):
            store_secret(config, store, "github-token", "value")

    def test_custom_name_stored(self, config):
        store = FakeStore()
        store_secret(config, store, "scratch", "value")
        assert store.values == {"scratch": "value"}


class TestRemoveSecret:

    def test_remove_existing(self, config):
        store = FakeStore({"openai-api-key": "sk-1"})
        assert remove_secret(config, store, "OPENAI_API_KEY") is True
        assert store.values == {}

    def test_remove_absent_is_noop(self, config):
        assert remove_secret(config, FakeStore(), "github-token") is False
