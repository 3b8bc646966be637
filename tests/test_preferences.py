"""Tests for the preferences module."""
import json

from keychain_secrets.domains import preferences


class TestPreferencesModule:
    """Test suite for preferences module."""

    def test_get_preference_returns_none_when_not_set(self, temp_home):
        """Test that get_preference returns None when preference is not set."""
        assert preferences.get_preference("config_path") is None

    def test_set_then_get(self, temp_home):
        preferences.set_preference("config_path", "/path/to/secrets.conf")
        assert preferences.get_preference("config_path") == "/path/to/secrets.conf"

    def test_clear_preference_removes_value(self, temp_home):
        """Test that clear_preference removes a value."""
        preferences.set_preference("config_path", "/path/to/secrets.conf")
        assert preferences.clear_preference("config_path") is True
        assert preferences.get_preference("config_path") is None

    def test_clear_nonexistent_preference(self, temp_home):
        """Clearing a preference that doesn't exist is not an error."""
        assert preferences.clear_preference("nonexistent_key") is False

    def test_preferences_persisted_to_json_file(self, temp_home):
        """Test that preferences are persisted to the JSON file."""
        preferences.set_preference("config_path", "/path/to/secrets.conf")
        data = json.loads(preferences.PREFERENCES_FILE.read_text())
        assert data["config_path"] == "/path/to/secrets.conf"

    def test_corrupt_file_reads_as_empty(self, temp_home):
        preferences.PREFERENCES_DIR.mkdir(parents=True)
        preferences.PREFERENCES_FILE.write_text("{not json")
        assert preferences.get_preference("config_path") is None

    def test_non_object_file_reads_as_empty(self, temp_home):
        preferences.PREFERENCES_DIR.mkdir(parents=True)
        preferences.PREFERENCES_FILE.write_text("[1, 2]")
        assert preferences.get_preference("config_path") is None

    def test_set_overwrites_corrupt_file(self, temp_home):
        preferences.PREFERENCES_DIR.mkdir(parents=True)
        preferences.PREFERENCES_FILE.write_text("garbage")
        preferences.set_preference("config_path", "/x.conf")
        assert preferences.get_preference("config_path") == "/x.conf"

    def test_get_all_preferences(self, temp_home):
        assert preferences.get_all_preferences() == {}
        preferences.set_preference("config_path", "/x.conf")
        preferences.set_preference("other", "value")
        assert preferences.get_all_preferences() == {"config_path": "/x.conf", "other": "value"}
