"""Test configuration management."""

import pytest
from pydantic import ValidationError

from notebase.config import NotebaseConfig


class TestNotebaseConfig:
    """Test NotebaseConfig defaults and NOTEBASE_ environment variables."""

    def test_defaults(self, monkeypatch):
        """Test default settings."""
        monkeypatch.delenv("NOTEBASE_LOG_LEVEL", raising=False)
        config = NotebaseConfig()
        assert config.log_level == "INFO"
        assert config.date_coercion is True
        assert config.date_property_names == ["due", "start", "end", "created", "modified"]
        assert config.date_property_substrings == ["date", "Date"]
        assert config.content_extensions == ["md"]
        assert config.formula_cache_scope == "query"
        assert config.yield_every == 50

    def test_environment_variables(self, monkeypatch):
        """Test settings are read from NOTEBASE_ variables."""
        monkeypatch.setenv("NOTEBASE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("NOTEBASE_DATE_COERCION", "false")
        monkeypatch.setenv("NOTEBASE_FORMULA_CACHE_SCOPE", "persistent")
        config = NotebaseConfig()
        assert config.log_level == "DEBUG"
        assert config.date_coercion is False
        assert config.formula_cache_scope == "persistent"

    def test_list_from_environment(self, monkeypatch):
        """Test list settings are parsed from JSON in the environment."""
        monkeypatch.setenv("NOTEBASE_CONTENT_EXTENSIONS", '["md", "markdown"]')
        assert NotebaseConfig().content_extensions == ["md", "markdown"]

    def test_invalid_cache_scope(self):
        """Test an unknown formula cache scope is rejected."""
        with pytest.raises(ValidationError):
            NotebaseConfig(formula_cache_scope="forever")

    def test_yield_every_must_be_positive(self):
        """Test yield_every must be at least one."""
        with pytest.raises(ValidationError):
            NotebaseConfig(yield_every=0)


class TestIsDateProperty:
    def test_names_and_substrings(self):
        """Test date properties by exact name and by substring."""
        config = NotebaseConfig()
        assert config.is_date_property("due")
        assert config.is_date_property("modified")
        assert config.is_date_property("startDate")
        assert config.is_date_property("review_date")
        assert not config.is_date_property("status")
        assert not config.is_date_property("Due")

    def test_disabled(self):
        """Test no property is a date when coercion is disabled."""
        assert not NotebaseConfig(date_coercion=False).is_date_property("due")
