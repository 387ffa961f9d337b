"""
Unit tests for configuration layering.
"""

import pytest

import schemabrackets.config
from schemabrackets.config import Config, get_config, load_config


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Point config lookup at an empty XDG dir and clear env overrides."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    for key in ("SYNTAX", "JSONLD", "VOCAB", "PRIMARY_TYPE"):
        monkeypatch.delenv(f"SCHEMA_BRACKETS_{key}", raising=False)
    monkeypatch.setattr(schemabrackets.config, "_config", None)
    return tmp_path


class TestConfig:
    def test_defaults(self):
        config = Config()
        assert config.syntax == "both"
        assert config.jsonld
        assert config.vocab == "https://schema.org/"
        assert config.context == "https://schema.org"
        assert config.emits_microdata and config.emits_rdfa

    def test_invalid_syntax(self):
        with pytest.raises(ValueError, match="Invalid syntax"):
            Config(syntax="json")

    def test_vocab_gets_trailing_slash(self):
        assert Config(vocab="http://example.org/ns").vocab == "http://example.org/ns/"
        assert Config(vocab="http://example.org/ns#").vocab == "http://example.org/ns#"

    def test_syntax_flags(self):
        assert not Config(syntax="rdfa").emits_microdata
        assert not Config(syntax="microdata").emits_rdfa


class TestWithSettings:
    def test_returns_new_config(self):
        base = Config()
        updated = base.with_settings({"syntax": "rdfa"})
        assert updated.syntax == "rdfa"
        assert base.syntax == "both"

    def test_none_is_identity(self):
        base = Config()
        assert base.with_settings(None) is base

    def test_prefixes_accumulate(self):
        config = Config(prefixes={"dc": "http://purl.org/dc/terms/"})
        config = config.with_settings({"prefixes": {"foaf": "http://xmlns.com/foaf/0.1/"}})
        assert set(config.prefixes) == {"dc", "foaf"}

    def test_jsonld_strings(self):
        assert not Config().with_settings({"jsonld": "false"}).jsonld
        assert Config().with_settings({"jsonld": "yes"}).jsonld

    def test_primary_type_and_context(self):
        config = Config().with_settings({"primary-type": "Book", "context": ["https://schema.org"]})
        assert config.primary_type == "Book"
        assert config.context == ["https://schema.org"]

    def test_non_mapping_prefixes(self):
        with pytest.raises(ValueError, match="prefixes"):
            Config().with_settings({"prefixes": ["dc"]})

    def test_non_mapping_settings(self):
        with pytest.raises(ValueError, match="mapping"):
            Config().with_settings("rdfa")


class TestLoadConfig:
    def test_defaults_without_file(self, isolated_config):
        assert load_config() == Config()

    def test_file_settings(self, isolated_config):
        path = isolated_config / "schema-brackets" / "config.toml"
        path.parent.mkdir()
        path.write_text('syntax = "microdata"\n\n[prefixes]\ndc = "http://purl.org/dc/terms/"\n')
        config = load_config()
        assert config.syntax == "microdata"
        assert config.prefixes == {"dc": "http://purl.org/dc/terms/"}

    def test_file_settings_under_table(self, isolated_config):
        path = isolated_config / "schema-brackets" / "config.toml"
        path.parent.mkdir()
        path.write_text('[schema-brackets]\nsyntax = "rdfa"\n')
        assert load_config().syntax == "rdfa"

    def test_bad_file_falls_back(self, isolated_config, caplog):
        path = isolated_config / "schema-brackets" / "config.toml"
        path.parent.mkdir()
        path.write_text("syntax = \n")
        assert load_config() == Config()
        assert "Ignoring config file" in caplog.text

    def test_env_overrides(self, isolated_config, monkeypatch):
        monkeypatch.setenv("SCHEMA_BRACKETS_SYNTAX", "rdfa")
        monkeypatch.setenv("SCHEMA_BRACKETS_JSONLD", "0")
        config = load_config()
        assert config.syntax == "rdfa"
        assert not config.jsonld

    def test_invalid_env_value_ignored(self, isolated_config, monkeypatch):
        monkeypatch.setenv("SCHEMA_BRACKETS_SYNTAX", "bogus")
        assert load_config().syntax == "both"

    def test_get_config_caches(self, isolated_config):
        assert get_config() is get_config()
