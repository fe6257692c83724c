"""Unit tests for core.config module."""

from pathlib import Path

import pytest

from zipmason.core.config import ConfigResolver
from zipmason.core.errors import ConfigError


class TestConfigResolver:
    """Tests for ConfigResolver."""

    def test_cli_priority(self, tmp_path):
        """Test that CLI args have highest priority."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("archives:\n  compression: fastest\n")

        resolver = ConfigResolver(
            cli_args={"archives": {"compression": "no_compression"}},
            user_config_path=user_config,
        )

        value, source = resolver.resolve("archives.compression")
        assert value == "no_compression"
        assert source == "cli"

    def test_env_priority(self, tmp_path, monkeypatch):
        """Test that ENV overrides config files."""
        user_config = tmp_path / "config.yaml"
        user_config.write_text("archives:\n  compression: fastest\n")

        monkeypatch.setenv("ZIPMASON_ARCHIVES_COMPRESSION", "no_compression")

        resolver = ConfigResolver(cli_args={}, user_config_path=user_config)

        value, source = resolver.resolve("archives.compression")
        assert value == "no_compression"
        assert source == "env"

    def test_user_config_priority(self, tmp_path):
        """Test that user config overrides system config."""
        user_config = tmp_path / "user.yaml"
        user_config.write_text("archives:\n  force: true\n")

        system_config = tmp_path / "system.yaml"
        system_config.write_text("archives:\n  force: false\n")

        resolver = ConfigResolver(
            cli_args={},
            user_config_path=user_config,
            system_config_path=system_config,
        )

        value, source = resolver.resolve("archives.force")
        assert value is True
        assert source == "user_config"

    def test_system_config_priority(self, tmp_path):
        system_config = tmp_path / "system.yaml"
        system_config.write_text("logging:\n  level: verbose\n")

        resolver = ConfigResolver(
            cli_args={},
            user_config_path=tmp_path / "missing.yaml",
            system_config_path=system_config,
        )

        assert resolver.resolve("logging.level") == ("verbose", "system_config")

    def test_defaults(self, config_resolver):
        assert config_resolver.resolve("archives.compression") == ("optimal", "default")
        assert config_resolver.resolve("archives.force") == (False, "default")
        assert config_resolver.resolve("diagnostics.enabled") == (False, "default")

    def test_missing_key_raises(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={},
            user_config_path=tmp_path / "u.yaml",
            system_config_path=tmp_path / "s.yaml",
            defaults={},
        )

        with pytest.raises(ConfigError, match="not found in any source"):
            resolver.resolve("nonexistent.key")

    def test_invalid_yaml_raises(self, tmp_path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("archives: [unclosed\n")

        resolver = ConfigResolver(cli_args={}, user_config_path=user_config)

        with pytest.raises(ConfigError, match="Failed to load config"):
            resolver.resolve("archives.force")

    def test_resolve_all_reports_sources(self, tmp_path):
        user_config = tmp_path / "config.yaml"
        user_config.write_text("archives:\n  compression: fastest\n")

        resolver = ConfigResolver(
            cli_args={"archives": {"force": True}},
            user_config_path=user_config,
            system_config_path=tmp_path / "none.yaml",
        )
        all_cfg = resolver.resolve_all()

        assert all_cfg["archives.force"].source == "cli"
        assert all_cfg["archives.compression"].value == "fastest"
        assert all_cfg["archives.compression"].source == "user_config"
        assert all_cfg["logging.level"].source == "default"


class TestResolveBool:
    @pytest.mark.parametrize("raw", ["1", "true", "Yes", "ON"])
    def test_truthy_env_strings(self, config_resolver, monkeypatch, raw):
        monkeypatch.setenv("ZIPMASON_ARCHIVES_FORCE", raw)
        assert config_resolver.resolve_bool("archives.force", False) is True

    @pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
    def test_falsy_env_strings(self, config_resolver, monkeypatch, raw):
        monkeypatch.setenv("ZIPMASON_ARCHIVES_FORCE", raw)
        assert config_resolver.resolve_bool("archives.force", True) is False

    def test_invalid_value_raises(self, config_resolver, monkeypatch):
        monkeypatch.setenv("ZIPMASON_ARCHIVES_FORCE", "maybe")
        with pytest.raises(ConfigError):
            config_resolver.resolve_bool("archives.force", False)

    def test_missing_key_uses_default(self, tmp_path: Path):
        resolver = ConfigResolver(
            cli_args={},
            user_config_path=tmp_path / "u.yaml",
            system_config_path=tmp_path / "s.yaml",
            defaults={},
        )
        assert resolver.resolve_bool("archives.force", True) is True


class TestLoggingPolicy:
    def test_default_policy_is_normal(self, config_resolver):
        policy = config_resolver.resolve_logging_policy()
        assert policy.level_name == "normal"
        assert policy.emit_info is True
        assert policy.emit_verbose is False
        assert policy.source == "default"

    def test_level_is_normalized(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "  DEBUG "}},
            user_config_path=tmp_path / "u.yaml",
        )
        policy = resolver.resolve_logging_policy()
        assert policy.level_name == "debug"
        assert policy.emit_debug is True
        assert policy.source == "cli"

    def test_legacy_verbosity_alias(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"verbosity": "quiet"},
            user_config_path=tmp_path / "u.yaml",
            defaults={},
        )
        assert resolver.resolve_logging_level() == "quiet"

    def test_invalid_level_raises(self, tmp_path):
        resolver = ConfigResolver(
            cli_args={"logging": {"level": "loud"}},
            user_config_path=tmp_path / "u.yaml",
        )
        with pytest.raises(ConfigError, match="Allowed values"):
            resolver.resolve_logging_policy()
