"""Unit tests for configuration handling."""

import pytest

from pytinycdn.config import Config


@pytest.fixture
def config(tmp_path, monkeypatch):
    """Provide a Config isolated from the user's environment."""
    for name in (
        "TINYCDN_API_TOKEN",
        "TINYCDN_API_URL",
        "TINYCDN_VERIFY_SSL",
        "TINYCDN_TIMEOUT",
        "TINYCDN_TRANSPORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TINYCDN_CONFIG", str(tmp_path / "config"))
    return Config()


class TestConfig:
    """Tests for the Config class."""

    def test_defaults(self, config):
        """Test values without environment or file."""
        assert config.api_token is None
        assert config.api_url == "https://cdn.tinycdn.cloud/api/"
        assert config.verify_ssl is True
        assert config.timeout == 30.0
        assert config.transport == "auto"
        assert not config.is_configured()

    def test_environment(self, config, monkeypatch):
        """Test that environment variables are read."""
        monkeypatch.setenv("TINYCDN_API_TOKEN", "env-token")
        monkeypatch.setenv("TINYCDN_API_URL", "https://other.test/api/")
        monkeypatch.setenv("TINYCDN_VERIFY_SSL", "false")
        monkeypatch.setenv("TINYCDN_TIMEOUT", "12.5")
        monkeypatch.setenv("TINYCDN_TRANSPORT", "urllib")

        assert config.api_token == "env-token"
        assert config.api_url == "https://other.test/api/"
        assert config.verify_ssl is False
        assert config.timeout == 12.5
        assert config.transport == "urllib"
        assert config.is_configured()

    def test_invalid_timeout(self, config, monkeypatch):
        monkeypatch.setenv("TINYCDN_TIMEOUT", "soon")
        assert config.timeout == 30.0

    def test_save_and_read_token(self, config, tmp_path):
        """Test that a saved token is read back from the file."""
        config.save_api_token("file-token")

        path = tmp_path / "config"
        assert path.read_text() == "TINYCDN_API_TOKEN=file-token\n"
        assert config.api_token == "file-token"
        assert (path.stat().st_mode & 0o777) == 0o600

    def test_save_keeps_other_keys(self, config, tmp_path):
        (tmp_path / "config").write_text(
            "# comment\nTINYCDN_API_URL=https://keep.test/\n"
        )

        config.save_api_token("t")

        assert config.api_url == "https://keep.test/"
        assert config.api_token == "t"

    def test_environment_overrides_file(self, config, monkeypatch):
        config.save_api_token("file-token")
        monkeypatch.setenv("TINYCDN_API_TOKEN", "env-token")
        assert config.api_token == "env-token"
