"""Test configuration loading"""

import pytest

from spot_lyrics.core.config import (
    FetchConfig,
    LyricsConfig,
    SessionConfig,
    load_config,
)
from spot_lyrics.core.exceptions import ConfigError

MINIMAL_CONFIG = """
spotify:
  sp_dc: "AQ-secret-cookie"
output:
  directory: "{directory}"
"""


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    """Keep a developer's .env and SP_DC out of these tests"""
    monkeypatch.setattr("spot_lyrics.core.config.load_dotenv", lambda: False)
    monkeypatch.delenv("SP_DC", raising=False)


@pytest.fixture
def write_config(temp_dir):
    def factory(content):
        path = temp_dir / "config.yaml"
        path.write_text(content.replace("{directory}", str(temp_dir / "out")), encoding="utf-8")
        return path
    return factory


class TestLoadConfig:
    """Test load_config"""

    def test_minimal(self, write_config, temp_dir):
        """Test optional sections get their defaults"""
        config = load_config(write_config(MINIMAL_CONFIG))

        assert config.spotify.sp_dc == "AQ-secret-cookie"
        assert config.output.directory == (temp_dir / "out").resolve()
        assert config.lyrics == LyricsConfig()
        assert config.session == SessionConfig()
        assert config.fetch == FetchConfig()

    def test_credential_hidden_from_repr(self, write_config):
        """Test the cookie never appears in the config repr"""
        config = load_config(write_config(MINIMAL_CONFIG))

        assert "AQ-secret-cookie" not in repr(config)

    def test_all_sections(self, write_config):
        """Test every optional section is parsed"""
        config = load_config(write_config(MINIMAL_CONFIG + """
lyrics:
  synced: false
  force: true
  file_name: "{name}"
session:
  max_login_attempts: 5
  login_retry_pause: 1
fetch:
  album_page_size: 20
  batch_size: 10
  request_delay: 0
"""))

        assert config.lyrics.synced is False
        assert config.lyrics.force is True
        assert config.lyrics.file_name == "{name}"
        assert config.session.max_login_attempts == 5
        assert config.session.login_retry_pause == 1.0
        assert config.fetch.album_page_size == 20
        assert config.fetch.playlist_page_size == 100
        assert config.fetch.batch_size == 10
        assert config.fetch.request_delay == 0.0

    def test_missing_file(self, temp_dir):
        """Test a missing file is a ConfigError"""
        with pytest.raises(ConfigError, match="not found"):
            load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, write_config):
        """Test broken YAML is a ConfigError"""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(write_config("spotify: [unclosed"))

    def test_missing_output(self, write_config):
        """Test the output section is required"""
        with pytest.raises(ConfigError, match="output"):
            load_config(write_config('spotify:\n  sp_dc: "AQ"\n'))

    def test_credential_from_environment(self, write_config, monkeypatch):
        """Test SP_DC is used when config.yaml has no cookie"""
        monkeypatch.setenv("SP_DC", "AQ-from-env")

        config = load_config(write_config('output:\n  directory: "{directory}"\n'))

        assert config.spotify.sp_dc == "AQ-from-env"

    @pytest.mark.parametrize("spotify_section", ["", 'spotify:\n  sp_dc: ""\n', 'spotify:\n  sp_dc: 123\n'])
    def test_missing_credential(self, write_config, spotify_section):
        """Test a missing or empty cookie is a ConfigError"""
        with pytest.raises(ConfigError, match="sp_dc"):
            load_config(write_config(spotify_section + 'output:\n  directory: "{directory}"\n'))

    @pytest.mark.parametrize("fetch_section", [
        "fetch:\n  album_page_size: 51\n",
        "fetch:\n  playlist_page_size: 101\n",
        "fetch:\n  batch_size: 0\n",
        "fetch:\n  batch_size: true\n",
        "fetch:\n  request_delay: -1\n",
        "fetch: 5\n",
    ])
    def test_invalid_fetch_values(self, write_config, fetch_section):
        """Test out-of-range page and batch sizes are rejected"""
        with pytest.raises(ConfigError):
            load_config(write_config(MINIMAL_CONFIG + fetch_section))

    @pytest.mark.parametrize("timeout", ["0", "-2", "false"])
    def test_invalid_request_timeout(self, write_config, timeout):
        """Test the request timeout must be a positive number"""
        with pytest.raises(ConfigError, match="session.request_timeout"):
            load_config(write_config(MINIMAL_CONFIG + f"session:\n  request_timeout: {timeout}\n"))

    def test_invalid_lyrics_flag(self, write_config):
        """Test lyrics flags must be booleans"""
        with pytest.raises(ConfigError, match="lyrics.synced"):
            load_config(write_config(MINIMAL_CONFIG + 'lyrics:\n  synced: "yes"\n'))
