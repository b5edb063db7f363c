"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from voskfetch.config import STATE_FILE_NAME, Settings


class TestSettings:

    def test_defaults_from_cache_dir_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv('VOSKFETCH_CACHE_DIR', str(tmp_path))
        monkeypatch.delenv('VOSKFETCH_STATE_FILE', raising=False)
        monkeypatch.delenv('VOSKFETCH_CONNECT_TIMEOUT', raising=False)
        monkeypatch.delenv('VOSKFETCH_READ_TIMEOUT', raising=False)
        monkeypatch.delenv('VOSKFETCH_CHUNK_SIZE', raising=False)

        settings = Settings.from_env()

        assert settings.cache_dir == tmp_path
        assert settings.state_file == tmp_path / STATE_FILE_NAME
        assert settings.connect_timeout == 30.0
        assert settings.read_timeout == 60.0
        assert settings.chunk_size == 8192

    def test_explicit_cache_dir_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv('VOSKFETCH_CACHE_DIR', str(tmp_path / 'env'))
        assert Settings.from_env(cache_dir=tmp_path / 'cli').cache_dir == tmp_path / 'cli'

    def test_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv('VOSKFETCH_CACHE_DIR', str(tmp_path))
        monkeypatch.setenv('VOSKFETCH_STATE_FILE', str(tmp_path / 'state' / 'x.json'))
        monkeypatch.setenv('VOSKFETCH_READ_TIMEOUT', '5')
        monkeypatch.setenv('VOSKFETCH_CHUNK_SIZE', '1024')

        settings = Settings.from_env()

        assert settings.state_file == Path(tmp_path / 'state' / 'x.json')
        assert settings.read_timeout == 5.0
        assert settings.chunk_size == 1024

    def test_invalid_number(self, tmp_path, monkeypatch):
        monkeypatch.setenv('VOSKFETCH_CACHE_DIR', str(tmp_path))
        monkeypatch.setenv('VOSKFETCH_CONNECT_TIMEOUT', 'soon')
        with pytest.raises(ValueError, match='VOSKFETCH_CONNECT_TIMEOUT'):
            Settings.from_env()
