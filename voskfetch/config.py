import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from platformdirs import user_cache_dir

APP_NAME = 'voskfetch'
STATE_FILE_NAME = 'download_state.json'


@dataclass
class Settings:
    """Runtime settings for the model cache and network fetches."""
    cache_dir: Path
    state_file: Path
    connect_timeout: float = 30.0
    read_timeout: float = 60.0
    chunk_size: int = 8192

    @classmethod
    def from_env(cls, cache_dir: Optional[Union[str, Path]] = None) -> 'Settings':
        """Build settings from VOSKFETCH_* environment variables.

        Args:
            cache_dir: Explicit cache root; overrides VOSKFETCH_CACHE_DIR

        Returns:
            Settings instance
        """
        root = Path(
            cache_dir
            or os.environ.get('VOSKFETCH_CACHE_DIR')
            or user_cache_dir(APP_NAME)
        ).expanduser()
        state_file = os.environ.get('VOSKFETCH_STATE_FILE')

        return cls(
            cache_dir=root,
            state_file=Path(state_file).expanduser() if state_file else root / STATE_FILE_NAME,
            connect_timeout=_env_float('VOSKFETCH_CONNECT_TIMEOUT', 30.0),
            read_timeout=_env_float('VOSKFETCH_READ_TIMEOUT', 60.0),
            chunk_size=_env_int('VOSKFETCH_CHUNK_SIZE', 8192),
        )


def _env_float(key: str, default: float) -> float:
    value = os.environ.get(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {value!r}") from None


def _env_int(key: str, default: int) -> int:
    value = os.environ.get(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {value!r}") from None
