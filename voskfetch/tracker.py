import json
import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from .logger import get_logger, log_event

# Identifies downloads started by this process. A persisted session that
# carries a different value was left behind by a process that is gone.
PROCESS_SESSION_ID = uuid.uuid4().hex

IN_PROGRESS_KEY = 'download_in_progress_{}'
SESSION_KEY = 'download_session_{}'
PROGRESS_KEY = 'download_progress_{}'


class SessionStore:
    """Durable key/value state for model downloads, kept in a JSON file."""

    def __init__(self, state_path: Path, logger: Optional[logging.Logger] = None):
        """Initialize the store backed by a specific file.

        Args:
            state_path: JSON file holding the persisted keys
            logger: Logger for persistence warnings
        """
        self.state_path = Path(state_path)
        self.logger = logger or get_logger('tracker')
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load existing state from the state file if it exists."""
        if not self.state_path.exists():
            return
        try:
            with self.state_path.open('r') as f:
                data = json.load(f)
            if isinstance(data, dict):
                self._data = data
        except (json.JSONDecodeError, OSError) as e:
            # A corrupt state file means no download is known to be running
            log_event(self.logger, logging.WARNING, "state_file_unreadable",
                      path=str(self.state_path), error=str(e))
            self._data = {}

    def _save(self) -> None:
        temp_path = self.state_path.with_suffix(self.state_path.suffix + '.temp')
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open('w') as f:
                json.dump(self._data, f, indent=2, sort_keys=True)
            os.replace(temp_path, self.state_path)
        except OSError as e:
            # Keep going with the in-memory state
            log_event(self.logger, logging.WARNING, "state_file_write_failed",
                      path=str(self.state_path), error=str(e))

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._save()

    def remove(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)
            self._save()

    def mark_in_progress(self, model_name: str, session_id: str) -> None:
        """Flag model_name as downloading under session_id and reset its progress."""
        with self._lock:
            self._data[IN_PROGRESS_KEY.format(model_name)] = True
            self._data[SESSION_KEY.format(model_name)] = session_id
            self._data[PROGRESS_KEY.format(model_name)] = 0
            self._save()

    def clear_in_progress(self, model_name: str) -> None:
        """Drop the in-progress flag together with its session and progress."""
        self.remove(
            IN_PROGRESS_KEY.format(model_name),
            SESSION_KEY.format(model_name),
            PROGRESS_KEY.format(model_name),
        )

    def save_progress(self, model_name: str, progress: int) -> None:
        self.set(PROGRESS_KEY.format(model_name), max(0, min(100, int(progress))))

    def in_progress(self, model_name: str) -> bool:
        return bool(self.get(IN_PROGRESS_KEY.format(model_name), False))

    def session_id(self, model_name: str) -> Optional[str]:
        return self.get(SESSION_KEY.format(model_name))

    def progress(self, model_name: str) -> int:
        return int(self.get(PROGRESS_KEY.format(model_name), 0) or 0)
