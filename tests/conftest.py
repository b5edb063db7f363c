import io
import zipfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from voskfetch.config import Settings
from voskfetch.downloader import ModelDownloadManager
from voskfetch.tracker import SessionStore

# A small but structurally complete model layout.
MODEL_FILES: Dict[str, bytes] = {
    'am/final.mdl': b'acoustic model',
    'graph/HCLG.fst': b'graph',
    'graph/phones/word_boundary.int': b'1 nonword',
    'conf/model.conf': b'--sample-frequency=16000',
    'ivector/final.ie': b'ivector',
    'README': b'vosk model',
}


def build_zip(files: Dict[str, bytes], prefix: str = '', directories: Iterable[str] = ()) -> bytes:
    """Return ZIP archive bytes holding files, optionally wrapped in a prefix folder."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as archive:
        if prefix:
            archive.writestr(prefix + '/', b'')
        for directory in directories:
            archive.writestr(directory.rstrip('/') + '/', b'')
        for name, data in files.items():
            archive.writestr(f'{prefix}/{name}' if prefix else name, data)
    return buffer.getvalue()


def write_files(root: Path, names: Iterable[str]) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'x')


class FakeResponse:
    """Stand-in for a streamed requests.Response."""

    def __init__(self, body: bytes, chunk_size: int = 1024, content_length: Optional[int] = -1,
                 error: Optional[Exception] = None):
        self.body = body
        self.chunk_size = chunk_size
        self.headers = {}
        if content_length == -1:
            content_length = len(body)
        if content_length is not None:
            self.headers['content-length'] = str(content_length)
        self.error = error
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def raise_for_status(self):
        pass

    def iter_content(self, chunk_size=1024):
        for start in range(0, len(self.body), self.chunk_size):
            yield self.body[start:start + self.chunk_size]
        if self.error is not None:
            raise self.error


@pytest.fixture
def settings(tmp_path):
    return Settings(
        cache_dir=tmp_path / 'cache',
        state_file=tmp_path / 'cache' / 'download_state.json',
        chunk_size=512,
    )


@pytest.fixture
def store(settings):
    return SessionStore(settings.state_file)


@pytest.fixture
def manager(settings, store):
    manager = ModelDownloadManager(
        settings,
        store=store,
        connectivity=lambda: True,
        session_id='current-session',
        progress_bar=False,
    )
    yield manager
    manager.shutdown()


class Recorder:
    """Collects download callbacks."""

    def __init__(self):
        self.progress: List[int] = []
        self.successes = 0
        self.errors: List[str] = []

    def on_progress(self, percent):
        self.progress.append(percent)

    def on_success(self):
        self.successes += 1

    def on_error(self, message):
        self.errors.append(message)

    def callbacks(self):
        return dict(on_progress=self.on_progress, on_success=self.on_success, on_error=self.on_error)


@pytest.fixture
def recorder():
    return Recorder()
