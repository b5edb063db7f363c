import logging
import os
import sys
import tempfile
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from tqdm import tqdm

from .config import Settings
from .errors import (
    DownloadError,
    NoConnectivityError,
    UnknownModelError,
    VerificationError,
)
from .extractor import ArchiveExtractor, resolve_model_root
from .logger import get_logger, log_event
from .models import DownloadOutcome, DownloadSession, ModelDescriptor, VerificationResult
from .registry import REGISTRY, ModelRegistry
from .tracker import PROCESS_SESSION_ID, SessionStore
from .utils import directory_size, is_internet_available, remove_tree
from .verifier import ModelVerifier

ProgressCallback = Callable[[int], None]
SuccessCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]
Dispatcher = Callable[..., Any]

# Fetch progress stops here; the rest is reserved for extraction and verification.
FETCH_PROGRESS_CAP = 95

TIMEOUT_MESSAGE = "Download timeout. Please check your internet connection and try again."
CONNECTION_MESSAGE = "Connection failed. Please check your internet connection and try again."
NETWORK_MESSAGE = "Network error. Please check your internet connection and try again."
VERIFICATION_MESSAGE = "Model verification failed - required files missing"


def fetch_progress(downloaded: int, total: int) -> int:
    """Percent of the fetch phase done, clamped to [0, FETCH_PROGRESS_CAP]."""
    if total <= 0:
        return 0
    return min(max(downloaded * 100 // total, 0), FETCH_PROGRESS_CAP)


def classify_error(error: BaseException) -> Tuple[str, str]:
    """
    Turn a failure from the download pipeline into a user-safe message.

    Args:
        error: Exception raised while fetching, extracting or verifying

    Returns:
        (kind, message) where kind is one of the DownloadError kinds
    """
    if isinstance(error, VerificationError):
        return DownloadError.GENERIC, str(error) or VERIFICATION_MESSAGE

    text = str(error)
    lowered = text.lower()
    timed_out = 'timeout' in lowered or 'timed out' in lowered

    kind = getattr(error, 'kind', None)
    if kind is None:
        # ConnectionError also wraps urllib3 read timeouts
        if timed_out or isinstance(error, requests.Timeout):
            kind = DownloadError.TIMEOUT
        elif isinstance(error, requests.ConnectionError):
            kind = DownloadError.CONNECTION

    if kind in (None, DownloadError.GENERIC):
        if timed_out:
            kind = DownloadError.TIMEOUT
        elif 'connection' in lowered:
            kind = DownloadError.CONNECTION
        elif 'network' in lowered:
            kind = DownloadError.NETWORK
        else:
            kind = DownloadError.GENERIC

    if kind == DownloadError.TIMEOUT:
        return kind, TIMEOUT_MESSAGE
    if kind == DownloadError.CONNECTION:
        return kind, CONNECTION_MESSAGE
    if kind == DownloadError.NETWORK:
        return kind, NETWORK_MESSAGE
    return kind, f"Download failed: {text or 'Unknown error'}"


def _call_inline(callback: Callable[..., Any], *args: Any) -> None:
    callback(*args)


class _CallbackRelay:
    """Delivers one download's callbacks in order, ending with exactly one terminal call."""

    def __init__(
        self,
        session: DownloadSession,
        dispatch: Dispatcher,
        logger: logging.Logger,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
        on_advance: Optional[Callable[[int], None]] = None
    ):
        self.session = session
        self.dispatch = dispatch
        self.logger = logger
        self.on_progress = on_progress
        self.on_success = on_success
        self.on_error = on_error
        self.on_advance = on_advance
        self.finished = False
        self._lock = threading.Lock()

    def _safe(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception as e:
            log_event(self.logger, logging.ERROR, "callback_error",
                      model=self.session.model_name,
                      callback=getattr(callback, '__name__', repr(callback)),
                      error=str(e))

    def _deliver(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            self.dispatch(self._safe, callback, *args)
        except Exception as e:
            log_event(self.logger, logging.ERROR, "callback_dispatch_error",
                      model=self.session.model_name, error=str(e))

    def progress(self, percent: int) -> None:
        with self._lock:
            if self.finished or not self.session.advance(percent):
                return
            current = self.session.progress
            if self.on_advance:
                self.on_advance(current)
            self._deliver(self.on_progress, current)

    def success(self) -> None:
        with self._lock:
            if self.finished:
                return
            self.finished = True
            self._deliver(self.on_success)

    def error(self, message: str) -> None:
        with self._lock:
            if self.finished:
                return
            self.finished = True
            self._deliver(self.on_error, message)


class ModelDownloadManager:
    """Downloads, unpacks and verifies language models into a local cache.

    Downloads run one at a time on a single background worker. Progress and
    the terminal outcome are reported through callbacks handed to ``dispatch``
    (called inline on the worker by default), and through the Future that
    download_model returns.
    """
    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: ModelRegistry = REGISTRY,
        store: Optional[SessionStore] = None,
        connectivity: Optional[Callable[[], bool]] = None,
        dispatch: Dispatcher = _call_inline,
        session_id: str = PROCESS_SESSION_ID,
        progress_bar: bool = True,
        logger: Optional[logging.Logger] = None
    ):
        self.settings = settings or Settings.from_env()
        self.registry = registry
        self.logger = logger or get_logger('downloader')
        self.store = store or SessionStore(self.settings.state_file)
        self.connectivity = connectivity or is_internet_available
        self.dispatch = dispatch
        self.session_id = session_id
        self.progress_bar = progress_bar
        self.verifier = ModelVerifier()
        self.extractor = ArchiveExtractor(chunk_size=self.settings.chunk_size)
        self._sessions: Dict[str, DownloadSession] = {}
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='voskfetch-download')

    def __enter__(self) -> 'ModelDownloadManager':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting downloads; by default wait for the running one to finish."""
        self._executor.shutdown(wait=wait)

    def download_model(
        self,
        model_name: str,
        on_progress: Optional[ProgressCallback] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None
    ) -> 'Future[DownloadOutcome]':
        """
        Start downloading model_name in the background.

        Callers should check is_download_in_progress first; this method does
        not, so that a failed or abandoned download can always be retried.
        Unknown names and a missing network connection are reported through
        on_error before this method returns, without touching disk or network.

        Args:
            model_name: Registry name such as 'model-de'
            on_progress: Called with increasing percentages, ending at 100 on success
            on_success: Called once when the model is extracted and verified
            on_error: Called once with a user-safe message on any failure

        Returns:
            Future resolving to a DownloadOutcome; it never raises
        """
        if model_name not in self.registry:
            return self._reject(model_name, UnknownModelError(model_name), on_error)

        try:
            online = bool(self.connectivity())
        except Exception as e:
            log_event(self.logger, logging.WARNING, "connectivity_probe_failed",
                      model=model_name, error=str(e))
            online = False
        if not online:
            return self._reject(model_name, NoConnectivityError(), on_error)

        descriptor = self.registry.get(model_name)
        session = DownloadSession(model_name, self.session_id, in_progress=True)
        self._sessions[model_name] = session
        relay = _CallbackRelay(
            session, self.dispatch, self.logger,
            on_progress=on_progress,
            on_success=on_success,
            on_error=on_error,
            on_advance=lambda percent: self.store.save_progress(model_name, percent),
        )
        try:
            return self._executor.submit(self._run_download, descriptor, relay)
        except RuntimeError as e:
            # The worker was shut down; nothing was queued
            session.in_progress = False
            self._sessions.pop(model_name, None)
            return self._reject(model_name, DownloadError(
                f"Download failed: {e}", cause=e), on_error)

    def _reject(
        self,
        model_name: str,
        error: Exception,
        on_error: Optional[ErrorCallback]
    ) -> 'Future[DownloadOutcome]':
        message = str(error)
        log_event(self.logger, logging.ERROR, "download_rejected",
                  model=model_name, error=message)
        if on_error:
            try:
                on_error(message)
            except Exception as e:
                log_event(self.logger, logging.ERROR, "callback_error",
                          model=model_name, callback='on_error', error=str(e))
        future: 'Future[DownloadOutcome]' = Future()
        future.set_result(DownloadOutcome(model_name, False, message, error))
        return future

    def _run_download(self, descriptor: ModelDescriptor, relay: _CallbackRelay) -> DownloadOutcome:
        """Worker body: prepare, fetch, extract, verify and commit one model."""
        name = descriptor.name
        model_dir = self.get_model_directory(name)
        session = relay.session

        try:
            remove_tree(model_dir)
            model_dir.mkdir(parents=True, exist_ok=True)
            self.store.mark_in_progress(name, session.session_id)

            log_event(self.logger, logging.INFO, "download_started",
                      model=name, url=descriptor.url, path=str(model_dir))

            temp_path = self._make_temp_path(name)
            try:
                self._fetch(descriptor, temp_path, relay)
                self.extractor.extract(temp_path, model_dir)
            finally:
                self._remove_temp(temp_path)

            root = resolve_model_root(model_dir, self.verifier)
            if not self.verifier.verify(root).valid:
                raise VerificationError(VERIFICATION_MESSAGE)

            # Persists 100 through on_advance before the flag is cleared
            relay.progress(100)
            self.store.clear_in_progress(name)
            session.in_progress = False

            log_event(self.logger, logging.INFO, "download_completed",
                      model=name, path=str(root), size=directory_size(model_dir))
            relay.success()
            return DownloadOutcome(name, True, f"Model {name} downloaded")

        except Exception as e:
            kind, message = classify_error(e)
            log_event(self.logger, logging.ERROR, "download_failed",
                      model=name, kind=kind, error=str(e), message=message)
            session.in_progress = False
            self.store.clear_in_progress(name)
            relay.error(message)
            return DownloadOutcome(name, False, message, e)

    def _make_temp_path(self, model_name: str) -> Path:
        self.settings.cache_dir.mkdir(parents=True, exist_ok=True)
        fd, path = tempfile.mkstemp(
            prefix=f'temp_{model_name}_', suffix='.zip', dir=self.settings.cache_dir
        )
        os.close(fd)
        return Path(path)

    def _remove_temp(self, temp_path: Path) -> None:
        try:
            if temp_path.exists():
                temp_path.unlink()
        except OSError as e:
            log_event(self.logger, logging.WARNING, "temp_file_cleanup_error",
                      path=str(temp_path), error=str(e))

    def _fetch(self, descriptor: ModelDescriptor, temp_path: Path, relay: _CallbackRelay) -> None:
        """Stream descriptor.url into temp_path, reporting clamped progress."""
        timeout = (self.settings.connect_timeout, self.settings.read_timeout)
        downloaded = 0

        try:
            with requests.get(descriptor.url, stream=True, timeout=timeout) as response:
                response.raise_for_status()
                total = int(response.headers.get('content-length', 0) or 0)

                with temp_path.open('wb') as out_file, tqdm(
                    desc=f"Downloading {descriptor.name}",
                    total=total or None,
                    unit='B',
                    unit_scale=True,
                    unit_divisor=1024,
                    disable=not (self.progress_bar and sys.stdout.isatty())
                ) as pbar:
                    for chunk in response.iter_content(chunk_size=self.settings.chunk_size):
                        if not chunk:
                            continue
                        out_file.write(chunk)
                        downloaded += len(chunk)
                        pbar.update(len(chunk))
                        if total > 0:
                            relay.progress(fetch_progress(downloaded, total))

        except requests.RequestException as e:
            kind, _ = classify_error(e)
            raise DownloadError(str(e), kind=kind, cause=e) from e

        log_event(self.logger, logging.DEBUG, "fetch_completed",
                  model=descriptor.name, bytes=downloaded, path=str(temp_path))
        relay.progress(FETCH_PROGRESS_CAP)

    def get_model_directory(self, model_name: str) -> Path:
        """Directory the model is extracted into; no existence check."""
        return self.registry.get(model_name).local_directory(self.settings.cache_dir)

    def get_resolved_model_directory(self, model_name: str) -> Path:
        """Directory that actually holds the model files, see resolve_model_root."""
        return resolve_model_root(self.get_model_directory(model_name), self.verifier)

    def verify_model(self, model_dir: Path) -> VerificationResult:
        """Check the structure of model_dir and log which signature groups matched."""
        return self.verifier.verify(Path(model_dir))

    def is_model_downloaded(self, model_name: str) -> bool:
        """True only if the model directory exists and its resolved root verifies."""
        if model_name not in self.registry:
            return False
        model_dir = self.get_model_directory(model_name)
        if not model_dir.is_dir():
            return False
        return self.verifier.is_valid(resolve_model_root(model_dir, self.verifier))

    def is_download_in_progress(self, model_name: str) -> bool:
        """
        Check whether this process is currently downloading model_name.

        A persisted in-progress flag whose session id differs from ours was
        left by a process that died mid-download. Such a stale session is
        cleaned up here: the partial directory is deleted, the flag cleared,
        and False returned.
        """
        if model_name not in self.registry:
            return False
        session = self._sessions.get(model_name)
        if session is not None and session.in_progress:
            # Queued or running on this manager's worker
            return True
        if not self.store.in_progress(model_name):
            return False
        stored_session = self.store.session_id(model_name)
        if stored_session == self.session_id:
            return True

        model_dir = self.get_model_directory(model_name)
        log_event(self.logger, logging.WARNING, "stale_session_cleanup",
                  model=model_name, stored_session=stored_session, path=str(model_dir))
        try:
            remove_tree(model_dir)
        except OSError as e:
            log_event(self.logger, logging.WARNING, "stale_directory_cleanup_error",
                      model=model_name, path=str(model_dir), error=str(e))
        self.store.clear_in_progress(model_name)
        return False

    def get_model_size(self, model_name: str) -> int:
        """Total bytes under the model directory; 0 for unknown or missing models."""
        if model_name not in self.registry:
            return 0
        return directory_size(self.get_model_directory(model_name))

    def get_session(self, model_name: str) -> Optional[DownloadSession]:
        """The DownloadSession of the latest download started by this manager, if any."""
        return self._sessions.get(model_name)

    def supported_languages(self) -> List[Dict[str, str]]:
        """Language code, model name and display name of every registry entry."""
        return self.registry.languages()

    def downloaded_models(self) -> List[Dict[str, Any]]:
        """Language, display name, path and size of every downloaded model."""
        models = []
        for descriptor in self.registry:
            if not self.is_model_downloaded(descriptor.name):
                continue
            models.append({
                'model_name': descriptor.name,
                'language': descriptor.language,
                'name': descriptor.language_name,
                'path': str(self.get_resolved_model_directory(descriptor.name)),
                'size': self.get_model_size(descriptor.name),
            })
        return models
