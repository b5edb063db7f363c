"""Hand a downloaded model to a speech engine.

The engine itself is supplied by the caller as a factory taking the resolved
model directory and a sample rate, e.g. ``lambda path, rate:
vosk.KaldiRecognizer(vosk.Model(path), rate)``.
"""

import logging
from pathlib import Path
from typing import Callable, TypeVar

from .downloader import ModelDownloadManager
from .errors import DirectoryMissingError, EngineLoadError, VerificationError
from .logger import get_logger, log_event

T = TypeVar('T')

DEFAULT_SAMPLE_RATE = 16000

logger = get_logger('loader')


def load_model(
    manager: ModelDownloadManager,
    model_name: str,
    engine_factory: Callable[[str, int], T],
    sample_rate: int = DEFAULT_SAMPLE_RATE
) -> T:
    """
    Resolve, verify and load a downloaded model.

    Args:
        manager: Manager owning the model cache
        model_name: Registry name such as 'model-en'
        engine_factory: Builds the engine from (model directory, sample rate)
        sample_rate: Audio sample rate in Hz

    Returns:
        Whatever engine_factory returns

    Raises:
        UnknownModelError: model_name is not in the registry
        DirectoryMissingError: The model was never downloaded
        VerificationError: The directory is incomplete or corrupted
        EngineLoadError: The engine rejected the directory
    """
    model_dir = manager.get_model_directory(model_name)
    if not model_dir.is_dir():
        raise DirectoryMissingError(f"Model directory not found: {model_dir}")

    root: Path = manager.get_resolved_model_directory(model_name)
    if not manager.verify_model(root).valid:
        raise VerificationError(
            f"Model verification failed for: {root}. "
            "Model files may be corrupted or incomplete."
        )

    log_event(logger, logging.INFO, "engine_load_started",
              model=model_name, path=str(root), sample_rate=sample_rate)
    try:
        engine = engine_factory(str(root), sample_rate)
    except Exception as e:
        log_event(logger, logging.ERROR, "engine_load_failed",
                  model=model_name, path=str(root), error=str(e))
        raise EngineLoadError(f"Failed to load model {model_name}: {e}") from e

    log_event(logger, logging.INFO, "engine_load_completed", model=model_name)
    return engine
