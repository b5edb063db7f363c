"""voskfetch: download, verify and cache offline speech-recognition models."""

from .downloader import ModelDownloadManager
from .errors import (
    DirectoryMissingError,
    DownloadError,
    EngineLoadError,
    ExtractionError,
    NoConnectivityError,
    UnknownModelError,
    VerificationError,
    VoskFetchError,
)
from .extractor import ArchiveExtractor, resolve_model_root
from .loader import load_model
from .models import DownloadOutcome, DownloadSession, ModelDescriptor, VerificationResult
from .registry import REGISTRY, ModelRegistry
from .tracker import SessionStore
from .verifier import ModelVerifier

__version__ = "0.1.0"
