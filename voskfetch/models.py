from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Union


@dataclass(frozen=True)
class ModelDescriptor:
    """A downloadable language model, identified by its unique name."""
    name: str
    url: str
    language: str
    language_name: str

    def local_directory(self, cache_root: Union[str, Path]) -> Path:
        """Return the directory this model is extracted into under cache_root."""
        return Path(cache_root) / 'model' / self.name


class DownloadSession:
    """Model to track the state of one model download within this process."""
    def __init__(
        self,
        model_name: str,
        session_id: str,
        progress: int = 0,
        in_progress: bool = False
    ):
        self.model_name = model_name
        self.session_id = session_id
        self.progress = progress
        self.in_progress = in_progress

    def advance(self, percent: int) -> bool:
        """Move progress forward to percent.

        Returns:
            True if progress increased, False if percent would not move it
        """
        percent = max(0, min(100, int(percent)))
        if percent <= self.progress:
            return False
        self.progress = percent
        return True


@dataclass
class DownloadOutcome:
    """Terminal result of a download_model call."""
    model_name: str
    success: bool
    message: str = ""
    error: Optional[Exception] = None


@dataclass
class VerificationResult:
    """Result of checking a directory for a usable model."""
    valid: bool
    matched: Set[str] = field(default_factory=set)
    file_count: int = 0
    sample: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid
