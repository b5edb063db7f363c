"""Exceptions raised while acquiring and loading language models."""

from typing import Optional


class VoskFetchError(Exception):
    """Base class for all voskfetch errors."""


class NoConnectivityError(VoskFetchError):
    def __init__(self, message: str = "No internet connection available. "
                                      "Please check your network and try again."):
        super().__init__(message)


class UnknownModelError(VoskFetchError, KeyError):
    """Raised when a model name or language code is not in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Model URL not found for {name}")

    def __str__(self) -> str:
        return self.args[0]


class DownloadError(VoskFetchError):
    """A failed fetch, classified as timeout, connection, network or generic."""

    TIMEOUT = 'timeout'
    CONNECTION = 'connection'
    NETWORK = 'network'
    GENERIC = 'generic'

    def __init__(self, message: str, kind: str = GENERIC, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause


class ExtractionError(VoskFetchError):
    pass


class VerificationError(VoskFetchError):
    pass


class DirectoryMissingError(VoskFetchError):
    pass


class EngineLoadError(VoskFetchError):
    """Raised when the speech engine rejects a verified model directory."""
