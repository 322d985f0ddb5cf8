"""Exceptions raised by diffdeploy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .deploy.operations import Operation


class DeployError(Exception):
    """Base exception for all deployment errors."""


class DeployConfigError(DeployError):
    """Raised when the deploy configuration is missing or invalid."""


class LocalReadError(DeployError):
    """Raised when a local file cannot be read while hashing or uploading."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Cannot read local file '{path}': {message}")


class ManifestError(DeployError):
    """Raised when the remote manifest cannot be loaded or saved."""


class OperationError(DeployError):
    """Raised when a planned operation fails fatally.

    The failing operation is kept on the exception; the original error is
    available as ``__cause__``.
    """

    def __init__(self, operation: Operation, message: str):
        self.operation = operation
        super().__init__(f"{operation.describe()} failed: {message}")


class RemoteError(DeployError):
    """Base exception for errors reported by a remote backend."""


class RemoteAuthenticationError(RemoteError):
    """Raised when the remote server rejects the credentials."""


class RemoteNotFoundError(RemoteError):
    """Raised when a remote file or directory does not exist."""


class RemoteAlreadyExistsError(RemoteError):
    """Raised when creating a remote directory that already exists."""


class RemoteUnsupportedError(RemoteError):
    """Raised when the remote server does not implement an operation."""
