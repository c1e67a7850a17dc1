"""Exception types raised across the sync pipeline."""

from __future__ import annotations


class VaultSyncError(Exception):
    """Base class for vaultsync errors."""


class ContentMissing(VaultSyncError):
    """A document has no usable body content-tree.

    Callers skip the document and continue with the rest of the batch.
    """

    def __init__(self, identity: str, reason: str = "no valid content to parse"):
        super().__init__(f"Document {identity} has {reason}")
        self.identity = identity
        self.reason = reason


class PatternValidationError(VaultSyncError, ValueError):
    """A path pattern references an unknown `{variable}`."""

    def __init__(self, token: str, valid_tokens: tuple[str, ...]):
        valid = ", ".join("{" + t + "}" for t in valid_tokens)
        super().__init__(f"Unknown pattern variable '{{{token}}}'. Valid variables: {valid}")
        self.token = token
        self.valid_tokens = valid_tokens


class ConfigError(VaultSyncError, ValueError):
    """Configuration file is malformed or holds an invalid value."""


class MetadataError(VaultSyncError):
    """A metadata block exists but cannot be parsed."""


class WriteFailure(VaultSyncError):
    """A store write or move failed for one document."""

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"Could not write {path}: {cause}")
        self.path = path
        self.cause = cause


class MigrationFailure(VaultSyncError):
    """Reading, parsing or rewriting one file during migration failed."""


class SetupFailure(VaultSyncError):
    """The pass cannot start (no documents, upstream auth failure, ...)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
