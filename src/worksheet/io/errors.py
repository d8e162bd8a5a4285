"""
Custom exceptions for the worksheet.io module.

Purpose
- Provide IO-layer error types for configuration and document loading.
- Keep worksheet.core as the source of truth for grammar/schema errors (see
  worksheet.core.errors).

Source of truth and boundaries
- worksheet.core.errors.SchemaError / GrammarError / SchemaValidationError are
  raised by core models and the validator's raising twin.
- worksheet.io raises Io* errors for filesystem and decoding concerns:
  - IoConfigError: invalid or unreadable configuration.
  - DocumentError: a schema or values document could not be read or decoded.

Notes
- These exceptions do not perform any IO and are stdlib-only.
"""

from __future__ import annotations

__all__ = ["IoError", "IoConfigError", "DocumentError"]


class IoError(Exception):
    """
    Base class for IO-related errors in worksheet.io.

    Notes:
        Use this as a catch-all for IO-layer failures, distinct from worksheet.core errors.
    """


class IoConfigError(IoError):
    """
    Raised when configuration is invalid or cannot be read.

    Examples:
        - An explicit ``--config`` path that does not exist
        - A TOML file that fails to parse
    """


class DocumentError(IoError):
    """
    Raised when a JSON document is missing, unreadable, or not the expected shape.

    Attributes:
        path (str | None): Source of the document, when it came from a file.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
