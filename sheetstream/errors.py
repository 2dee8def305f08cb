"""Custom exceptions used across sheetstream."""


class SheetStreamError(Exception):
    """Base error for the package."""


class ConfigError(SheetStreamError):
    """Reader or profile configuration is invalid."""


class MappingError(ConfigError):
    """Record shape or column bindings cannot be used for mapping."""


class CoercionError(SheetStreamError, ValueError):
    """A cell's text cannot be converted to the field's declared type."""


class ReadError(SheetStreamError):
    """Raised to the caller when a read call cannot complete."""


class OpenError(ReadError):
    """Raised when the container cannot be opened."""


class ParseError(ReadError):
    """Raised when the sheet's row stream is malformed mid-read."""


class PredicateError(ReadError):
    """Raised when a row or record filter fails during evaluation."""


class HandlerError(ReadError):
    """Raised when a streaming handler fails."""


class RecordError(ReadError):
    """Raised when the record shape refuses the mapped values."""
