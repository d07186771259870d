"""Errors used by the type dump pipeline."""

class TypeDumpError(Exception):
    """Base error for this package."""


class RecordParseError(TypeDumpError):
    """Raised when input JSON is malformed in a way the framing policy cannot absorb."""


class RecordContractError(TypeDumpError):
    """Raised when a record lacks the fields every caller must supply (its `id`)."""


class TransportError(TypeDumpError):
    """Raised when reading, decompressing, compressing or writing a stream fails."""


class UsageError(TypeDumpError):
    """Raised when the run is configured with arguments that cannot work."""
