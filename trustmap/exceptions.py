"""
Exception hierarchy for trustmap.

Directory-level problems are translated into DirectoryError at the
infrastructure boundary. Whether that error is fatal depends on where it is
raised: the forest partition search wraps it in PartitionEnumerationError,
a single domain's trust search downgrades it to a DomainFailure value.
"""

from __future__ import annotations

from typing import Optional


class TrustmapError(Exception):
    """Base class for all trustmap errors."""


class ConfigurationError(TrustmapError):
    """Settings are missing or inconsistent."""


class DirectoryError(TrustmapError):
    """Connecting to, binding to or searching a directory failed."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"{target}: {reason}")
        self.target = target
        self.reason = reason


class PartitionEnumerationError(TrustmapError):
    """The forest configuration partition could not be read. Always fatal."""

    def __init__(self, cause: DirectoryError) -> None:
        super().__init__(f"Cannot enumerate forest partitions ({cause})")
        self.cause = cause


class ReportWriteError(TrustmapError):
    """The report destination cannot be opened or written."""

    def __init__(self, path: str, reason: Optional[str] = None) -> None:
        message = f"Cannot write report to {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class ReportStateError(TrustmapError):
    """A ReportWriter method was called out of order."""


__all__ = [
    "ConfigurationError",
    "DirectoryError",
    "PartitionEnumerationError",
    "ReportStateError",
    "ReportWriteError",
    "TrustmapError",
]
