"""
trustmap - forest domain and trust enumeration for Active Directory.

Lists every domain registered in a forest's configuration partition and, for
each domain, the trustedDomain objects it holds, streaming the result into an
XML report. Only what an ordinary authenticated principal can read is used.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Public API exports
from trustmap.config import Settings, get_settings
from trustmap.domain.models import DomainFailure, DomainRecord, RunSummary, TrustRecord
from trustmap.enumerators import (
    DirectoryClient,
    DomainPartitionEnumerator,
    TrustRelationshipResolver,
    TrustResolution,
)
from trustmap.exceptions import (
    ConfigurationError,
    DirectoryError,
    PartitionEnumerationError,
    ReportStateError,
    ReportWriteError,
    TrustmapError,
)
from trustmap.orchestrator import EnumerationOrchestrator, run_enumeration
from trustmap.reporter import ReportWriter, read_report
from trustmap.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Records
    "DomainFailure",
    "DomainRecord",
    "RunSummary",
    "TrustRecord",
    # Pipeline
    "DirectoryClient",
    "DomainPartitionEnumerator",
    "TrustRelationshipResolver",
    "TrustResolution",
    "EnumerationOrchestrator",
    "run_enumeration",
    "ReportWriter",
    "read_report",
    # Errors
    "ConfigurationError",
    "DirectoryError",
    "PartitionEnumerationError",
    "ReportStateError",
    "ReportWriteError",
    "TrustmapError",
    # Logging
    "configure_logging",
    "get_logger",
]
