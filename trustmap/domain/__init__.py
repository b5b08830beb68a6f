"""
Domain package for trustmap.

Exports the record types passed between the enumerators, the orchestrator
and the report writer.
"""

from trustmap.domain.models import DomainFailure, DomainRecord, RunSummary, TrustRecord

__all__ = [
    "DomainFailure",
    "DomainRecord",
    "RunSummary",
    "TrustRecord",
]
