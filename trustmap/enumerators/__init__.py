"""
Enumerators package for trustmap.

Re-exports the directory client interface and the two enumeration stages so
downstream code can import from `trustmap.enumerators` directly.
"""

from trustmap.enumerators.abstract import DirectoryClient, TrustResolution
from trustmap.enumerators.partitions import DomainPartitionEnumerator
from trustmap.enumerators.trusts import TrustRelationshipResolver

__all__ = [
    # Abstracts
    "DirectoryClient",
    "TrustResolution",
    # Stages
    "DomainPartitionEnumerator",
    "TrustRelationshipResolver",
]
