"""
Infrastructure package for trustmap.

Centralizes directory connectivity (ldap3 connection factory, paged search).
Keep this layer focused on I/O and resource management, decoupled from
enumeration/orchestrator logic.
"""

from trustmap.infrastructure.ldap_factory import (
    Ldap3DirectoryClient,
    build_url,
    make_connection_factory,
)

__all__ = [
    "Ldap3DirectoryClient",
    "build_url",
    "make_connection_factory",
]
