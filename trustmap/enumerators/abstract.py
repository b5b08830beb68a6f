"""
Interfaces shared by the enumerators.

The enumerators never talk to ldap3 directly. They depend on a DirectoryClient,
which the production code satisfies with Ldap3DirectoryClient and the tests
with an in-memory fake, so no test performs network I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Protocol, Sequence, Tuple, runtime_checkable

from trustmap.domain.models import DomainFailure, DomainRecord, TrustRecord

Attributes = Mapping[str, Any]


@runtime_checkable
class DirectoryClient(Protocol):
    """
    Paged, read-only directory searches.

    Both methods are generators: the connection is opened when iteration
    starts and released when the generator is exhausted or closed, whatever
    the outcome. Pages are fetched as the caller consumes entries. Failures
    surface as ``DirectoryError``.
    """

    def search_configuration(
        self,
        relative_base: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
    ) -> Iterator[Attributes]:
        """
        Search the forest's configuration partition.

        ``relative_base`` is prepended to the configuration naming context
        read from the forest root's RootDSE (e.g. ``CN=Partitions``).
        """
        ...

    def search_domain(
        self,
        target: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
        base: Optional[str] = None,
    ) -> Iterator[Attributes]:
        """
        Subtree search of one domain's directory.

        ``base`` defaults to the target's RootDSE ``defaultNamingContext``.
        """
        ...


@dataclass(frozen=True)
class TrustResolution:
    """
    Result value for one domain's trust search.

    Either ``trusts`` holds every trust found, or ``failure`` says why the
    domain could not be searched; in the failure case ``trusts`` is empty.
    """

    domain: DomainRecord
    trusts: Tuple[TrustRecord, ...] = field(default_factory=tuple)
    failure: Optional[DomainFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


__all__ = ["Attributes", "DirectoryClient", "TrustResolution"]
