"""
Forest partition enumeration.

Lists every domain registered in the forest by reading the crossRef objects
under ``CN=Partitions`` of the configuration naming context.
"""

from __future__ import annotations

from typing import Iterator, Optional

from pydantic import ValidationError

from trustmap.domain.models import DomainRecord, describe_invalid
from trustmap.enumerators.abstract import Attributes, DirectoryClient
from trustmap.exceptions import DirectoryError, PartitionEnumerationError
from trustmap.utils.logging import get_logger
from trustmap.utils.timefmt import coerce_timestamp

log = get_logger(__name__)

PARTITIONS_RDN = "CN=Partitions"
CROSSREF_FILTER = "(&(objectCategory=crossRef)(netbiosname=*))"
CROSSREF_ATTRIBUTES = ("dnsRoot", "nCName", "nETBIOSName", "whenCreated", "whenChanged")


def domain_from_crossref(attributes: Attributes) -> Optional[DomainRecord]:
    """
    Build a DomainRecord from one crossRef search result.

    Returns None when the entry has no NetBIOS name. Raises ValueError
    (pydantic's ValidationError included) or TypeError when a value cannot
    be decoded or written to the report.
    """
    netbios = attributes.get("nETBIOSName")
    if isinstance(netbios, (list, tuple)):
        netbios = netbios[0] if netbios else None
    if not netbios or not str(netbios).strip():
        return None
    return DomainRecord(
        name=netbios,
        dns_name=attributes.get("dnsRoot"),
        naming_context=attributes.get("nCName"),
        created=coerce_timestamp(attributes.get("whenCreated")),
        changed=coerce_timestamp(attributes.get("whenChanged")),
    )


def _describe(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return describe_invalid(exc)
    return str(exc)


class DomainPartitionEnumerator:
    """
    Lazily yields one DomainRecord per crossRef in the forest, in the order
    the directory returns them. Duplicate names are passed through.
    """

    def __init__(self, client: DirectoryClient, page_size: int = 500) -> None:
        self.client = client
        self.page_size = page_size

    def enumerate(self) -> Iterator[DomainRecord]:
        """
        Yield the forest's domains.

        Raises
        ------
        PartitionEnumerationError
            If the forest root cannot be reached or searched. There is no
            partial recovery: without the partition list there is nothing
            to enumerate.
        """
        results = None
        seen = 0
        try:
            results = self.client.search_configuration(
                PARTITIONS_RDN, CROSSREF_FILTER, CROSSREF_ATTRIBUTES, self.page_size
            )
            for attributes in results:
                try:
                    record = domain_from_crossref(attributes)
                except (ValueError, TypeError) as exc:
                    log.warning(
                        f"Skipping malformed crossRef: {_describe(exc)}",
                        extra={"ncname": attributes.get("nCName")},
                    )
                    continue
                if record is None:
                    log.warning(
                        "Skipping crossRef without NetBIOS name",
                        extra={"ncname": attributes.get("nCName")},
                    )
                    continue
                seen += 1
                yield record
        except DirectoryError as exc:
            raise PartitionEnumerationError(exc) from exc
        finally:
            close = getattr(results, "close", None) if results is not None else None
            if close is not None:
                close()
        log.debug("Partition enumeration finished", extra={"domains": seen})


__all__ = [
    "CROSSREF_ATTRIBUTES",
    "CROSSREF_FILTER",
    "DomainPartitionEnumerator",
    "PARTITIONS_RDN",
    "domain_from_crossref",
]
