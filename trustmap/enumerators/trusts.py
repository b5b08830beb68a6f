"""
Per-domain trust enumeration.

Searches one domain's naming context for trustedDomain objects. Failures are
scoped to that domain: ``resolve`` turns them into a TrustResolution carrying
a DomainFailure so the caller can carry on with the next domain.
"""

from __future__ import annotations

from typing import Iterator

from pydantic import ValidationError

from trustmap.domain.models import DomainFailure, DomainRecord, TrustRecord, describe_invalid
from trustmap.enumerators.abstract import Attributes, DirectoryClient, TrustResolution
from trustmap.exceptions import DirectoryError
from trustmap.utils.logging import get_logger

log = get_logger(__name__)

TRUSTED_DOMAIN_FILTER = "(objectClass=trustedDomain)"
TRUSTED_DOMAIN_ATTRIBUTES = ("flatName", "name")


def trust_from_entry(attributes: Attributes) -> TrustRecord:
    # Empty entries are kept: a trust object may expose neither attribute.
    return TrustRecord(name=attributes.get("flatName"), dns_name=attributes.get("name"))


class TrustRelationshipResolver:
    """
    Resolves the trusts one domain maintains. One connection per call,
    released before the call returns.
    """

    def __init__(
        self,
        client: DirectoryClient,
        page_size: int = 500,
        prefer_dns_target: bool = True,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.prefer_dns_target = prefer_dns_target

    def iter_trusts(self, domain: DomainRecord) -> Iterator[TrustRecord]:
        """
        Lazily yield the domain's trusts in directory order.

        Raises DirectoryError if the domain cannot be reached or searched.
        """
        results = self.client.search_domain(
            domain.target(self.prefer_dns_target),
            TRUSTED_DOMAIN_FILTER,
            TRUSTED_DOMAIN_ATTRIBUTES,
            self.page_size,
            base=domain.naming_context,
        )
        for attributes in results:
            yield trust_from_entry(attributes)

    def resolve(self, domain: DomainRecord) -> TrustResolution:
        """
        Drain ``iter_trusts`` for one domain into a result value.

        Directory failures and trustedDomain entries that do not make a valid
        record do not propagate; they come back as ``TrustResolution.failure``
        with no trusts.
        """
        target = domain.target(self.prefer_dns_target)
        log.debug("Resolving trusts", extra={"domain": domain.name, "target": target})
        trusts = self.iter_trusts(domain)
        try:
            found = tuple(trusts)
        except DirectoryError as exc:
            reason = exc.reason
        except ValidationError as exc:
            reason = f"Malformed trustedDomain entry ({describe_invalid(exc)})"
        else:
            log.debug(
                "Resolved trusts",
                extra={"domain": domain.name, "target": target, "trusts": len(found)},
            )
            return TrustResolution(domain=domain, trusts=found)
        finally:
            trusts.close()
        return TrustResolution(
            domain=domain,
            failure=DomainFailure(domain=domain.name, target=target, reason=reason),
        )


__all__ = [
    "TRUSTED_DOMAIN_ATTRIBUTES",
    "TRUSTED_DOMAIN_FILTER",
    "TrustRelationshipResolver",
    "trust_from_entry",
]
