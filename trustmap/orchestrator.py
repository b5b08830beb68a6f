"""
Orchestrator for enumerating a forest's domains and their trusts into a report.

Usage (example from CLI):
    from trustmap.orchestrator import run_enumeration

    summary = run_enumeration("trusts.xml")
    print(summary.domains, summary.trusts, summary.failures)

The pipeline is strictly sequential: the partition enumerator is drained one
domain at a time, each domain's trusts are resolved completely before its
Domain element is written, and the report is streamed as it goes.
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import List, Optional

from trustmap.config import FailedDomainPolicy, Settings, get_settings
from trustmap.domain.models import DomainFailure, RunSummary
from trustmap.enumerators.abstract import DirectoryClient, TrustResolution
from trustmap.enumerators.partitions import DomainPartitionEnumerator
from trustmap.enumerators.trusts import TrustRelationshipResolver
from trustmap.infrastructure.ldap_factory import Ldap3DirectoryClient
from trustmap.reporter import ReportWriter
from trustmap.utils.logging import get_logger
from trustmap.utils.timefmt import local_now

log = get_logger(__name__)


class EnumerationOrchestrator:
    """
    Drives partition enumeration, per-domain trust resolution and report
    writing.

    Parameters
    ----------
    partitions : DomainPartitionEnumerator
        Source of the forest's domains.
    resolver : TrustRelationshipResolver
        Per-domain trust lookup.
    failed_domain_policy : "keep" | "skip"
        What to write for a domain whose trusts could not be read: ``keep``
        writes the Domain element without children, ``skip`` leaves it out.
    """

    def __init__(
        self,
        partitions: DomainPartitionEnumerator,
        resolver: TrustRelationshipResolver,
        failed_domain_policy: FailedDomainPolicy = "keep",
    ) -> None:
        self.partitions = partitions
        self.resolver = resolver
        self.failed_domain_policy = failed_domain_policy

    def run(self, writer: ReportWriter) -> RunSummary:
        """
        Enumerate the forest into ``writer`` and close it.

        Domain-level failures are logged and recorded in the summary. A
        partition failure or a report write failure propagates, after the
        writer has been closed so the file on disk is still well-formed.
        """
        started = local_now()
        domains = 0
        trusts = 0
        failures: List[DomainFailure] = []

        with writer:
            writer.write_run_start(started)
            log.info("[ENUMERATION START]", extra={"output": str(writer.path)})

            with closing(self.partitions.enumerate()) as records:
                for record in records:
                    resolution = self.resolver.resolve(record)
                    if not resolution.ok:
                        failures.append(resolution.failure)
                        _warn(resolution)
                        if self.failed_domain_policy == "skip":
                            continue
                    self._write_domain(writer, resolution)
                    domains += 1
                    trusts += len(resolution.trusts)

            finished = local_now()
            writer.write_run_end(finished)

        log.info(
            "[ENUMERATION COMPLETE]",
            extra={"domains": domains, "trusts": trusts, "failed": len(failures)},
        )
        return RunSummary(
            output=writer.path,
            started=started,
            finished=finished,
            domains=domains,
            trusts=trusts,
            failures=failures,
        )

    @staticmethod
    def _write_domain(writer: ReportWriter, resolution: TrustResolution) -> None:
        writer.write_domain_start(resolution.domain)
        for trust in resolution.trusts:
            writer.write_trust(trust)
        writer.write_domain_end()
        log.info(
            f"[DOMAIN] {resolution.domain.name}",
            extra={"domain": resolution.domain.name, "trusts": len(resolution.trusts)},
        )


def _warn(resolution: TrustResolution) -> None:
    failure = resolution.failure
    log.warning(
        f"Could not enumerate trusts of domain {failure.domain} via {failure.target}: "
        f"{failure.reason}",
        extra={"domain": failure.domain, "target": failure.target},
    )


def run_enumeration(
    output: Path | str,
    settings: Optional[Settings] = None,
    client: Optional[DirectoryClient] = None,
) -> RunSummary:
    """
    Wire the pipeline from settings and run it.

    Parameters
    ----------
    output : Path | str
        Report destination; overwritten if it exists.
    settings : Settings | None
        Defaults to the cached environment settings.
    client : DirectoryClient | None
        Defaults to an ldap3-backed client built from ``settings``.

    Returns
    -------
    RunSummary
        Counts and per-domain failures of the run.
    """
    settings = settings or get_settings()
    if client is None:
        settings.require_forest_server()
        settings.check_credentials()
        client = Ldap3DirectoryClient(settings)

    orchestrator = EnumerationOrchestrator(
        DomainPartitionEnumerator(client, page_size=settings.page_size),
        TrustRelationshipResolver(
            client,
            page_size=settings.page_size,
            prefer_dns_target=settings.prefer_dns_target,
        ),
        failed_domain_policy=settings.failed_domain_policy,
    )
    return orchestrator.run(ReportWriter(output))


__all__ = [
    "EnumerationOrchestrator",
    "run_enumeration",
]
