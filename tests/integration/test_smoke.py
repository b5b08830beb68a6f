"""
Integration tests against a real directory.

These tests need a reachable domain controller and credentials supplied
through the usual TRUSTMAP_* environment variables, and verify that:
1. The forest root's partitions can be enumerated
2. A full run produces a report that parses back

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from trustmap.config import get_settings
from trustmap.enumerators.partitions import DomainPartitionEnumerator
from trustmap.infrastructure.ldap_factory import Ldap3DirectoryClient
from trustmap.orchestrator import run_enumeration
from trustmap.reporter import read_report

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS", "0") != "1",
    reason="Integration tests require RUN_INTEGRATION_TESTS=1 and a reachable domain controller",
)


def test_forest_has_at_least_one_domain():
    settings = get_settings()
    client = Ldap3DirectoryClient(settings)

    domains = list(DomainPartitionEnumerator(client, page_size=settings.page_size).enumerate())

    assert domains
    assert all(domain.name == domain.name.upper() for domain in domains)


def test_full_run_writes_parseable_report(tmp_path: Path):
    output = tmp_path / "trusts.xml"

    summary = run_enumeration(output)

    report = read_report(output)
    assert len(report.domains) == summary.domains
    assert sum(len(trusts) for _, trusts in report.domains) == summary.trusts
    assert report.start <= report.end
