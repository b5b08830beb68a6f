"""
Pytest configuration for trustmap.

Provides fixtures for:
- An in-memory DirectoryClient standing in for the forest (no network I/O)
- Settings built without reading the environment or a .env file
- Report destinations under tmp_path
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

import pytest

from trustmap.config import Settings
from trustmap.exceptions import DirectoryError

ROOT_SERVER = "root.example"


def crossref(
    netbios: Optional[str],
    dns: Optional[str] = None,
    created: Any = None,
    changed: Any = None,
    ncname: Optional[str] = None,
) -> Dict[str, Any]:
    """A crossRef search result as ldap3 returns it (absent attributes missing)."""
    entry: Dict[str, Any] = {}
    if netbios is not None:
        entry["nETBIOSName"] = netbios
    if dns is not None:
        entry["dnsRoot"] = [dns]
    if created is not None:
        entry["whenCreated"] = created
    if changed is not None:
        entry["whenChanged"] = changed
    if ncname is not None:
        entry["nCName"] = ncname
    return entry


def trusted_domain(flat: Optional[str] = None, name: Optional[str] = None) -> Dict[str, Any]:
    entry: Dict[str, Any] = {}
    if flat is not None:
        entry["flatName"] = flat
    if name is not None:
        entry["name"] = name
    return entry


class FakeDirectoryClient:
    """
    DirectoryClient over canned results.

    Results are served page by page so tests can observe lazy consumption;
    ``open_connections`` tracks connections that were opened but not yet
    released.
    """

    def __init__(
        self,
        partitions: Sequence[Mapping[str, Any]] = (),
        trusts: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None,
        failing: Optional[Mapping[str, str]] = None,
        partition_error: Optional[str] = None,
        partition_error_after: Optional[int] = None,
    ) -> None:
        self.partitions = list(partitions)
        self.trusts = dict(trusts or {})
        self.failing = dict(failing or {})
        self.partition_error = partition_error
        self.partition_error_after = partition_error_after
        self.open_connections = 0
        self.pages_served = 0
        self.searches: List[Dict[str, Any]] = []

    def _pages(self, entries: Sequence[Mapping[str, Any]], page_size: int) -> Iterator[list]:
        for start in range(0, len(entries), page_size):
            self.pages_served += 1
            yield list(entries[start : start + page_size])

    def search_configuration(
        self,
        relative_base: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
    ) -> Iterator[Dict[str, Any]]:
        self.searches.append(
            {
                "kind": "configuration",
                "base": relative_base,
                "filter": search_filter,
                "attributes": tuple(attributes),
                "page_size": page_size,
            }
        )
        self.open_connections += 1
        try:
            if self.partition_error and self.partition_error_after is None:
                raise DirectoryError(ROOT_SERVER, self.partition_error)
            served = 0
            for page in self._pages(self.partitions, page_size):
                for entry in page:
                    if self.partition_error and served == self.partition_error_after:
                        raise DirectoryError(ROOT_SERVER, self.partition_error)
                    served += 1
                    yield dict(entry)
        finally:
            self.open_connections -= 1

    def search_domain(
        self,
        target: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
        base: Optional[str] = None,
    ) -> Iterator[Dict[str, Any]]:
        self.searches.append(
            {
                "kind": "domain",
                "target": target,
                "base": base,
                "filter": search_filter,
                "attributes": tuple(attributes),
                "page_size": page_size,
            }
        )
        self.open_connections += 1
        try:
            if target in self.failing:
                raise DirectoryError(target, self.failing[target])
            for page in self._pages(self.trusts.get(target, []), page_size):
                for entry in page:
                    yield dict(entry)
        finally:
            self.open_connections -= 1


@pytest.fixture
def make_settings():
    """
    Build Settings from keyword arguments only, ignoring the environment.
    """

    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {"forest_server": ROOT_SERVER, "auth_method": "anonymous"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def report_path(tmp_path: Path) -> Path:
    return tmp_path / "trusts.xml"


@pytest.fixture
def forest_client() -> FakeDirectoryClient:
    """
    The ALPHA/GAMMA forest: ALPHA trusts BETA, GAMMA has no DNS name and no trusts.
    """
    return FakeDirectoryClient(
        partitions=[crossref("ALPHA", "alpha.example"), crossref("GAMMA")],
        trusts={"alpha.example": [trusted_domain("BETA", "beta.example")]},
    )


@pytest.fixture
def restore_logging():
    """Undo configure_logging() calls made by a test."""
    import logging

    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
