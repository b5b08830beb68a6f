"""
Report output for trustmap.

ReportWriter streams the XML report with lxml's incremental writer: every
element is written as soon as it is known, nothing is accumulated, and
``close`` always leaves a well-formed document behind. ``read_report`` parses
a report back into records and ``print_summary`` renders the run outcome as a
rich table.

Report layout::

    <Domains>
      <Start Time="..."/>
      <Domain Name="ALPHA" DNS="alpha.example" Created="..." Changed="...">
        <Trusted Name="BETA" DNS="beta.example"/>
      </Domain>
      <End Time="..."/>
    </Domains>
"""

from __future__ import annotations

import atexit
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import IO, Dict, List, Optional, Tuple

from lxml import etree
from rich import box
from rich.console import Console
from rich.table import Table

from trustmap.domain.models import DomainRecord, RunSummary, TrustRecord
from trustmap.exceptions import ReportStateError, ReportWriteError
from trustmap.utils.logging import get_logger
from trustmap.utils.timefmt import format_timestamp, local_now, parse_report_timestamp

log = get_logger(__name__)

XML_DECLARATION = b"<?xml version='1.0' encoding='UTF-8'?>\n"
INDENT = "  "

_NEW, _OPEN, _RUNNING, _IN_DOMAIN, _ENDED, _CLOSED = range(6)


def domain_attributes(record: DomainRecord) -> Dict[str, str]:
    """Report attributes of a Domain element; absent values are left out."""
    attrib = {"Name": record.name}
    if record.dns_name:
        attrib["DNS"] = record.dns_name
    if record.created is not None:
        attrib["Created"] = format_timestamp(record.created)
    if record.changed is not None:
        attrib["Changed"] = format_timestamp(record.changed)
    return attrib


def trust_attributes(record: TrustRecord) -> Dict[str, str]:
    attrib: Dict[str, str] = {}
    if record.name:
        attrib["Name"] = record.name
    if record.dns_name:
        attrib["DNS"] = record.dns_name
    return attrib


class ReportWriter:
    """
    Streaming emitter for the domain/trust report.

    Call order: ``open``, ``write_run_start``, then per domain
    ``write_domain_start``, any number of ``write_trust``,
    ``write_domain_end``; finally ``write_run_end`` and ``close``. Out of
    order calls raise ReportStateError.

    ``close`` is safe to call at any point and more than once. It closes an
    unfinished Domain element, writes the End marker with the current time
    if it has not been written, and closes the file. While open, the writer
    is registered with ``atexit`` so an interpreter shutdown finalizes too.
    Used as a context manager it opens on enter and closes on exit.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._state = _NEW
        self._stack: Optional[ExitStack] = None
        self._domain: Optional[ExitStack] = None
        self._domain_children = 0
        self._file: Optional[IO[bytes]] = None
        self._xf = None

    def __enter__(self) -> "ReportWriter":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._state == _CLOSED

    def open(self) -> None:
        self._require(_NEW, "open")
        stack = ExitStack()
        try:
            self._file = stack.enter_context(self.path.open("wb"))
            self._file.write(XML_DECLARATION)
            self._xf = stack.enter_context(etree.xmlfile(self._file, encoding="UTF-8"))
            stack.enter_context(self._xf.element("Domains"))
        except OSError as exc:
            stack.close()
            self._state = _CLOSED
            raise ReportWriteError(str(self.path), exc.strerror or str(exc)) from exc
        self._stack = stack
        self._state = _OPEN
        atexit.register(self.close)
        log.debug("Report opened", extra={"path": str(self.path)})

    def write_run_start(self, time: datetime) -> None:
        self._require(_OPEN, "write_run_start")
        self._write_marker("Start", time)
        self._state = _RUNNING

    def write_domain_start(self, record: DomainRecord) -> None:
        self._require(_RUNNING, "write_domain_start")
        domain = ExitStack()
        self._guarded(self._xf.write, "\n" + INDENT)
        self._guarded(domain.enter_context, self._xf.element("Domain", domain_attributes(record)))
        self._domain = domain
        self._domain_children = 0
        self._state = _IN_DOMAIN

    def write_trust(self, record: TrustRecord) -> None:
        self._require(_IN_DOMAIN, "write_trust")
        self._guarded(self._xf.write, "\n" + INDENT * 2)
        self._guarded(self._xf.write, etree.Element("Trusted", trust_attributes(record)))
        self._domain_children += 1

    def write_domain_end(self) -> None:
        self._require(_IN_DOMAIN, "write_domain_end")
        self._close_domain()
        self._guarded(self._xf.flush)

    def write_run_end(self, time: datetime) -> None:
        self._require(_RUNNING, "write_run_end")
        self._write_marker("End", time)
        self._state = _ENDED

    def close(self) -> None:
        """Finalize the document and release the file. Idempotent."""
        if self._state == _CLOSED:
            return
        atexit.unregister(self.close)
        if self._state == _NEW:
            self._state = _CLOSED
            return
        try:
            if self._state == _IN_DOMAIN:
                self._close_domain()
            if self._state == _RUNNING:
                self._write_marker("End", local_now())
            self._guarded(self._xf.write, "\n")
            self._guarded(self._stack.close)
        finally:
            self._state = _CLOSED
            if self._file is not None and not self._file.closed:
                self._file.close()
            self._stack = None
            self._xf = None
        log.debug("Report closed", extra={"path": str(self.path)})

    def _write_marker(self, tag: str, time: datetime) -> None:
        self._guarded(self._xf.write, "\n" + INDENT)
        self._guarded(self._xf.write, etree.Element(tag, {"Time": format_timestamp(time)}))

    def _close_domain(self) -> None:
        if self._domain_children:
            self._guarded(self._xf.write, "\n" + INDENT)
        domain, self._domain = self._domain, None
        self._state = _RUNNING
        if domain is not None:
            self._guarded(domain.close)

    def _guarded(self, func, *args):
        try:
            return func(*args)
        except OSError as exc:
            raise ReportWriteError(str(self.path), exc.strerror or str(exc)) from exc

    def _require(self, state: int, operation: str) -> None:
        if self._state != state:
            raise ReportStateError(f"{operation}() called in the wrong order")


@dataclass
class ParsedReport:
    """A report read back from disk."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    domains: List[Tuple[DomainRecord, List[TrustRecord]]] = field(default_factory=list)


def read_report(path: Path | str) -> ParsedReport:
    """Parse a report written by ReportWriter back into records."""
    root = etree.parse(str(path)).getroot()
    if root.tag != "Domains":
        raise ValueError(f"Not a trust report: root element is <{root.tag}>")
    report = ParsedReport()
    for element in root:
        if not isinstance(element.tag, str):
            continue
        if element.tag == "Start":
            report.start = parse_report_timestamp(element.get("Time"))
        elif element.tag == "End":
            report.end = parse_report_timestamp(element.get("Time"))
        elif element.tag == "Domain":
            created = element.get("Created")
            changed = element.get("Changed")
            record = DomainRecord(
                name=element.get("Name"),
                dns_name=element.get("DNS"),
                created=parse_report_timestamp(created) if created else None,
                changed=parse_report_timestamp(changed) if changed else None,
            )
            trusts = [
                TrustRecord(name=child.get("Name"), dns_name=child.get("DNS"))
                for child in element
                if child.tag == "Trusted"
            ]
            report.domains.append((record, trusts))
    return report


def print_summary(summary: RunSummary, console: Optional[Console] = None) -> None:
    """
    Render the outcome of a run as a rich table, failures listed below it.
    """
    console = console or Console(stderr=True)
    elapsed = (summary.finished - summary.started).total_seconds()

    table = Table(
        title="Forest Trust Enumeration",
        box=box.ROUNDED,
        caption=f"Report written to {summary.output}",
    )
    table.add_column("Domains", justify="right", style="cyan")
    table.add_column("Trusts", justify="right", style="magenta")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Duration (s)", justify="right", style="green")
    table.add_row(
        str(summary.domains),
        str(summary.trusts),
        str(len(summary.failures)),
        f"{elapsed:.1f}",
    )
    console.print(table)

    if summary.failures:
        failures = Table(title="Domains without trust data", box=box.SIMPLE)
        failures.add_column("Domain", style="cyan", no_wrap=True)
        failures.add_column("Target", style="blue")
        failures.add_column("Reason", style="yellow")
        for failure in summary.failures:
            failures.add_row(failure.domain, failure.target, failure.reason)
        console.print(failures)


__all__ = [
    "ParsedReport",
    "ReportWriter",
    "domain_attributes",
    "print_summary",
    "read_report",
    "trust_attributes",
]
