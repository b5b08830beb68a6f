"""
Directory connection factory for trustmap.

Builds ldap3 connections from Settings, binds them with the configured
credentials and exposes paged searches as generators. The bind to the forest
root is retried on socket failures with tenacity; connections to individual
domains get a single attempt.

ldap3 and socket exceptions never leave this module: they are translated into
DirectoryError naming the target that failed.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Dict, Generator, Iterator, Optional, Sequence

from ldap3 import BASE, KERBEROS, NONE, NTLM, SASL, SIMPLE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException, LDAPSocketOpenError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from trustmap.config import Settings, get_settings
from trustmap.exceptions import DirectoryError
from trustmap.utils.logging import get_logger

log = get_logger(__name__)

ROOT_DSE_ATTRIBUTES = ("defaultNamingContext", "configurationNamingContext")
ConnectionFactory = Callable[[str, int], ContextManager[Connection]]


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def build_url(target: str, settings: Settings) -> str:
    """Compose an ldap:// (or ldaps://) address for a host or domain name."""
    if not target or not target.strip():
        raise ValueError("empty directory target")
    scheme = "ldaps" if settings.use_ssl else "ldap"
    port = settings.ldap_port
    if settings.use_ssl and port == 389:
        port = 636
    return f"{scheme}://{target.strip()}:{port}"


def _auth_kwargs(settings: Settings) -> Dict[str, Any]:
    if settings.auth_method == "kerberos":
        return {"authentication": SASL, "sasl_mechanism": KERBEROS}
    if settings.auth_method == "ntlm":
        user = settings.username or ""
        if settings.user_domain and "\\" not in user:
            user = f"{settings.user_domain}\\{user}"
        return {"authentication": NTLM, "user": user, "password": settings.password}
    if settings.auth_method == "simple":
        return {"authentication": SIMPLE, "user": settings.username, "password": settings.password}
    return {}


def _bind(conn: Connection, attempts: int) -> None:
    for attempt in Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type(LDAPSocketOpenError),
        reraise=True,
    ):
        with attempt:
            conn.bind()


def make_connection_factory(settings: Optional[Settings] = None) -> ConnectionFactory:
    """
    Return a context-manager factory ``factory(target, attempts)``.

    The yielded connection is bound and read-only; it is unbound on exit
    whether the body finished, raised or was abandoned.
    """
    settings = settings or get_settings()

    @contextmanager
    def open_connection(target: str, attempts: int = 1) -> Generator[Connection, None, None]:
        server = Server(
            build_url(target, settings),
            get_info=NONE,
            connect_timeout=settings.connect_timeout,
        )
        conn = Connection(
            server,
            read_only=True,
            raise_exceptions=True,
            auto_referrals=False,
            receive_timeout=settings.receive_timeout,
            **_auth_kwargs(settings),
        )
        try:
            _bind(conn, attempts)
            log.debug("Bound to directory", extra={"target": target})
            yield conn
        finally:
            if not conn.closed:
                conn.unbind()

    return open_connection


def read_root_dse(conn: Connection) -> Dict[str, Optional[str]]:
    """Read the naming contexts advertised by the server's RootDSE."""
    conn.search(
        search_base="",
        search_filter="(objectClass=*)",
        search_scope=BASE,
        attributes=list(ROOT_DSE_ATTRIBUTES),
    )
    attributes: Dict[str, Any] = {}
    for entry in conn.response or []:
        if entry.get("type") == "searchResEntry":
            attributes = entry.get("attributes", {})
            break
    return {name: _first(attributes.get(name)) for name in ROOT_DSE_ATTRIBUTES}


def paged_entries(
    conn: Connection,
    base: str,
    search_filter: str,
    attributes: Sequence[str],
    page_size: int,
) -> Iterator[Dict[str, Any]]:
    """Yield the attribute dict of every entry; pages are requested on demand."""
    entries = conn.extend.standard.paged_search(
        search_base=base,
        search_filter=search_filter,
        search_scope=SUBTREE,
        attributes=list(attributes),
        paged_size=page_size,
        generator=True,
    )
    for entry in entries:
        if entry.get("type") != "searchResEntry":
            continue
        yield dict(entry.get("attributes", {}))


class Ldap3DirectoryClient:
    """
    DirectoryClient backed by ldap3's synchronous strategy.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._open = connection_factory or make_connection_factory(self.settings)

    def search_configuration(
        self,
        relative_base: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
    ) -> Iterator[Dict[str, Any]]:
        root = self.settings.require_forest_server()
        try:
            with self._open(root, self.settings.root_connect_attempts) as conn:
                configuration = read_root_dse(conn)["configurationNamingContext"]
                if not configuration:
                    raise DirectoryError(root, "RootDSE has no configurationNamingContext")
                base = f"{relative_base},{configuration}" if relative_base else configuration
                log.debug("Searching configuration partition", extra={"base": base})
                yield from paged_entries(conn, base, search_filter, attributes, page_size)
        except (LDAPException, OSError, ValueError) as exc:
            raise DirectoryError(root, _describe(exc)) from exc

    def search_domain(
        self,
        target: str,
        search_filter: str,
        attributes: Sequence[str],
        page_size: int,
        base: Optional[str] = None,
    ) -> Iterator[Dict[str, Any]]:
        try:
            with self._open(target, 1) as conn:
                search_base = base or read_root_dse(conn)["defaultNamingContext"]
                if not search_base:
                    raise DirectoryError(target, "RootDSE has no defaultNamingContext")
                log.debug("Searching domain", extra={"target": target, "base": search_base})
                yield from paged_entries(conn, search_base, search_filter, attributes, page_size)
        except (LDAPException, OSError, ValueError) as exc:
            raise DirectoryError(target, _describe(exc)) from exc


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


__all__ = [
    "Ldap3DirectoryClient",
    "build_url",
    "make_connection_factory",
    "paged_entries",
    "read_root_dse",
]
