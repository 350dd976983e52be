"""LDAP access for the user provider, built on *ldap3*.

:class:`LdapManager` offers the handful of directory operations the provider
needs and nothing more:

* resolve a username to its entry DN (:meth:`LdapManager.find_user_dn`) and
  to the base DN it lives under (:meth:`LdapManager.users_base_dn`);
* open a bound connection (:meth:`LdapManager.get_context`) and read a
  restricted set of attributes of one entry
  (:meth:`LdapManager.get_attributes`);
* run a search filter and collect one attribute of every match, with
  client-side pagination (:meth:`LdapManager.retrieve_list`).

Attribute values are flattened into plain strings: multi-valued attributes
keep their first value and missing attributes are ``None``.
"""
from __future__ import annotations

import logging
import ssl
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from ldap3 import BASE, SUBTREE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars

from .config import Config
from .core.constants import LDAP_DATE_FORMAT
from .exceptions import DirectoryError, LdapLookupError
from .filter_builder import render_scope_filter
from .jid import escape_node

logger = logging.getLogger("ldap_user_provider.ldap")

__all__ = ["LdapManager", "first_value"]


# Helper ---------------------------------------------------------------------


def _build_server(host: str, ignore_cert: bool = False, ca_file: str | None = None) -> Server:
    """Build an ldap3 :class:`Server` with correct TLS settings."""
    use_ssl = host.lower().startswith("ldaps://")
    clean_host = host.replace("ldap://", "").replace("ldaps://", "")

    tls: Tls | None = None
    if use_ssl:
        if ignore_cert:
            tls = Tls(validate=ssl.CERT_NONE)
        elif ca_file:
            tls = Tls(validate=ssl.CERT_REQUIRED, ca_certs_file=ca_file)
    return Server(clean_host, use_ssl=use_ssl, get_info=None, tls=tls)


def first_value(raw) -> Optional[str]:
    """Reduce an ldap3 attribute value to a single string."""
    if raw in (None, "", [], ()):
        return None
    if isinstance(raw, (list, tuple)):
        raw = raw[0]
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, datetime):
        # schema-aware servers hand back generalized time already decoded
        return raw.astimezone(timezone.utc).strftime(LDAP_DATE_FORMAT) + "Z"
    return str(raw)


# Public API -----------------------------------------------------------------


class LdapManager:
    """Directory operations used by :class:`LdapUserProvider`."""

    def __init__(
        self,
        *,
        host: str,
        bind_dn: str,
        bind_password: str,
        base_dn: str,
        alternate_base_dn: str | None = None,
        username_attr: str = "uid",
        name_attr: str = "cn",
        email_attr: str = "mail",
        search_filter: str | None = None,
        username_suffix: str | None = None,
        ignore_cert: bool = False,
        ca_file: str | None = None,
        timeout: int | float = 5,
        page_size: int = 500,
        server: Server | None = None,
    ) -> None:
        self._server = server or _build_server(host, ignore_cert=ignore_cert, ca_file=ca_file)
        self._bind_dn = bind_dn
        self._bind_password = bind_password
        self._timeout = timeout
        self._page_size = page_size
        self.base_dn = base_dn
        self.alternate_base_dn = alternate_base_dn or None
        self.username_attr = username_attr
        self.name_attr = name_attr
        self.email_attr = email_attr
        self.search_filter = search_filter or f"({username_attr}={{0}})"
        self.username_suffix = username_suffix or None

    @classmethod
    def from_config(cls, cfg: Config) -> "LdapManager":
        return cls(
            host=cfg.ldap_host,
            bind_dn=cfg.ldap_bind_dn,
            bind_password=cfg.ldap_bind_password,
            base_dn=cfg.ldap_base_dn,
            alternate_base_dn=cfg.ldap_alternate_base_dn,
            username_attr=cfg.ldap_username_attr,
            name_attr=cfg.ldap_name_attr,
            email_attr=cfg.ldap_mail_attr,
            search_filter=cfg.ldap_search_filter,
            username_suffix=cfg.ldap_username_suffix,
            ignore_cert=cfg.ignore_ldaps_cert,
            ca_file=cfg.ldap_ca_file,
            timeout=cfg.ldap_timeout,
            page_size=cfg.ldap_page_size,
        )

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    def _base_dns(self) -> List[str]:
        return [dn for dn in (self.base_dn, self.alternate_base_dn) if dn]

    def get_context(self, base_dn: str | None = None) -> Connection:
        """Return a bound connection.  The caller must ``unbind()`` it."""
        logger.debug("Binding to LDAP as %s for %s", self._bind_dn or "anonymous", base_dn or self.base_dn)
        return Connection(
            self._server,
            user=self._bind_dn or None,
            password=self._bind_password or None,
            auto_bind=True,
            receive_timeout=self._timeout,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def find_user_dn(self, username: str) -> str:
        """Return the DN of *username*, searching the base DNs in order.

        Raises
        ------
        LdapLookupError
            If no entry matches.
        """
        search_filter = render_scope_filter(self.search_filter, escape_filter_chars(username))
        conn = self.get_context()
        try:
            for base in self._base_dns():
                logger.debug("Looking up %s under %s with filter: %s", username, base, search_filter)
                conn.search(search_base=base, search_filter=search_filter, search_scope=SUBTREE, attributes=[])
                if conn.entries:
                    return str(conn.entries[0].entry_dn)
        finally:
            conn.unbind()
        raise LdapLookupError(f"User DN for {username!r} not found")

    def users_base_dn(self, user_dn: str) -> str:
        """Return the configured base DN that *user_dn* lives under."""
        alt = self.alternate_base_dn
        if alt and user_dn.lower().endswith(alt.lower()):
            return alt
        return self.base_dn

    def get_attributes(self, conn: Connection, dn: str, attributes: Sequence[str]) -> Dict[str, Optional[str]]:
        """Read *attributes* of the entry *dn* through *conn*.

        Raises
        ------
        LdapLookupError
            If the entry does not exist.
        """
        logger.debug("Reading %s from %s", list(attributes), dn)
        conn.search(search_base=dn, search_filter="(objectClass=*)", search_scope=BASE, attributes=list(attributes))
        if not conn.entries:
            raise LdapLookupError(f"No LDAP entry at {dn!r}")
        entry = conn.entries[0]
        record: Dict[str, Optional[str]] = {}
        for name in attributes:
            record[name] = first_value(entry[name].value) if name in entry else None
        return record

    def retrieve_list(
        self,
        attribute: str,
        search_filter: str,
        start_index: int = -1,
        num_results: int = -1,
        suffix: str | None = None,
    ) -> List[str]:
        """Return *attribute* of every entry matching *search_filter*.

        ``start_index``/``num_results`` page through the matches client-side;
        ``-1`` for either means no limit.  Values ending in *suffix* have it
        removed and every value is escaped as a JID node.

        Raises
        ------
        DirectoryError
            If binding or searching fails.
        """
        logger.debug(
            "Retrieving %s with filter: %s (start=%s, count=%s)", attribute, search_filter, start_index, num_results
        )
        if num_results == 0:
            return []
        skip = max(start_index, 0)
        results: List[str] = []
        try:
            conn = self.get_context()
        except LDAPException as exc:
            raise DirectoryError(f"Cannot connect to LDAP: {exc}") from exc
        try:
            for value in self._iter_values(conn, attribute, search_filter):
                if skip:
                    skip -= 1
                    continue
                if suffix and value.endswith(suffix):
                    value = value[: -len(suffix)]
                results.append(escape_node(value))
                if 0 <= num_results <= len(results):
                    break
        except LDAPException as exc:
            raise DirectoryError(f"LDAP search {search_filter} failed: {exc}") from exc
        finally:
            conn.unbind()
        logger.debug("Retrieved %d values", len(results))
        return results

    def _iter_values(self, conn: Connection, attribute: str, search_filter: str) -> Iterable[str]:
        for base in self._base_dns():
            entries = conn.extend.standard.paged_search(
                search_base=base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=[attribute],
                paged_size=self._page_size,
                generator=True,
            )
            for entry in entries:
                if entry.get("type") != "searchResEntry":
                    continue
                value = first_value(entry.get("attributes", {}).get(attribute))
                if value is not None:
                    yield value
