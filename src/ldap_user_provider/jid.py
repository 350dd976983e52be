"""Helpers for XMPP addresses (JIDs).

Usernames coming from LDAP may contain characters that are not allowed in the
node part of a JID.  They are escaped according to XEP-0106 before being
handed to the XMPP server and unescaped again on the way back.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

__all__ = ["XmppDomain", "escape_node", "is_local", "split_node", "unescape_node"]

_ESCAPE_MAP = {
    " ": "\\20",
    '"': "\\22",
    "&": "\\26",
    "'": "\\27",
    "/": "\\2f",
    ":": "\\3a",
    "<": "\\3c",
    ">": "\\3e",
    "@": "\\40",
    "\\": "\\5c",
}
_UNESCAPE_MAP = {v: k for k, v in _ESCAPE_MAP.items()}
_UNESCAPE_RE = re.compile(r"\\(20|22|26|27|2f|3a|3c|3e|40|5c)", re.IGNORECASE)


def escape_node(node: str) -> str:
    """Escape *node* for use as the local part of a JID."""
    return "".join(_ESCAPE_MAP.get(c, c) for c in node)


def unescape_node(node: str) -> str:
    """Reverse :func:`escape_node`.  Unknown ``\\xx`` sequences are kept."""
    return _UNESCAPE_RE.sub(lambda m: _UNESCAPE_MAP["\\" + m.group(1).lower()], node)


def split_node(identifier: str) -> tuple[str, Optional[str]]:
    """Split ``node@domain/resource`` into ``(node, domain)``."""
    if "@" not in identifier:
        return identifier, None
    node, _, domain = identifier.rpartition("@")
    return node, domain.split("/", 1)[0]


def is_local(identifier: str, domain: Optional[str]) -> bool:
    """Return whether the domain of *identifier* is *domain*.

    Identifiers without a domain part are local.
    """
    _, jid_domain = split_node(identifier)
    if jid_domain is None:
        return True
    if not domain:
        return False
    return jid_domain.lower() == domain.lower()


@dataclass(frozen=True, slots=True)
class XmppDomain:
    """The XMPP domain served locally."""

    name: Optional[str]

    def is_local(self, identifier: str) -> bool:
        return is_local(identifier, self.name)
