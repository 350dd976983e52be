"""Parsers for the search field configuration strings.

Two settings control which LDAP attributes a search touches:

* ``searchFields`` – ``Logical/physical`` pairs separated by commas, e.g.
  ``"Username/uid,Name/cn,Email/mail,Given Name/givenName,Family Name/sn"``.
  The logical names are what the client sees; the physical names are LDAP
  attributes.
* ``searchNameFields`` – comma-separated *logical* names that replace the
  virtual ``Name`` field when it is searched, e.g. ``"Given Name,Family Name"``.
"""
from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from .core.constants import FIELD_EMAIL, FIELD_NAME, FIELD_USERNAME
from .exceptions import ConfigurationError

__all__ = ["parse_search_fields", "parse_search_name_fields"]


def parse_search_fields(
    value: Optional[str],
    *,
    username_attr: str,
    name_attr: str,
    email_attr: str,
) -> Dict[str, str]:
    """Parse ``searchFields`` into an ordered *logical → physical* mapping.

    Parameters
    ----------
    value: str | None
        Raw configuration value.  ``None`` selects the three built-in fields.
    username_attr, name_attr, email_attr: str
        Physical attributes used for the built-in ``Username``, ``Name`` and
        ``Email`` fields.

    Raises
    ------
    ConfigurationError
        If a token is not of the form ``Logical/physical``.
    """
    if value is None:
        return {
            FIELD_USERNAME: username_attr,
            FIELD_NAME: name_attr,
            FIELD_EMAIL: email_attr,
        }

    mapping: Dict[str, str] = {}
    for token in value.split(","):
        if not token.strip():
            continue
        logical, sep, physical = token.partition("/")
        logical = logical.strip()
        physical = physical.strip()
        if not sep or not logical or not physical:
            raise ConfigurationError(f"Invalid search field {token!r} in {value!r}")
        mapping[logical] = physical
    return mapping


def parse_search_name_fields(value: Optional[str]) -> Optional[FrozenSet[str]]:
    """Parse ``searchNameFields`` into a set of logical field names.

    ``None`` (not configured) is kept distinct from an empty set.
    """
    if value is None:
        return None
    return frozenset(f for f in (p.strip() for p in value.split(",")) if f)
