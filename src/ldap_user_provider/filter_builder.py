"""LDAP search filter builder.

Builds the filter used by :meth:`LdapUserProvider.find_users`.  The directory
administrator's scope filter (e.g. ``(uid={0})``) is rendered with ``*`` and
AND-ed with one clause per search term.  A term searched over several
attributes becomes an OR group::

    (&((uid=*))(|(sn=jo*)(givenName=jo*))(|(sn=sm*)(givenName=sm*)))

The doubled parentheses around the scope clause are expected by the directory
setups this provider was written for and must be kept bit-for-bit.
"""
from __future__ import annotations

from typing import AbstractSet, List, Mapping, Optional

from .core.constants import FIELD_NAME
from .exceptions import InvalidFieldError

__all__ = [
    "build_search_filter",
    "expand_search_fields",
    "process_search_term",
    "render_scope_filter",
    "split_search_terms",
]

# Order matters: the backslash goes first so the escapes added for the other
# characters are not escaped again.
_ESCAPES = (
    ("\\", "\\5c"),
    ("(", "\\28"),
    (")", "\\29"),
    ("/", "\\2f"),
)


def process_search_term(term: str) -> str:
    """Escape reserved filter characters and make sure *term* ends with ``*``.

    Apply exactly once per raw term; a second pass escapes the backslashes of
    the first one.
    """
    result = term
    for char, escaped in _ESCAPES:
        result = result.replace(char, escaped)
    if not result.endswith("*"):
        result += "*"
    return result


def render_scope_filter(template: str, value: str = "*") -> str:
    """Substitute *value* for the ``{0}`` placeholder of the scope filter."""
    return template.replace("{0}", value)


def split_search_terms(query: str, separate_terms: bool) -> List[str]:
    if separate_terms:
        return query.split()
    return [query]


def expand_search_fields(
    fields: AbstractSet[str],
    search_fields: Mapping[str, str],
    search_name_fields: Optional[AbstractSet[str]],
) -> List[str]:
    """Validate *fields* and return the physical attributes to search.

    The virtual ``Name`` field is replaced by *search_name_fields*.  Logical
    fields are visited in sorted order so the generated filter is stable.

    Raises
    ------
    InvalidFieldError
        If a requested field is not configured, a name field has no mapping,
        or nothing is left to search after expansion.
    """
    unknown = set(fields) - set(search_fields)
    if unknown:
        raise InvalidFieldError(fields)

    to_search = set(fields)
    if FIELD_NAME in to_search:
        to_search.discard(FIELD_NAME)
        to_search |= set(search_name_fields or ())

    unmapped = to_search - set(search_fields)
    if unmapped:
        raise InvalidFieldError(unmapped)
    if not to_search:
        raise InvalidFieldError(fields)

    return [search_fields[f] for f in sorted(to_search)]


def build_search_filter(
    fields: AbstractSet[str],
    query: str,
    *,
    search_fields: Mapping[str, str],
    search_name_fields: Optional[AbstractSet[str]],
    scope_filter: str,
    separate_terms: bool = False,
) -> str:
    """Construct the LDAP filter for a user search.

    Parameters
    ----------
    fields: set of str
        Logical fields requested by the client.  Must be non-empty.
    query: str
        Raw query as typed by the user.  Must be non-empty.
    search_fields: mapping
        Logical → physical field mapping.
    search_name_fields: set of str | None
        Logical fields replacing ``Name``.
    scope_filter: str
        Administrator filter template with a single ``{0}`` placeholder.
    separate_terms: bool
        Split *query* on whitespace into AND-ed terms.

    Returns
    -------
    str
        The filter string.
    """
    attributes = expand_search_fields(fields, search_fields, search_name_fields)

    parts = ["(&(", render_scope_filter(scope_filter, "*"), ")"]
    for raw_term in split_search_terms(query, separate_terms):
        term = process_search_term(raw_term)
        clause = "".join(f"({attr}={term})" for attr in attributes)
        if len(attributes) > 1:
            clause = f"(|{clause})"
        parts.append(clause)
    parts.append(")")
    return "".join(parts)
