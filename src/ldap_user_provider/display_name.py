"""Display name templating.

A template such as ``"{givenName} {sn}"`` names LDAP attributes in curly
braces.  Each placeholder is replaced by the attribute value of the user (or
nothing when the user lacks it) and the result is stripped, so a missing
given name yields ``"Smith"`` rather than ``" Smith"``.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Mapping, Optional, Tuple

from .core.constants import LDAP_CREATE_TIMESTAMP_ATTR, LDAP_MODIFY_TIMESTAMP_ATTR

__all__ = [
    "construct_display_name",
    "required_attributes",
    "template_attributes",
]

_PLACEHOLDER_RE = re.compile(r"\{([^}]+)\}")


def template_attributes(template: Optional[str]) -> List[str]:
    """Return the attribute names used by *template*, first appearance first."""
    if not template:
        return []
    names: List[str] = []
    for name in _PLACEHOLDER_RE.findall(template):
        if name not in names:
            names.append(name)
    return names


def required_attributes(
    template: Optional[str],
    *,
    username_attr: str,
    name_attr: str,
    email_attr: str,
    extra: Iterable[str] = (LDAP_CREATE_TIMESTAMP_ATTR, LDAP_MODIFY_TIMESTAMP_ATTR),
) -> Tuple[str, ...]:
    """Attributes to request when loading a single user."""
    fields = {username_attr, name_attr, email_attr, *extra}
    fields.update(template_attributes(template))
    return tuple(sorted(fields))


def construct_display_name(
    template: Optional[str],
    record: Mapping[str, Optional[str]],
    name_attr: str,
) -> Optional[str]:
    """Build the display name of a user from their attributes.

    Without a template the plain name attribute is returned, or ``None`` if
    the user has none.
    """
    if template is None:
        return record.get(name_attr)

    def _substitute(match: re.Match) -> str:
        value = record.get(match.group(1))
        return value if value is not None else ""

    # re.sub never rescans replacement text, so values containing braces are
    # copied verbatim.
    return _PLACEHOLDER_RE.sub(_substitute, template).strip()
